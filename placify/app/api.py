"""HTTP client for the job-board backend."""

from typing import Any, Callable

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from placify.app.cache.invalidation import MUTATING_METHODS, InvalidationRouter
from placify.app.config import get_settings

logger = structlog.get_logger()

TokenProvider = Callable[[], str | None]

_STATUS_MESSAGES = {
    401: "Unauthorized request",
    403: "Access denied",
    404: "Requested resource not found",
    429: "Too many requests - rate limited",
    500: "Server error",
}


class JobBoardClient:
    """Thin async wrapper over the REST API.

    Every method returns the decoded JSON body. Mutating requests notify the
    invalidation router afterwards, whether or not they succeeded.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        token_provider: TokenProvider | None = None,
        invalidation: InvalidationRouter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.token_provider = token_provider
        self.invalidation = invalidation
        self.client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.api_timeout,
            headers={"User-Agent": "Placify/1.0", "Accept": "application/json"},
            transport=transport,
        )

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._get(path, params=params)
        if not response.content:
            return None
        return response.json()

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request; mutations are not retried."""
        method = method.upper()
        try:
            response = await self._send(method, path, **kwargs)
        finally:
            if self.invalidation is not None and method in MUTATING_METHODS:
                self.invalidation.on_mutation(method, path)
        if not response.content:
            return None
        return response.json()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get(self, path: str, **kwargs) -> httpx.Response:
        """HTTP GET with retries on connection-level failures."""
        return await self._send("GET", path, **kwargs)

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self.client.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                _STATUS_MESSAGES.get(status, "An error occurred"),
                method=method,
                path=path,
                status=status,
            )
            raise
        except httpx.RequestError as e:
            logger.error("No response received from server", method=method, path=path, error=str(e))
            raise
        return response

    async def close(self):
        await self.client.aclose()
