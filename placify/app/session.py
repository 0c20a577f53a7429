"""One client session: storage, cache and API client wired together."""

from typing import Any

import httpx
import structlog

from placify.app.api import JobBoardClient, TokenProvider
from placify.app.cache.cached_call import CachedCall
from placify.app.cache.invalidation import InvalidationRouter
from placify.app.cache.storage import SessionStorage, StorageMedium
from placify.app.cache.store import Store
from placify.app.config import Settings, get_settings

logger = structlog.get_logger()


class JobBoardSession:
    """Everything cached here lives until ``close()``, which ends the session.

    Usable as an async context manager::

        async with JobBoardSession(token_provider=lambda: token) as session:
            jobs = await session.cached_get("/jobs", {"page": 1})
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: StorageMedium | None = None,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self._owns_storage = storage is None
        self.storage = storage if storage is not None else SessionStorage(self.settings.cache_quota_bytes)
        self.store = Store(self.storage, namespace=self.settings.cache_namespace)
        self.invalidation = InvalidationRouter(self.store)
        self.cached_api_call = CachedCall(self.store, default_ttl=self.settings.cache_ttl)
        self.api = JobBoardClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.api_timeout,
            token_provider=token_provider,
            invalidation=self.invalidation,
            transport=transport,
        )

    async def cached_get(self, path: str, params: dict[str, Any] | None = None, **options) -> Any:
        """GET ``path`` through the response cache.

        ``options`` are passed to ``CachedCall`` (``use_cache``, ``ttl``,
        ``skip_cache``, ``stale_while_revalidate``).
        """
        return await self.cached_api_call(
            lambda: self.api.get(path, params=params),
            path,
            params,
            **options,
        )

    async def close(self):
        await self.cached_api_call.wait_for_refreshes()
        await self.api.close()
        removed = self.store.clear()
        if self._owns_storage:
            self.storage.clear()
        logger.info("Session closed", cache_entries_dropped=removed)

    async def __aenter__(self) -> "JobBoardSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
