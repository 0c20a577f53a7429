"""Read-through caching for API calls, with optional stale-while-revalidate."""

import asyncio
from typing import Any, Awaitable, Callable, Mapping

import structlog

from placify.app.cache.errors import SerializationError
from placify.app.cache.keys import build_key
from placify.app.cache.store import MISSING, Store
from placify.app.config import get_settings

logger = structlog.get_logger()

Producer = Callable[[], Awaitable[Any]]


class CachedCall:
    """Serve API reads from a ``Store``, calling the producer on a miss.

    Concurrent misses for the same key are not coalesced: each one calls its
    producer and the last write wins.
    """

    def __init__(self, store: Store, default_ttl: float | None = None):
        self.store = store
        self.default_ttl = default_ttl
        self._refreshes: set[asyncio.Task] = set()

    async def __call__(
        self,
        producer: Producer,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
        *,
        use_cache: bool = True,
        ttl: float | None = None,
        skip_cache: bool = False,
        stale_while_revalidate: bool = False,
    ) -> Any:
        if not use_cache or skip_cache:
            return await producer()

        if ttl is None:
            ttl = self.default_ttl if self.default_ttl is not None else get_settings().cache_ttl

        try:
            key = build_key(endpoint, params)
        except SerializationError as e:
            logger.error("Cannot build cache key, calling uncached", endpoint=endpoint, error=str(e))
            return await producer()

        cached = self.store.get(key, MISSING)
        if cached is not MISSING:
            logger.debug("Cache hit", endpoint=endpoint)
            if stale_while_revalidate:
                self._schedule_refresh(producer, key, endpoint, ttl)
            return cached

        logger.debug("Cache miss", endpoint=endpoint)
        result = await producer()
        self.store.set(key, result, ttl)
        return result

    @property
    def pending_refreshes(self) -> int:
        return len(self._refreshes)

    async def wait_for_refreshes(self) -> None:
        """Wait until every background refresh started so far has finished."""
        while self._refreshes:
            await asyncio.gather(*list(self._refreshes), return_exceptions=True)

    def _schedule_refresh(self, producer: Producer, key: str, endpoint: str, ttl: float) -> None:
        task = asyncio.create_task(self._refresh(producer, key, endpoint, ttl))
        # The event loop only keeps weak references to tasks.
        self._refreshes.add(task)
        task.add_done_callback(self._refreshes.discard)

    async def _refresh(self, producer: Producer, key: str, endpoint: str, ttl: float) -> None:
        try:
            fresh = await producer()
        except Exception as e:
            logger.warning("Background refresh failed", endpoint=endpoint, error=str(e))
            return
        if self.store.set(key, fresh, ttl):
            logger.debug("Background refresh stored", endpoint=endpoint)
