"""Namespaced TTL store over session storage.

Entries are written as JSON envelopes ``{"data", "timestamp", "expiration"}``
and expire lazily: an entry past its TTL is deleted the next time it is read.
Any storage or serialization failure is logged and treated as a miss (on read)
or a no-op (on write) so a broken cache behaves like no cache at all.
"""

import time
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from placify.app.cache.errors import SerializationError, StorageQuotaExceededError
from placify.app.cache.keys import endpoint_matches, parse_key
from placify.app.cache.storage import StorageMedium
from placify.app.config import get_settings
from placify.app.schemas import CacheEnvelope

logger = structlog.get_logger()

# Returned by ``get`` when the caller needs to tell "absent" from a cached None.
MISSING: Any = object()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    created_at: float  # epoch seconds
    ttl: float  # seconds

    @classmethod
    def from_envelope(cls, key: str, envelope: CacheEnvelope) -> "CacheEntry":
        return cls(
            key=key,
            payload=envelope.data,
            created_at=envelope.timestamp / 1000,
            ttl=envelope.expiration / 1000,
        )


class Store:
    def __init__(self, storage: StorageMedium, namespace: str | None = None):
        self.storage = storage
        self.namespace = namespace or get_settings().cache_namespace

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live payload for ``key``, else ``default``."""
        try:
            envelope = self._load(key)
        except Exception as e:
            logger.error("Error reading from cache", key=key, error=str(e))
            return default
        if envelope is None:
            return default
        return envelope.data

    def entry(self, key: str) -> CacheEntry | None:
        try:
            envelope = self._load(key)
        except Exception as e:
            logger.error("Error reading from cache", key=key, error=str(e))
            return None
        if envelope is None:
            return None
        return CacheEntry.from_envelope(key, envelope)

    def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store a value with TTL (defaults to settings.cache_ttl seconds).

        Payloads are stored as JSON, so ``get`` returns them in decoded form:
        tuples come back as lists, non-string dict keys as strings and NaN
        as None. Returns False when the write could not be made.
        """
        if ttl is None:
            ttl = get_settings().cache_ttl
        storage_key = self._storage_key(key)
        try:
            raw = self._dump(CacheEnvelope(
                data=value,
                timestamp=self._now_ms(),
                expiration=int(ttl * 1000),
            ))
            try:
                self.storage.set_item(storage_key, raw)
            except StorageQuotaExceededError:
                # Expired entries nobody read again still hold quota.
                if not self._drop_expired():
                    raise
                self.storage.set_item(storage_key, raw)
        except Exception as e:
            logger.error("Error writing to cache", key=key, error=str(e))
            return False
        return True

    def remove(self, key: str) -> None:
        try:
            self.storage.remove_item(self._storage_key(key))
        except Exception as e:
            logger.error("Error clearing cache entry", key=key, error=str(e))

    def remove_matching(self, pattern: str) -> int:
        """Remove entries whose endpoint contains ``pattern`` as whole path segments."""
        removed = 0
        try:
            for key in self._own_keys():
                if endpoint_matches(parse_key(key).endpoint, pattern):
                    self.storage.remove_item(self._storage_key(key))
                    removed += 1
        except Exception as e:
            logger.error("Error invalidating cache pattern", pattern=pattern, error=str(e))
        logger.debug("Invalidated cache pattern", pattern=pattern, removed=removed)
        return removed

    def clear(self) -> int:
        """Remove every entry in this store's namespace, and nothing else."""
        removed = 0
        try:
            for key in self._own_keys():
                self.storage.remove_item(self._storage_key(key))
                removed += 1
        except Exception as e:
            logger.error("Error clearing all cache", error=str(e))
        return removed

    def keys(self) -> list[str]:
        try:
            return self._own_keys()
        except Exception as e:
            logger.error("Error listing cache keys", error=str(e))
            return []

    def _own_keys(self) -> list[str]:
        prefix = self.namespace
        return [k[len(prefix):] for k in self.storage.keys() if k.startswith(prefix)]

    def _drop_expired(self) -> int:
        """Delete expired or unreadable entries in the namespace; return how many."""
        before = self._own_keys()
        for key in before:
            self._load(key)
        dropped = len(before) - len(self._own_keys())
        logger.debug("Dropped expired cache entries", dropped=dropped)
        return dropped

    def _load(self, key: str) -> CacheEnvelope | None:
        storage_key = self._storage_key(key)
        raw = self.storage.get_item(storage_key)
        if raw is None:
            return None
        try:
            envelope = CacheEnvelope.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable cache entry", key=key, error=str(e))
            self.storage.remove_item(storage_key)
            return None
        if not envelope.is_live(self._now_ms()):
            self.storage.remove_item(storage_key)
            return None
        return envelope

    @staticmethod
    def _dump(envelope: CacheEnvelope) -> str:
        try:
            return envelope.model_dump_json()
        except PydanticSerializationError as e:
            raise SerializationError(f"Cannot serialize cache payload: {e}") from e

    def _storage_key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)
