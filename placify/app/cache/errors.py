"""Exceptions raised inside the response cache.

None of these reach callers of ``CachedCall``: the store and the cached call
catch them, log, and carry on as if caching were disabled.
"""


class CacheError(Exception):
    """Base class for cache-internal failures."""


class StorageAccessError(CacheError):
    """The backing storage medium refused a read or write."""


class StorageQuotaExceededError(StorageAccessError):
    """A write would push the storage medium past its byte quota."""


class SerializationError(CacheError):
    """A cache key or payload could not be serialized."""
