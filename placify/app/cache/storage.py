"""Session-scoped key/value storage backing the response cache."""

from typing import Protocol

from placify.app.cache.errors import StorageQuotaExceededError


class StorageMedium(Protocol):
    """String-keyed storage the cache store can sit on."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class SessionStorage:
    """In-memory storage that lives as long as one client session.

    Shared by everything in the session, so the cache only ever touches keys
    under its own namespace. ``quota_bytes`` caps the total size of keys and
    values, counted as UTF-8.
    """

    def __init__(self, quota_bytes: int | None = None):
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            projected = self.used_bytes() - self._size(key, self._items.get(key)) + self._size(key, value)
            if projected > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Storing {key!r} would use {projected} of {self.quota_bytes} bytes"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def used_bytes(self) -> int:
        return sum(self._size(k, v) for k, v in self._items.items())

    @staticmethod
    def _size(key: str, value: str | None) -> int:
        if value is None:
            return 0
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))

    def __len__(self) -> int:
        return len(self._items)
