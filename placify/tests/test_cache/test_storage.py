"""Tests for the in-memory session storage medium."""

import pytest

from placify.app.cache.errors import StorageAccessError, StorageQuotaExceededError
from placify.app.cache.storage import SessionStorage


def test_set_get_remove():
    storage = SessionStorage()
    storage.set_item("a", "1")
    assert storage.get_item("a") == "1"
    storage.remove_item("a")
    assert storage.get_item("a") is None
    # Removing twice is fine
    storage.remove_item("a")


def test_keys_and_clear():
    storage = SessionStorage()
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    assert sorted(storage.keys()) == ["a", "b"]
    assert len(storage) == 2
    storage.clear()
    assert storage.keys() == []


def test_quota_rejects_oversized_write():
    storage = SessionStorage(quota_bytes=10)
    storage.set_item("k", "12345")
    with pytest.raises(StorageQuotaExceededError):
        storage.set_item("k2", "123456789")
    assert storage.get_item("k2") is None
    assert issubclass(StorageQuotaExceededError, StorageAccessError)


def test_quota_counts_replaced_value_once():
    storage = SessionStorage(quota_bytes=10)
    storage.set_item("k", "123456789")
    # Overwriting frees the old value first
    storage.set_item("k", "987654321")
    assert storage.get_item("k") == "987654321"
    assert storage.used_bytes() == 10
