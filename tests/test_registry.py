"""Tests for the capability registry."""
import threading
from abc import ABC, abstractmethod

import pytest

from missioncontrol.errors import InvalidOperationError
from missioncontrol.registry import CapabilityRegistry


class Storage(ABC):
    """Capability used by the tests."""

    @abstractmethod
    def read(self, key): ...


class MemoryStorage(Storage):
    def __init__(self, name="memory"):
        self.name = name

    def read(self, key):
        return f"{self.name}:{key}"


@pytest.fixture
def capabilities():
    return CapabilityRegistry()


class TestProvide:
    """Tests for registering providers."""

    def test_get_returns_provider(self, capabilities):
        storage = MemoryStorage()
        capabilities.provide(Storage, storage)
        assert capabilities.get(Storage) is storage

    def test_provide_replaces_previous(self, capabilities):
        """Test the last provider registered wins."""
        first, second = MemoryStorage("first"), MemoryStorage("second")
        capabilities.provide(Storage, first)
        capabilities.provide(Storage, second)
        assert capabilities.get(Storage) is second

    def test_replacement_is_logged(self, capabilities, caplog):
        capabilities.provide(Storage, MemoryStorage())
        with caplog.at_level("INFO", logger="missioncontrol.registry"):
            capabilities.provide(Storage, MemoryStorage())
        assert "Replacing provider for capability: Storage" in caplog.text

    def test_non_class_keys(self, capabilities):
        capabilities.provide("clock", 42)
        assert capabilities.get("clock") == 42
        assert "clock" in capabilities

    def test_capabilities_listing(self, capabilities):
        capabilities.provide(Storage, MemoryStorage())
        capabilities.provide("clock", 1)
        assert sorted(capabilities.capabilities()) == ["Storage", "clock"]

    def test_registries_are_independent(self):
        a, b = CapabilityRegistry(), CapabilityRegistry()
        a.provide(Storage, MemoryStorage())
        assert Storage not in b


class TestLookup:
    """Tests for looking providers up."""

    def test_get_missing_raises(self, capabilities):
        with pytest.raises(InvalidOperationError) as exc_info:
            capabilities.get(Storage)
        assert exc_info.value.details["capability"] == "Storage"

    def test_try_get_missing(self, capabilities):
        assert capabilities.try_get(Storage) == (False, None)

    def test_try_get_found(self, capabilities):
        storage = MemoryStorage()
        capabilities.provide(Storage, storage)
        found, provider = capabilities.try_get(Storage)
        assert found
        assert provider is storage

    def test_try_get_distinguishes_none_provider(self, capabilities):
        """Test a provider registered as None is still found."""
        capabilities.provide("optional", None)
        assert capabilities.try_get("optional") == (True, None)

    def test_concurrent_provide(self, capabilities):
        def worker(index):
            for _ in range(100):
                capabilities.provide(Storage, MemoryStorage(str(index)))
                capabilities.get(Storage)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert isinstance(capabilities.get(Storage), MemoryStorage)
