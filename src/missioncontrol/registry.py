"""Capability registry.

Lets the core depend on abstract capabilities (storage, transport, event
delivery...) without importing their implementations. Each capability has
at most one provider; providing a new one replaces the previous provider for
the rest of the registry's lifetime.

The registry is an explicit object handed to the components that need it,
so tests can build their own and substitute providers freely.

Example usage:

    >>> registry = CapabilityRegistry()
    >>> registry.provide(EventBus, EventBus())
    >>> bus = registry.get(EventBus)
    >>> found, bus = registry.try_get(EventBus)
"""

import logging
import threading
from typing import Any, Dict, Hashable, List, Optional, Tuple, Type, TypeVar, overload

from .errors import InvalidOperationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CapabilityRegistry:
    """Maps a capability identifier to exactly one live provider.

    Capability identifiers are usually classes (abstract base classes or
    protocols) but any hashable key is accepted.
    """

    def __init__(self):
        self._providers: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def provide(self, capability: Hashable, provider: Any) -> None:
        """Register ``provider`` for ``capability``, replacing any previous one."""
        with self._lock:
            replaced = capability in self._providers
            self._providers[capability] = provider

        if replaced:
            logger.info(f"Replacing provider for capability: {_capability_name(capability)}")
        else:
            logger.debug(f"Registered provider for capability: {_capability_name(capability)}")

    @overload
    def get(self, capability: Type[T]) -> T: ...

    @overload
    def get(self, capability: Hashable) -> Any: ...

    def get(self, capability):
        """Get the provider of ``capability``.

        Raises:
            InvalidOperationError: No provider is registered.
        """
        found, provider = self.try_get(capability)
        if not found:
            raise InvalidOperationError(
                f"No provider registered for capability {_capability_name(capability)}",
                details={"capability": _capability_name(capability)},
            )
        return provider

    def try_get(self, capability: Hashable) -> Tuple[bool, Optional[Any]]:
        """Get the provider of ``capability`` without raising.

        Returns:
            Tuple of (found, provider). provider is None when not found.
        """
        with self._lock:
            if capability in self._providers:
                return True, self._providers[capability]
        return False, None

    def __contains__(self, capability: Hashable) -> bool:
        with self._lock:
            return capability in self._providers

    def capabilities(self) -> List[str]:
        """Names of all capabilities that currently have a provider."""
        with self._lock:
            return [_capability_name(c) for c in self._providers]


def _capability_name(capability: Hashable) -> str:
    if isinstance(capability, type):
        return capability.__qualname__
    return str(capability)
