"""Event system for mission control.

A thread-safe event bus for pub/sub notification of fleet changes: launchpads
registering, becoming healthy or unresponsive, and the fleet node set being
recomputed. Components that need the bus receive it through the
:class:`~missioncontrol.registry.CapabilityRegistry`.

Example usage:

    >>> from missioncontrol.events import EventBus, EventType
    >>>
    >>> bus = EventBus()
    >>>
    >>> def on_unresponsive(event):
    ...     print(f"Lost {event.data['pad_id']}")
    >>>
    >>> bus.subscribe(EventType.LAUNCHPAD_UNRESPONSIVE, on_unresponsive)
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Event Types
# =============================================================================


class EventType(Enum):
    """Types of events emitted by mission control."""

    # Launchpad lifecycle
    LAUNCHPAD_REGISTERED = auto()
    LAUNCHPAD_DEREGISTERED = auto()

    # Launchpad health transitions
    LAUNCHPAD_HEALTHY = auto()
    LAUNCHPAD_UNRESPONSIVE = auto()

    # Fleet node set recomputed with a different content
    FLEET_CHANGED = auto()

    # Monitor lifecycle
    MONITOR_STARTED = auto()
    MONITOR_STOPPED = auto()

    # Custom event type for extensions
    CUSTOM = auto()


@dataclass
class Event:
    """Base event class with metadata.

    Attributes:
        event_type: Type of the event.
        source: Name of the component that emitted the event.
        data: Event-specific data dictionary.
        timestamp: When the event was created (auto-generated).
        event_id: Unique identifier for the event (auto-generated).
    """

    event_type: EventType
    source: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def __str__(self) -> str:
        return (
            f"Event({self.event_type.name}, source={self.source}, "
            f"data_keys={list(self.data.keys())})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.name,
            "source": self.source,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "event_id": self.event_id,
        }


EventCallback = Callable[[Event], None]


# =============================================================================
# Event Bus
# =============================================================================


class EventBus:
    """Thread-safe pub/sub bus delivering events in the emitting thread.

    Subscribers run after the bus lock is released. A subscriber that raises
    is logged and the event still reaches the others.
    """

    def __init__(self, enable_history: bool = False, history_size: int = 1000) -> None:
        self._subscribers: Dict[Optional[EventType], List[EventCallback]] = {}
        self._lock = threading.Lock()
        self._history: Optional[Deque[Event]] = (
            deque(maxlen=history_size) if enable_history else None
        )

    def subscribe(self, event_type: Optional[EventType], callback: EventCallback) -> None:
        """Subscribe to one event type, or to every event with None."""
        with self._lock:
            callbacks = self._subscribers.setdefault(event_type, [])
            if callback not in callbacks:
                callbacks.append(callback)

    def unsubscribe(self, event_type: Optional[EventType], callback: EventCallback) -> bool:
        """Returns True if the callback was subscribed."""
        with self._lock:
            callbacks = self._subscribers.get(event_type, [])
            if callback not in callbacks:
                return False
            callbacks.remove(callback)
            return True

    def emit(self, event: Event) -> None:
        with self._lock:
            if self._history is not None:
                self._history.append(event)
            callbacks = self._subscribers.get(event.event_type, []) + self._subscribers.get(None, [])

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    f"Error in event callback for {event.event_type.name}: {e}",
                    exc_info=True,
                )

    def get_history(
        self,
        event_type: Optional[EventType] = None,
        limit: Optional[int] = None,
    ) -> List[Event]:
        """Past events, oldest first (empty unless history is enabled)."""
        with self._lock:
            history = list(self._history) if self._history is not None else []
        if event_type is not None:
            history = [e for e in history if e.event_type == event_type]
        if limit is not None:
            history = history[-limit:]
        return history
