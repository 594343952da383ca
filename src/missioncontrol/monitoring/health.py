"""Launchpad health monitoring.

Tracks the liveness of every launchpad in the fleet from the feedback they
periodically send. A launchpad that stays silent for longer than
``Config.launch_pad_feedback_timeout_sec`` is marked unresponsive and its
node bit is cleared from the fleet set; any later feedback brings it back.

Each launchpad goes through the following states::

    UNKNOWN --feedback--> HEALTHY --silence > timeout--> UNRESPONSIVE
                             ^                                |
                             +-----------feedback-------------+

There is no terminal state: a launchpad leaves the monitor only when it is
deregistered. Unresponsive launchpads are reported through callbacks, the
event bus and the log, never by raising.

Example usage:

    >>> from missioncontrol.cluster import NodeBitVector
    >>> from missioncontrol.config import Config
    >>> from missioncontrol.monitoring import HealthMonitor
    >>>
    >>> monitor = HealthMonitor(Config())
    >>> monitor.register_launchpad("pad-a", node_index=0)
    >>> monitor.record_feedback("pad-a")
    >>> monitor.start()
    >>> quorum = monitor.quorum(NodeBitVector.from_indices([0, 1]))
    >>> monitor.stop()
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..cluster import NodeBitVector
from ..config import Config
from ..errors import InvalidOperationError
from ..events import Event, EventBus, EventType
from ..registry import CapabilityRegistry
from ..utils.logging import MissionControlLogger

logger = logging.getLogger(__name__)
pad_log = MissionControlLogger(logger, "monitoring.health")

EVENT_SOURCE = "health_monitor"


class LaunchPadStatus(str, Enum):
    """Health status of a launchpad."""
    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    UNRESPONSIVE = "unresponsive"


@dataclass
class LaunchPadHealth:
    """Health record of one launchpad.

    Timestamps come from the monitor clock (``time.monotonic`` by default).

    Attributes:
        pad_id: Unique identifier of the launchpad
        node_index: Index of the launchpad in the fleet node set (0-63)
        status: Current health status
        last_feedback: Time of the last feedback received, None if never
        registered_at: Time the launchpad was registered
    """
    pad_id: str
    node_index: int
    status: LaunchPadStatus = LaunchPadStatus.UNKNOWN
    last_feedback: Optional[float] = None
    registered_at: float = 0.0

    @property
    def is_healthy(self) -> bool:
        return self.status == LaunchPadStatus.HEALTHY

    def silence(self, now: float) -> Optional[float]:
        """Seconds elapsed since the last feedback, None if there was none."""
        if self.last_feedback is None:
            return None
        return now - self.last_feedback

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pad_id": self.pad_id,
            "node_index": self.node_index,
            "status": self.status.value,
            "last_feedback": self.last_feedback,
            "registered_at": self.registered_at,
        }


HealthCallback = Callable[[LaunchPadHealth, str], None]


class HealthMonitor:
    """Evaluates launchpad liveness and maintains the fleet node set.

    A single lock guards the launchpad records and the fleet set. Callbacks
    and event bus notifications always run after the lock is released, so a
    slow subscriber never delays feedback recording.

    Callbacks receive a copy of the launchpad record and one of the event
    names ``"registered"``, ``"deregistered"``, ``"healthy"`` or
    ``"unresponsive"``.
    """

    def __init__(
        self,
        config: Config,
        registry: Optional[CapabilityRegistry] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the monitor.

        Args:
            config: Operational configuration providing the evaluation
                interval and the feedback timeout.
            registry: Capability registry used to find the :class:`EventBus`.
                Without one (or without a bus provided) no events are emitted.
            clock: Source of the current time in seconds.
        """
        self.interval = config.health_monitoring_interval_sec
        self.timeout = config.launch_pad_feedback_timeout_sec
        self._registry = registry
        self._clock = clock

        self._pads: Dict[str, LaunchPadHealth] = {}
        self._fleet = NodeBitVector.EMPTY
        self._lock = threading.Lock()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._callbacks: List[HealthCallback] = []

    # =========================================================================
    # Notification
    # =========================================================================

    def add_callback(self, callback: HealthCallback) -> None:
        """Add callback for launchpad events (record, event_name)."""
        self._callbacks.append(callback)

    def _notify(self, pad: LaunchPadHealth, event: str) -> None:
        for callback in list(self._callbacks):
            try:
                callback(pad, event)
            except Exception as e:
                logger.error(f"Health callback error for {pad.pad_id}: {e}", exc_info=True)

    def _event_bus(self) -> Optional[EventBus]:
        if self._registry is None:
            return None
        found, bus = self._registry.try_get(EventBus)
        return bus if found else None

    def _emit(self, event_type: EventType, data: Dict[str, Any]) -> None:
        bus = self._event_bus()
        if bus is not None:
            bus.emit(Event(event_type=event_type, source=EVENT_SOURCE, data=data))

    def _publish(self, pad: LaunchPadHealth, event: str, event_type: EventType) -> None:
        self._notify(pad, event)
        self._emit(event_type, pad.to_dict())

    # =========================================================================
    # Membership
    # =========================================================================

    def register_launchpad(self, pad_id: str, node_index: int) -> LaunchPadHealth:
        """Start monitoring a launchpad.

        The launchpad starts in the UNKNOWN state and joins the fleet set
        after its first feedback and the next evaluation.

        Args:
            pad_id: Unique identifier of the launchpad.
            node_index: Index assigned by the cluster membership registry.

        Returns:
            Copy of the new health record.

        Raises:
            TypeError: node_index is not an integer.
            IndexError: node_index is outside 0-63.
            InvalidOperationError: pad_id or node_index is already registered.
        """
        NodeBitVector.from_index(node_index)
        node_index = int(node_index)

        with self._lock:
            if pad_id in self._pads:
                raise InvalidOperationError(
                    f"Launchpad already registered: {pad_id}", details={"pad_id": pad_id}
                )
            for other in self._pads.values():
                if other.node_index == node_index:
                    raise InvalidOperationError(
                        f"Node index {node_index} already used by launchpad {other.pad_id}",
                        details={"pad_id": pad_id, "node_index": node_index},
                    )
            pad = LaunchPadHealth(
                pad_id=pad_id, node_index=node_index, registered_at=self._clock()
            )
            self._pads[pad_id] = pad
            record = replace(pad)

        pad_log.launchpad_event(pad_id, "registered", node_index=node_index)
        self._publish(record, "registered", EventType.LAUNCHPAD_REGISTERED)
        return record

    def deregister_launchpad(self, pad_id: str) -> bool:
        """Stop monitoring a launchpad and remove it from the fleet set.

        Returns:
            True if the launchpad was registered, False otherwise.
        """
        with self._lock:
            pad = self._pads.pop(pad_id, None)
            if pad is None:
                return False
            old_fleet = self._fleet
            self._fleet = self._fleet.unset_bit(pad.node_index)
            new_fleet = self._fleet

        pad_log.launchpad_event(pad_id, "deregistered", node_index=pad.node_index)
        self._publish(pad, "deregistered", EventType.LAUNCHPAD_DEREGISTERED)
        if new_fleet != old_fleet:
            self._emit_fleet_changed(old_fleet, new_fleet)
        return True

    # =========================================================================
    # Feedback and evaluation
    # =========================================================================

    def record_feedback(self, pad_id: str, timestamp: Optional[float] = None) -> bool:
        """Record that a launchpad has sent feedback.

        An UNKNOWN or UNRESPONSIVE launchpad becomes HEALTHY immediately;
        its fleet bit is set by the next evaluation. Feedback may arrive out
        of order: the last feedback time only moves forward, and feedback
        already older than the timeout never revives a launchpad.

        Args:
            pad_id: Identifier of the launchpad.
            timestamp: Feedback time, defaults to the monitor clock.

        Returns:
            False if the launchpad is not registered (the feedback is
            ignored), True otherwise.
        """
        with self._lock:
            pad = self._pads.get(pad_id)
            if pad is None:
                record = None
            else:
                now = self._clock()
                sent = now if timestamp is None else timestamp
                if pad.last_feedback is None or sent > pad.last_feedback:
                    pad.last_feedback = sent
                recovered = (
                    pad.status != LaunchPadStatus.HEALTHY
                    and now - pad.last_feedback <= self.timeout
                )
                if recovered:
                    pad.status = LaunchPadStatus.HEALTHY
                record = replace(pad)

        if record is None:
            logger.warning(f"Feedback from unregistered launchpad ignored: {pad_id}")
            return False

        if recovered:
            pad_log.launchpad_event(pad_id, "healthy", node_index=record.node_index)
            self._publish(record, "healthy", EventType.LAUNCHPAD_HEALTHY)
        return True

    def evaluate(self) -> NodeBitVector:
        """Apply the feedback timeout and recompute the fleet set.

        Every HEALTHY launchpad whose last feedback is older than the timeout
        becomes UNRESPONSIVE. The fleet set is then rebuilt from scratch from
        the launchpads that are HEALTHY.

        Returns:
            The new fleet set.
        """
        now = self._clock()
        lost: List[Tuple[LaunchPadHealth, float]] = []

        with self._lock:
            fleet = NodeBitVector.EMPTY
            for pad in self._pads.values():
                if pad.status == LaunchPadStatus.HEALTHY and pad.silence(now) > self.timeout:
                    pad.status = LaunchPadStatus.UNRESPONSIVE
                    lost.append((replace(pad), pad.silence(now)))
                if pad.status == LaunchPadStatus.HEALTHY:
                    fleet = fleet.set_bit(pad.node_index)
            old_fleet = self._fleet
            self._fleet = fleet

        for pad, silence in lost:
            pad_log.launchpad_event(
                pad.pad_id,
                "unresponsive",
                node_index=pad.node_index,
                silence_sec=round(silence, 1),
                timeout_sec=self.timeout,
            )
            self._publish(pad, "unresponsive", EventType.LAUNCHPAD_UNRESPONSIVE)

        if fleet != old_fleet:
            self._emit_fleet_changed(old_fleet, fleet)
        return fleet

    def _emit_fleet_changed(self, old: NodeBitVector, new: NodeBitVector) -> None:
        pad_log.fleet_update(new.indices(), previous=old.indices())
        self._emit(
            EventType.FLEET_CHANGED,
            {"previous": old.indices(), "current": new.indices(), "size": new.count()},
        )

    # =========================================================================
    # Background ticker
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start evaluating every ``interval`` seconds in a background thread.

        Raises:
            InvalidOperationError: A previous ticker was stopped but is still
                finishing its last evaluation.
        """
        if self.is_running:
            if self._stop_event.is_set():
                raise InvalidOperationError(
                    "Health ticker is still stopping; call stop() again to wait for it"
                )
            return

        # Fresh stop event per run.
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name="missioncontrol-health",
            daemon=True,
        )
        self._thread.start()

        logger.info(
            f"Health monitoring started (interval {self.interval}s, timeout {self.timeout}s)"
        )
        self._emit(EventType.MONITOR_STARTED, {"interval": self.interval, "timeout": self.timeout})

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the ticker, waiting for an in-flight evaluation to complete.

        If ``timeout`` expires first, the ticker is left stopping and
        :attr:`is_running` stays True until a later ``stop()`` sees it exit.
        """
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(
                f"Health ticker still finishing an evaluation after {timeout}s"
            )
            return
        self._thread = None

        logger.info("Health monitoring stopped")
        self._emit(EventType.MONITOR_STOPPED, {})

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self.evaluate()
            except Exception as e:
                logger.error(f"Health evaluation failed: {e}", exc_info=True)

    def __enter__(self) -> "HealthMonitor":
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def fleet(self) -> NodeBitVector:
        """Node set of the launchpads found healthy by the last evaluation."""
        with self._lock:
            return self._fleet

    def quorum(self, selected: NodeBitVector) -> NodeBitVector:
        """Nodes of ``selected`` that are currently part of the fleet."""
        return selected.mask_bits(self.fleet)

    def status_of(self, pad_id: str) -> Optional[LaunchPadStatus]:
        """Status of a launchpad, None if it is not registered."""
        with self._lock:
            pad = self._pads.get(pad_id)
            return pad.status if pad is not None else None

    def snapshot(self) -> List[LaunchPadHealth]:
        """Copies of all health records, ordered by node index."""
        with self._lock:
            pads = [replace(p) for p in self._pads.values()]
        return sorted(pads, key=lambda p: p.node_index)

    def healthy_pads(self) -> List[str]:
        with self._lock:
            return [p.pad_id for p in self._pads.values() if p.is_healthy]

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            counts = {status.value: 0 for status in LaunchPadStatus}
            for pad in self._pads.values():
                counts[pad.status.value] += 1
            return {
                "launchpads": len(self._pads),
                "by_status": counts,
                "fleet": self._fleet.indices(),
                "running": self.is_running,
            }
