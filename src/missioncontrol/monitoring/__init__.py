"""Fleet health monitoring."""

from .health import (
    HealthMonitor,
    LaunchPadHealth,
    LaunchPadStatus,
)

__all__ = [
    "HealthMonitor",
    "LaunchPadHealth",
    "LaunchPadStatus",
]
