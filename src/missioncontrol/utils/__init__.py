"""Utility modules for mission control."""

from .logging import (
    LogConfig,
    JSONFormatter,
    TextFormatter,
    MissionControlLogger,
    configure_logging,
    get_logger,
    set_level,
)

__all__ = [
    "LogConfig",
    "JSONFormatter",
    "TextFormatter",
    "MissionControlLogger",
    "configure_logging",
    "get_logger",
    "set_level",
]
