"""MissionControl - coordination core of a rendering cluster launch service."""
__version__ = "0.1.0"

from .config import Config, StorageFolderConfig, load_config, save_config
from .registry import CapabilityRegistry
from .events import Event, EventBus, EventType
from .cluster import NodeBitVector

from .errors import (
    MissionControlError,
    ConversionError,
    FormatError,
    InvalidCastError,
    OverflowError as ConversionOverflowError,
    InvalidOperationError,
    FatalError,
    ValidationError,
    ConfigurationError,
)

from .catalog import (
    LaunchParameterType,
    LaunchParameter,
    Catalog,
    load_catalog,
    try_convert,
    convert,
)

from .monitoring import HealthMonitor, LaunchPadHealth, LaunchPadStatus

# Structured logging
from .utils.logging import (
    LogConfig,
    MissionControlLogger,
    configure_logging,
    get_logger,
    set_level,
)

__all__ = [
    "__version__",
    "Config",
    "StorageFolderConfig",
    "load_config",
    "save_config",
    "CapabilityRegistry",
    "Event",
    "EventBus",
    "EventType",
    "NodeBitVector",
    "MissionControlError",
    "ConversionError",
    "FormatError",
    "InvalidCastError",
    "ConversionOverflowError",
    "InvalidOperationError",
    "FatalError",
    "ValidationError",
    "ConfigurationError",
    "LaunchParameterType",
    "LaunchParameter",
    "Catalog",
    "load_catalog",
    "try_convert",
    "convert",
    "HealthMonitor",
    "LaunchPadHealth",
    "LaunchPadStatus",
    "LogConfig",
    "MissionControlLogger",
    "configure_logging",
    "get_logger",
    "set_level",
]
