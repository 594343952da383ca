"""Structured logging utilities for mission control.

Every module logs through ``logging.getLogger(__name__)``, so all records
flow into the ``missioncontrol`` logger configured here. Two output formats
are supported:

- ``text`` for operators watching a terminal
- ``json`` for log shippers, one object per line

Example usage:
    >>> from missioncontrol.utils.logging import LogConfig, configure_logging, get_logger
    >>>
    >>> configure_logging(LogConfig(
    ...     log_level="INFO",
    ...     log_format="json",
    ...     log_file="./logs/missioncontrol.log",
    ...     component_levels={"monitoring": "DEBUG"},
    ... ))
    >>>
    >>> logger = get_logger("monitoring")
    >>> logger.launchpad_event("pad-a", "unresponsive", node_index=3)
"""

import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterable, Literal, Optional

ROOT_LOGGER = "missioncontrol"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]

_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class LogConfig:
    """Configuration for mission control logging.

    Attributes:
        log_level: Default log level for all components
        log_format: Output format ('text' for human-readable, 'json' for structured)
        log_file: Optional file path for log output
        component_levels: Component-specific log levels, keyed by the logger
            name below ``missioncontrol`` (e.g. ``"monitoring.health"``)
        max_file_size_mb: Maximum log file size before rotation
        backup_count: Number of rotated log files to keep
        include_timestamp: Whether to include timestamps in text output
        include_source: Whether to include source file/line information
    """

    log_level: LogLevel = "INFO"
    log_format: LogFormat = "text"
    log_file: Optional[str] = None
    component_levels: Dict[str, LogLevel] = field(default_factory=dict)
    max_file_size_mb: int = 10
    backup_count: int = 5
    include_timestamp: bool = True
    include_source: bool = False

    def __post_init__(self) -> None:
        if self.log_level.upper() not in _VALID_LEVELS:
            raise ValueError(
                f"Invalid log_level '{self.log_level}'. "
                f"Must be one of: {sorted(_VALID_LEVELS)}"
            )
        if self.log_format not in ("text", "json"):
            raise ValueError(
                f"Invalid log_format '{self.log_format}'. "
                "Must be 'text' or 'json'"
            )
        for component, level in self.component_levels.items():
            if level.upper() not in _VALID_LEVELS:
                raise ValueError(
                    f"Invalid log level '{level}' for component '{component}'. "
                    f"Must be one of: {sorted(_VALID_LEVELS)}"
                )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogConfig":
        return cls(
            log_level=data.get("log_level", "INFO"),
            log_format=data.get("log_format", "text"),
            log_file=data.get("log_file"),
            component_levels=data.get("component_levels", {}),
            max_file_size_mb=data.get("max_file_size_mb", 10),
            backup_count=data.get("backup_count", 5),
            include_timestamp=data.get("include_timestamp", True),
            include_source=data.get("include_source", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_level": self.log_level,
            "log_format": self.log_format,
            "log_file": self.log_file,
            "component_levels": dict(self.component_levels),
            "max_file_size_mb": self.max_file_size_mb,
            "backup_count": self.backup_count,
            "include_timestamp": self.include_timestamp,
            "include_source": self.include_source,
        }


def _component(record: logging.LogRecord) -> str:
    prefix = ROOT_LOGGER + "."
    if record.name.startswith(prefix):
        return record.name[len(prefix):]
    return record.name


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Outputs one JSON object per record:
    {
        "timestamp": "2026-03-02T10:30:45.123Z",
        "level": "WARNING",
        "component": "monitoring.health",
        "message": "Launchpad unresponsive: pad-a",
        "pad_id": "pad-a"
    }
    """

    def __init__(self, include_source: bool = False) -> None:
        super().__init__()
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: Dict[str, Any] = {
            "timestamp": timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "component": _component(record),
            "message": record.getMessage(),
        }

        if self.include_source:
            log_entry["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_entry.update(extra_fields)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter.

    Outputs records as:
    2026-03-02 10:30:45 | WARNING  | monitoring.health | Launchpad unresponsive [pad_id=pad-a]
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_source: bool = False,
    ) -> None:
        self.include_timestamp = include_timestamp
        self.include_source = include_source

        if include_timestamp:
            fmt = "%(asctime)s | %(levelname)-8s | %(component)s | %(message)s"
        else:
            fmt = "%(levelname)-8s | %(component)s | %(message)s"

        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def formatMessage(self, record: logging.LogRecord) -> str:
        record.component = _component(record)
        message = record.message

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            message += " [" + ", ".join(f"{k}={v}" for k, v in extra_fields.items()) + "]"

        if self.include_source:
            message += f" ({record.filename}:{record.lineno})"

        return super().formatMessage(
            logging.makeLogRecord(dict(record.__dict__, message=message))
        )


class MissionControlLogger(logging.LoggerAdapter):
    """Logger adapter accepting structured fields as keyword arguments.

    Keyword arguments other than the standard logging ones are collected
    into ``extra_fields`` and rendered by the formatters above.
    """

    def __init__(
        self,
        logger: logging.Logger,
        component: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(logger, extra or {})
        self.component = component

    def process(
        self,
        msg: str,
        kwargs: Dict[str, Any],
    ) -> tuple:
        extra_fields = {}
        for key in list(kwargs.keys()):
            if key not in ("exc_info", "stack_info", "stacklevel", "extra"):
                extra_fields[key] = kwargs.pop(key)

        if self.extra:
            extra_fields.update(self.extra)

        kwargs.setdefault("extra", {})
        kwargs["extra"]["extra_fields"] = extra_fields

        return msg, kwargs

    def launchpad_event(self, pad_id: str, event: str, **kwargs: Any) -> None:
        """Log a launchpad lifecycle or health transition."""
        level = logging.WARNING if event == "unresponsive" else logging.INFO
        self.log(level, f"Launchpad {event}: {pad_id}", pad_id=pad_id, event=event, **kwargs)

    def fleet_update(self, indices: Iterable[int], **kwargs: Any) -> None:
        """Log the node indices of the current fleet."""
        indices = list(indices)
        self.info(
            f"Fleet: {len(indices)} healthy node(s)",
            fleet=indices,
            fleet_size=len(indices),
            **kwargs,
        )


_log_config: Optional[LogConfig] = None
_configured_loggers: Dict[str, MissionControlLogger] = {}


def _make_formatter(config: LogConfig) -> logging.Formatter:
    if config.log_format == "json":
        return JSONFormatter(include_source=config.include_source)
    return TextFormatter(
        include_timestamp=config.include_timestamp,
        include_source=config.include_source,
    )


def configure_logging(config: Optional[LogConfig] = None) -> None:
    """Configure the ``missioncontrol`` logger.

    Called once at process start. Calling it again replaces the handlers
    installed by the previous call.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    global _log_config

    if config is None:
        config = LogConfig()

    _log_config = config
    level = getattr(logging, config.log_level.upper())

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = _make_formatter(config)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    for component, component_level in config.component_levels.items():
        component_logger = logging.getLogger(f"{ROOT_LOGGER}.{component}")
        component_logger.setLevel(getattr(logging, component_level.upper()))

    root_logger.propagate = False


def get_logger(component: str) -> MissionControlLogger:
    """Get a structured logger for a component.

    Args:
        component: Logger name below ``missioncontrol`` (e.g. 'monitoring')

    Example:
        >>> logger = get_logger("monitoring")
        >>> logger.info("Evaluation done", fleet_size=12)
    """
    if _log_config is None:
        configure_logging()

    if component in _configured_loggers:
        return _configured_loggers[component]

    base_logger = logging.getLogger(f"{ROOT_LOGGER}.{component}")
    if _log_config and component in _log_config.component_levels:
        base_logger.setLevel(getattr(logging, _log_config.component_levels[component].upper()))

    logger = MissionControlLogger(base_logger, component)
    _configured_loggers[component] = logger
    return logger


def get_config() -> Optional[LogConfig]:
    """Get current logging configuration."""
    return _log_config


def set_level(level: LogLevel, component: Optional[str] = None) -> None:
    """Set log level dynamically.

    Args:
        level: New log level
        component: Component to set level for (None for the whole package)
    """
    name = f"{ROOT_LOGGER}.{component}" if component else ROOT_LOGGER
    logging.getLogger(name).setLevel(getattr(logging, level.upper()))


def configure_from_cli(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
) -> LogConfig:
    """Configure logging from CLI arguments.

    Returns:
        The LogConfig that was applied.
    """
    config = LogConfig(
        log_level=log_level.upper() if log_level else "INFO",
        log_format=log_format if log_format in ("text", "json") else "text",
        log_file=log_file,
    )
    configure_logging(config)
    return config


def get_cli_args_parser():
    """Get argparse arguments for logging configuration.

    Returns:
        List of (args, kwargs) tuples for argparse.add_argument()
    """
    return [
        (
            ("--log-level",),
            {
                "type": str.upper,
                "choices": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                "default": "WARNING",
                "help": "Set logging level (default: WARNING)",
            },
        ),
        (
            ("--log-format",),
            {
                "type": str,
                "choices": ["text", "json"],
                "default": "text",
                "help": "Set logging format (default: text)",
            },
        ),
        (
            ("--log-file",),
            {
                "type": str,
                "default": None,
                "help": "Path to log file (default: stderr only)",
            },
        ),
    ]
