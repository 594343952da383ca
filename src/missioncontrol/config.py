"""Operational configuration of mission control.

The configuration is loaded once at process start and treated as immutable
for the rest of the session; changing it requires a reload. It is persisted
as JSON (YAML is accepted as well):

    {
        "ControlEndPoints": ["http://0.0.0.0:8000"],
        "LaunchPadsEntry": "http://127.0.0.1:7000",
        "StorageFolders": [{"Path": "/var/missioncontrol", "MaximumSize": 0}],
        "HealthMonitoringIntervalSec": 5,
        "LaunchPadFeedbackTimeoutSec": 30
    }

Field names are matched case-insensitively, unknown fields are ignored and
missing fields take their default value. Anything malformed raises
:class:`~missioncontrol.errors.ConfigurationError` naming the field, which is
fatal to process start.

Example usage:

    >>> from missioncontrol.config import Config, load_config, save_config
    >>>
    >>> config = load_config("config.json")
    >>> config.health_monitoring_interval_sec
    5
    >>> save_config(config, "config.yaml")
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONTROL_END_POINTS = ["http://0.0.0.0:8000"]
DEFAULT_HEALTH_MONITORING_INTERVAL_SEC = 5
DEFAULT_LAUNCH_PAD_FEEDBACK_TIMEOUT_SEC = 30


@dataclass
class StorageFolderConfig:
    """Folder where mission control stores payloads and launch assets.

    Attributes:
        path: Filesystem path of the folder
        maximum_size: Maximum number of bytes to use in the folder (0 = no limit)
    """
    path: str = ""
    maximum_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"Path": self.path, "MaximumSize": self.maximum_size}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "StorageFolderConfig":
        key = f"StorageFolders[{index}]"
        if not isinstance(data, dict):
            raise ConfigurationError(f"{key} must be an object", config_key=key)

        fields = _casefold_keys(data)
        path = fields.get("path")
        if not isinstance(path, str):
            raise ConfigurationError(
                f"{key}.Path must be a string", config_key=f"{key}.Path", config_value=path
            )
        maximum_size = fields.get("maximumsize", 0)
        if not _is_int(maximum_size):
            raise ConfigurationError(
                f"{key}.MaximumSize must be an integer",
                config_key=f"{key}.MaximumSize",
                config_value=maximum_size,
            )
        return cls(path=path, maximum_size=maximum_size)


@dataclass
class Config:
    """Mission control operational configuration.

    Equality is structural over every field, including the order of
    ``control_end_points`` and ``storage_folders``.

    Attributes:
        control_end_points: Addresses the control REST interface binds to
        launch_pads_entry: Base address launchpads use to reach mission control
        storage_folders: Folders used to store payloads and launch assets
        health_monitoring_interval_sec: Seconds between two health evaluations
        launch_pad_feedback_timeout_sec: Seconds without feedback before a
            launchpad is considered unresponsive
    """

    control_end_points: List[str] = field(
        default_factory=lambda: list(DEFAULT_CONTROL_END_POINTS)
    )
    launch_pads_entry: Optional[str] = None
    storage_folders: List[StorageFolderConfig] = field(default_factory=list)
    health_monitoring_interval_sec: int = DEFAULT_HEALTH_MONITORING_INTERVAL_SEC
    launch_pad_feedback_timeout_sec: int = DEFAULT_LAUNCH_PAD_FEEDBACK_TIMEOUT_SEC

    def _problems(self) -> Iterator[Tuple[str, str]]:
        if not all(isinstance(e, str) and e for e in self.control_end_points):
            yield "ControlEndPoints", "ControlEndPoints must only contain non-empty strings"
        if self.launch_pads_entry is not None and not self.launch_pads_entry:
            yield "LaunchPadsEntry", "LaunchPadsEntry must not be an empty string"
        for i, folder in enumerate(self.storage_folders):
            if not folder.path:
                yield f"StorageFolders[{i}].Path", f"StorageFolders[{i}].Path must not be empty"
            if folder.maximum_size < 0:
                yield (
                    f"StorageFolders[{i}].MaximumSize",
                    f"StorageFolders[{i}].MaximumSize must be non-negative, "
                    f"got {folder.maximum_size}",
                )
        if self.health_monitoring_interval_sec <= 0:
            yield (
                "HealthMonitoringIntervalSec",
                f"HealthMonitoringIntervalSec must be positive, "
                f"got {self.health_monitoring_interval_sec}",
            )
        if self.launch_pad_feedback_timeout_sec <= 0:
            yield (
                "LaunchPadFeedbackTimeoutSec",
                f"LaunchPadFeedbackTimeoutSec must be positive, "
                f"got {self.launch_pad_feedback_timeout_sec}",
            )

    def validate(self) -> List[str]:
        """Validate configuration values.

        Returns:
            List of validation error messages (empty if valid).
        """
        return [message for _, message in self._problems()]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted (PascalCase) representation."""
        return {
            "ControlEndPoints": list(self.control_end_points),
            "LaunchPadsEntry": self.launch_pads_entry,
            "StorageFolders": [f.to_dict() for f in self.storage_folders],
            "HealthMonitoringIntervalSec": self.health_monitoring_interval_sec,
            "LaunchPadFeedbackTimeoutSec": self.launch_pad_feedback_timeout_sec,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create configuration from its persisted representation.

        Raises:
            ConfigurationError: A field is malformed or invalid.
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a JSON object")

        fields = _casefold_keys(data)
        kwargs: Dict[str, Any] = {}

        if "controlendpoints" in fields:
            end_points = fields["controlendpoints"]
            if not isinstance(end_points, list):
                raise ConfigurationError(
                    "ControlEndPoints must be an array of strings",
                    config_key="ControlEndPoints",
                    config_value=end_points,
                )
            kwargs["control_end_points"] = list(end_points)

        if "launchpadsentry" in fields:
            entry = fields["launchpadsentry"]
            if entry is not None and not isinstance(entry, str):
                raise ConfigurationError(
                    "LaunchPadsEntry must be a string",
                    config_key="LaunchPadsEntry",
                    config_value=entry,
                )
            kwargs["launch_pads_entry"] = entry

        if "storagefolders" in fields:
            folders = fields["storagefolders"]
            if not isinstance(folders, list):
                raise ConfigurationError(
                    "StorageFolders must be an array of objects",
                    config_key="StorageFolders",
                    config_value=folders,
                )
            kwargs["storage_folders"] = [
                StorageFolderConfig.from_dict(f, i) for i, f in enumerate(folders)
            ]

        for key, attribute in (
            ("HealthMonitoringIntervalSec", "health_monitoring_interval_sec"),
            ("LaunchPadFeedbackTimeoutSec", "launch_pad_feedback_timeout_sec"),
        ):
            if key.lower() in fields:
                value = fields[key.lower()]
                if not _is_int(value):
                    raise ConfigurationError(
                        f"{key} must be an integer", config_key=key, config_value=value
                    )
                kwargs[attribute] = value

        config = cls(**kwargs)
        for key, message in config._problems():
            raise ConfigurationError(message, config_key=key, config_value=fields.get(key.lower()))
        return config

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "Config":
        """Parse configuration from JSON text.

        Raises:
            ConfigurationError: Text is not valid JSON or a field is invalid.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Malformed configuration JSON at line {e.lineno} column {e.colno}: {e.msg}",
                cause=e,
            ) from e
        return cls.from_dict(data)


def _casefold_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k).lower(): v for k, v in data.items()}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def load_config(path: Union[str, Path]) -> Config:
    """Load configuration from a JSON or YAML file.

    Args:
        path: Path to configuration file (.json, .yaml, or .yml).

    Returns:
        Loaded configuration.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigurationError: If the file is malformed or a field is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed configuration YAML in {path}: {e}", cause=e) from e
        config = Config.from_dict(data if data is not None else {})
    else:
        config = Config.from_json(text)

    logger.info(f"Loaded configuration from {path}")
    return config


def save_config(config: Config, path: Union[str, Path]) -> None:
    """Save configuration to a JSON or YAML file.

    Args:
        config: Configuration to save.
        path: Output path (.json, .yaml, or .yml).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    suffix = path.suffix.lower()
    with open(path, "w", encoding="utf-8") as f:
        if suffix in (".yaml", ".yml"):
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
        else:
            f.write(config.to_json())

    logger.info(f"Configuration saved to {path}")
