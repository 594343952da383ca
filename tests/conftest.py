"""Shared pytest fixtures for MissionControl tests."""
import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict

import pytest

from missioncontrol.config import Config, StorageFolderConfig
from missioncontrol.events import EventBus
from missioncontrol.registry import CapabilityRegistry


# ============================================================================
# Filesystem
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    if temp_path.exists():
        shutil.rmtree(temp_path)


# ============================================================================
# Configuration
# ============================================================================

@pytest.fixture
def full_config() -> Config:
    """Configuration with every field set to a non-default value."""
    return Config(
        control_end_points=["http://0.0.0.0:8000", "http://[::]:8000"],
        launch_pads_entry="http://127.0.0.1:7000",
        storage_folders=[
            StorageFolderConfig(path="/var/missioncontrol/a"),
            StorageFolderConfig(path="/var/missioncontrol/b", maximum_size=1 << 30),
        ],
        health_monitoring_interval_sec=2,
        launch_pad_feedback_timeout_sec=10,
    )


@pytest.fixture
def config_file(temp_dir, full_config) -> Path:
    """JSON configuration file holding ``full_config``."""
    path = temp_dir / "config.json"
    path.write_text(json.dumps(full_config.to_dict(), indent=2), encoding="utf-8")
    return path


# ============================================================================
# Launch catalog
# ============================================================================

@pytest.fixture
def catalog_data() -> Dict[str, Any]:
    """A valid launch catalog manifest."""
    return {
        "payloads": [
            {
                "name": "engine",
                "files": [
                    {"path": "Engine/Binaries/Render.exe", "md5": "5ac1c1b4c5b2fb8c9a1b5b51e1a3c6ad"},
                    {"path": "Engine/Content/Scene.pak", "md5": "0d5f2a4ecbd3a9a1dd6c0e5c9b38c0c1"},
                ],
            },
        ],
        "launchables": [
            {
                "name": "Cluster Node",
                "type": "cluster",
                "data": {"clusterId": 1},
                "payloads": ["engine"],
                "launchPath": "Engine/Binaries/Render.exe",
                "globalParameters": [
                    {
                        "name": "Frame rate",
                        "group": "Display",
                        "id": "frameRate",
                        "type": "float",
                        "defaultValue": 60,
                        "constraint": {"type": "range", "min": 1, "max": 240},
                    },
                ],
                "launchComplexParameters": [
                    {
                        "name": "Scene",
                        "id": "scene",
                        "type": "string",
                        "defaultValue": "main",
                        "constraint": {"type": "list", "choices": ["main", "backup"]},
                    },
                ],
                "launchPadParameters": [
                    {
                        "name": "Node role",
                        "id": "nodeRole",
                        "type": "string",
                        "defaultValue": "emitter",
                        "constraint": {"type": "regularExpression", "regularExpression": "^[a-z]+$"},
                    },
                    {
                        "name": "Display index",
                        "id": "displayIndex",
                        "type": "integer",
                        "defaultValue": 0,
                        "toBeRevisedByCapcom": True,
                    },
                    {
                        "name": "Verbose",
                        "id": "verbose",
                        "type": "boolean",
                        "defaultValue": False,
                        "hidden": True,
                    },
                ],
            },
        ],
    }


@pytest.fixture
def catalog_file(temp_dir, catalog_data) -> Path:
    """JSON launch catalog holding ``catalog_data``."""
    path = temp_dir / "LaunchCatalog.json"
    path.write_text(json.dumps(catalog_data, indent=2), encoding="utf-8")
    return path


# ============================================================================
# Monitoring
# ============================================================================

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def event_bus():
    """Event bus with history enabled."""
    return EventBus(enable_history=True)


@pytest.fixture
def registry(event_bus) -> CapabilityRegistry:
    """Registry providing ``event_bus``."""
    registry = CapabilityRegistry()
    registry.provide(EventBus, event_bus)
    return registry


# ============================================================================
# Logging
# ============================================================================

@pytest.fixture(autouse=True)
def reset_missioncontrol_logging():
    """Undo handler and level changes made by configure_logging."""
    yield
    root_logger = logging.getLogger("missioncontrol")
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("missioncontrol."):
            logging.getLogger(name).setLevel(logging.NOTSET)

    import missioncontrol.utils.logging as mc_logging
    mc_logging._log_config = None
    mc_logging._configured_loggers.clear()
