"""Tests for the operational configuration."""
import json

import pytest
import yaml

from missioncontrol.config import (
    DEFAULT_CONTROL_END_POINTS,
    Config,
    StorageFolderConfig,
    load_config,
    save_config,
)
from missioncontrol.errors import ConfigurationError, FatalError


class TestConfigDefaults:
    """Test Config dataclass creation with defaults."""

    def test_defaults(self):
        config = Config()

        assert config.control_end_points == ["http://0.0.0.0:8000"]
        assert config.launch_pads_entry is None
        assert config.storage_folders == []
        assert config.health_monitoring_interval_sec == 5
        assert config.launch_pad_feedback_timeout_sec == 30
        assert config.validate() == []

    def test_default_end_points_not_shared(self):
        """Test instances do not share the default end point list."""
        config = Config()
        config.control_end_points.append("http://10.0.0.1:8000")
        assert Config().control_end_points == DEFAULT_CONTROL_END_POINTS

    def test_empty_json_object_gives_defaults(self):
        assert Config.from_json("{}") == Config()


class TestConfigEquality:
    """Test structural equality."""

    def test_equal(self, full_config):
        assert Config.from_dict(full_config.to_dict()) == full_config

    def test_end_point_order_matters(self, full_config):
        other = Config.from_dict(full_config.to_dict())
        other.control_end_points.reverse()
        assert other != full_config

    def test_storage_folder_order_matters(self, full_config):
        other = Config.from_dict(full_config.to_dict())
        other.storage_folders.reverse()
        assert other != full_config

    def test_storage_folder_path_matters(self, full_config):
        other = Config.from_dict(full_config.to_dict())
        other.storage_folders[0].path = "/elsewhere"
        assert other != full_config

    def test_each_field_matters(self, full_config):
        for change in (
            {"launch_pads_entry": "http://127.0.0.1:7001"},
            {"health_monitoring_interval_sec": 3},
            {"launch_pad_feedback_timeout_sec": 11},
        ):
            other = Config.from_dict(full_config.to_dict())
            for key, value in change.items():
                setattr(other, key, value)
            assert other != full_config


class TestConfigSerialization:
    """Test persisted representation."""

    def test_default_round_trip(self):
        config = Config()
        assert Config.from_json(config.to_json()) == config

    def test_full_round_trip(self, full_config):
        assert Config.from_json(full_config.to_json()) == full_config

    def test_pascal_case_keys(self, full_config):
        data = json.loads(full_config.to_json())
        assert list(data) == [
            "ControlEndPoints",
            "LaunchPadsEntry",
            "StorageFolders",
            "HealthMonitoringIntervalSec",
            "LaunchPadFeedbackTimeoutSec",
        ]
        assert data["StorageFolders"][1] == {
            "Path": "/var/missioncontrol/b",
            "MaximumSize": 1 << 30,
        }

    def test_keys_are_case_insensitive(self):
        config = Config.from_dict({
            "controlEndPoints": ["http://1.2.3.4:80"],
            "healthmonitoringintervalsec": 7,
            "storageFolders": [{"path": "/data"}],
        })
        assert config.control_end_points == ["http://1.2.3.4:80"]
        assert config.health_monitoring_interval_sec == 7
        assert config.storage_folders == [StorageFolderConfig(path="/data")]

    def test_unknown_fields_ignored(self):
        config = Config.from_dict({"Colour": "blue", "LaunchPadFeedbackTimeoutSec": 12})
        assert config.launch_pad_feedback_timeout_sec == 12

    def test_missing_fields_use_defaults(self):
        config = Config.from_dict({"LaunchPadsEntry": "http://127.0.0.1:7000"})
        assert config.launch_pads_entry == "http://127.0.0.1:7000"
        assert config.control_end_points == DEFAULT_CONTROL_END_POINTS
        assert config.health_monitoring_interval_sec == 5


class TestConfigErrors:
    """Test malformed configurations identify the offending field."""

    @pytest.mark.parametrize("data,key", [
        ({"ControlEndPoints": "http://0.0.0.0:8000"}, "ControlEndPoints"),
        ({"ControlEndPoints": [""]}, "ControlEndPoints"),
        ({"LaunchPadsEntry": 7000}, "LaunchPadsEntry"),
        ({"StorageFolders": {"Path": "/a"}}, "StorageFolders"),
        ({"StorageFolders": [{"MaximumSize": 1}]}, "StorageFolders[0].Path"),
        ({"StorageFolders": [{"Path": "/a"}, {"Path": ""}]}, "StorageFolders[1].Path"),
        ({"StorageFolders": [{"Path": "/a", "MaximumSize": -1}]}, "StorageFolders[0].MaximumSize"),
        ({"StorageFolders": [{"Path": "/a", "MaximumSize": "1GB"}]}, "StorageFolders[0].MaximumSize"),
        ({"HealthMonitoringIntervalSec": "5"}, "HealthMonitoringIntervalSec"),
        ({"HealthMonitoringIntervalSec": 0}, "HealthMonitoringIntervalSec"),
        ({"LaunchPadFeedbackTimeoutSec": 2.5}, "LaunchPadFeedbackTimeoutSec"),
        ({"LaunchPadFeedbackTimeoutSec": True}, "LaunchPadFeedbackTimeoutSec"),
        ({"LaunchPadFeedbackTimeoutSec": -30}, "LaunchPadFeedbackTimeoutSec"),
    ])
    def test_invalid_field(self, data, key):
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_dict(data)
        assert exc_info.value.config_key == key
        assert key in str(exc_info.value)

    def test_not_an_object(self):
        with pytest.raises(ConfigurationError):
            Config.from_dict(["ControlEndPoints"])

    def test_malformed_json(self):
        with pytest.raises(ConfigurationError, match="line 1"):
            Config.from_json('{"ControlEndPoints": [')

    def test_configuration_errors_are_fatal(self):
        assert issubclass(ConfigurationError, FatalError)
        assert ConfigurationError("bad").is_fatal

    def test_validate_lists_every_problem(self):
        config = Config(
            control_end_points=[""],
            health_monitoring_interval_sec=0,
            launch_pad_feedback_timeout_sec=0,
        )
        assert len(config.validate()) == 3


class TestConfigFiles:
    """Test loading and saving configuration files."""

    def test_load_json(self, config_file, full_config):
        assert load_config(config_file) == full_config

    @pytest.mark.parametrize("name", ["config.json", "config.yaml", "nested/dir/config.yml"])
    def test_save_and_load(self, temp_dir, full_config, name):
        path = temp_dir / name
        save_config(full_config, path)
        assert path.exists()
        assert load_config(path) == full_config

    def test_saved_yaml_is_plain_yaml(self, temp_dir, full_config):
        path = temp_dir / "config.yaml"
        save_config(full_config, path)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["HealthMonitoringIntervalSec"] == 2

    def test_empty_yaml_gives_defaults(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == Config()

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "missing.json")

    def test_malformed_yaml(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("ControlEndPoints: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(path)
