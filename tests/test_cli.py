"""Tests for the missioncontrol command line."""
import json

import pytest
import yaml
from rich.console import Console

from missioncontrol import cli
from missioncontrol.config import Config, load_config, save_config


@pytest.fixture(autouse=True)
def wide_consoles(monkeypatch):
    """Keep Rich from wrapping output at 80 columns."""
    monkeypatch.setattr(cli, "console", Console(width=200))
    monkeypatch.setattr(cli, "err_console", Console(stderr=True, width=200))


class TestParser:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "usage: missioncontrol" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])
        assert exc_info.value.code == 0
        assert "missioncontrol" in capsys.readouterr().out

    def test_log_level_is_case_insensitive(self):
        args = cli.create_parser().parse_args(["--log-level", "debug", "config", "show"])
        assert args.log_level == "DEBUG"

    def test_log_level_default(self):
        args = cli.create_parser().parse_args(["config", "show"])
        assert args.log_level == "WARNING"


class TestConfigCommands:
    """Tests for ``missioncontrol config``."""

    def test_show_defaults(self, capsys):
        assert cli.main(["config", "show"]) == 0
        out = capsys.readouterr().out
        assert "HealthMonitoringIntervalSec" in out
        assert "http://0.0.0.0:8000" in out
        assert "defaults" in out

    def test_show_file_as_json(self, capsys, config_file, full_config):
        assert cli.main(["config", "show", str(config_file), "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert Config.from_dict(data) == full_config

    def test_show_as_yaml(self, capsys):
        assert cli.main(["config", "show", "--format", "yaml"]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["LaunchPadFeedbackTimeoutSec"] == 30

    def test_validate_valid(self, capsys, config_file):
        assert cli.main(["config", "validate", str(config_file)]) == 0
        assert "Configuration is valid" in capsys.readouterr().out

    def test_validate_invalid(self, capsys, temp_dir):
        path = temp_dir / "config.json"
        path.write_text(json.dumps({"HealthMonitoringIntervalSec": 0}), encoding="utf-8")

        assert cli.main(["config", "validate", str(path)]) == 1
        assert "HealthMonitoringIntervalSec" in capsys.readouterr().err

    def test_validate_missing_file(self, capsys, temp_dir):
        assert cli.main(["config", "validate", str(temp_dir / "missing.json")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_init_creates_defaults(self, capsys, temp_dir):
        path = temp_dir / "config.yaml"
        assert cli.main(["config", "init", str(path)]) == 0
        assert load_config(path) == Config()
        assert "Created configuration file" in capsys.readouterr().out

    def test_init_refuses_existing_file(self, capsys, config_file, full_config):
        assert cli.main(["config", "init", str(config_file)]) == 1
        assert "--force" in capsys.readouterr().err
        assert load_config(config_file) == full_config

    def test_init_force_overwrites(self, config_file):
        assert cli.main(["config", "init", str(config_file), "--force"]) == 0
        assert load_config(config_file) == Config()

    def test_init_then_validate(self, temp_dir):
        path = temp_dir / "nested" / "config.json"
        save_config(Config(launch_pad_feedback_timeout_sec=12), path)
        assert cli.main(["config", "validate", str(path)]) == 0


class TestManifestCommands:
    """Tests for ``missioncontrol manifest``."""

    def test_validate_valid(self, capsys, catalog_file):
        assert cli.main(["manifest", "validate", str(catalog_file)]) == 0
        out = capsys.readouterr().out
        assert "Launch catalog is valid" in out
        assert "(1 launchables, 1 payloads, 5 parameters)" in out

    def test_validate_unknown_payload(self, capsys, temp_dir, catalog_data):
        catalog_data["launchables"][0]["payloads"] = ["missing"]
        path = temp_dir / "bad.json"
        path.write_text(json.dumps(catalog_data), encoding="utf-8")

        assert cli.main(["manifest", "validate", str(path)]) == 1
        assert "unknown payload" in capsys.readouterr().err

    def test_validate_default_outside_range(self, capsys, temp_dir, catalog_data):
        catalog_data["launchables"][0]["globalParameters"][0]["defaultValue"] = 500
        path = temp_dir / "bad.json"
        path.write_text(json.dumps(catalog_data), encoding="utf-8")

        assert cli.main(["manifest", "validate", str(path)]) == 1
        assert "frameRate" in capsys.readouterr().err

    def test_validate_missing_file(self, temp_dir):
        assert cli.main(["manifest", "validate", str(temp_dir / "missing.json")]) == 1

    def test_show_table(self, capsys, catalog_file):
        assert cli.main(["manifest", "show", str(catalog_file)]) == 0
        out = capsys.readouterr().out
        assert "Cluster Node" in out
        assert "engine" in out

    def test_show_launchable(self, capsys, catalog_file):
        assert cli.main(["manifest", "show", str(catalog_file), "--launchable", "Cluster Node"]) == 0
        out = capsys.readouterr().out
        assert "frameRate" in out
        assert "nodeRole" in out
        assert "capcom" in out
        assert "hidden" in out

    def test_show_unknown_launchable(self, capsys, catalog_file):
        assert cli.main(["manifest", "show", str(catalog_file), "--launchable", "Nope"]) == 1
        assert "Nope" in capsys.readouterr().err

    def test_show_json(self, capsys, catalog_file):
        assert cli.main(["manifest", "show", str(catalog_file), "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        launchable = data["launchables"][0]
        assert launchable["name"] == "Cluster Node"
        assert launchable["data"] == {"clusterId": 1}
