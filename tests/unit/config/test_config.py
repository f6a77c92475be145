# pyright: reportAny=false
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from plugbar.config import (
    Config,
    ControlConfig,
    LogFormat,
    LogLevel,
    PluginConfig,
    find_config_file,
    read_toml_file,
)
from plugbar.exceptions import ConfigLoadError, ConfigValidationError
from plugbar.plugin import ExecutionModel

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestConfigFromFile:
    def test_loads_valid_toml_file(self, fs: "FakeFilesystem") -> None:
        content = """
[logging]
level = "debug"
format = "json"

[control]
port = 7000

[[plugins]]
name = "cpu"
path = "plugins/cpu.sh"
model = "interval"
interval = "10s"
args = ["--short"]

[[plugins]]
path = "/opt/feed.sh"
env = { FEED_URL = "http://localhost" }
"""
        path = Path("/etc/plugbar/plugbar.toml")
        fs.create_file(path, contents=content)

        config = Config.from_file(path)

        assert config.logging.level == LogLevel.DEBUG
        assert config.logging.format == LogFormat.JSON
        assert config.control.port == 7000
        assert config.control.host == "127.0.0.1"
        assert len(config.plugins) == 2

        cpu, feed = config.to_specs()
        assert cpu.display_name == "cpu"
        assert cpu.path == Path("/etc/plugbar/plugins/cpu.sh")
        assert cpu.model == ExecutionModel.INTERVAL
        assert cpu.interval == 10.0
        assert cpu.args == ("--short",)
        assert feed.display_name == "feed.sh"
        assert feed.model == ExecutionModel.STREAM
        assert feed.env == {"FEED_URL": "http://localhost"}

    def test_raises_file_not_found_for_missing_file(
        self, fs: "FakeFilesystem"
    ) -> None:
        with pytest.raises(FileNotFoundError):
            _ = Config.from_file(Path("/test/missing.toml"))

    def test_raises_config_load_error_for_invalid_toml(
        self, fs: "FakeFilesystem"
    ) -> None:
        path = Path("/test/invalid.toml")
        fs.create_file(path, contents='[section\nkey = "unclosed bracket"\n')

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = Config.from_file(path)

        assert exc_info.value.path == path
        assert "Failed to parse TOML file" in str(exc_info.value)

    def test_validation_error_names_the_source(self, fs: "FakeFilesystem") -> None:
        path = Path("/test/bad.toml")
        fs.create_file(path, contents='[logging]\nlevel = "loud"\n')

        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_file(path)

        assert exc_info.value.key == "logging.level"
        assert exc_info.value.source == str(path)


class TestConfigFromDict:
    def test_empty_dict_uses_defaults(self) -> None:
        config = Config.from_dict({})

        assert config.logging.level == LogLevel.INFO
        assert config.control == ControlConfig()
        assert config.plugins == ()
        assert config.to_specs() == []

    def test_ignores_unknown_sections(self) -> None:
        config = Config.from_dict({"appearance": {"theme": "dark"}})

        assert config.plugins == ()

    def test_rejects_unknown_plugin_keys(self) -> None:
        data = {"plugins": [{"path": "a.sh", "colour": "red"}]}

        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict(data)

        assert exc_info.value.key == "plugins.0.colour"

    def test_rejects_duplicate_plugin_names(self) -> None:
        data = {
            "plugins": [
                {"path": "/a/cpu.sh"},
                {"path": "/b/cpu.sh"},
            ]
        }

        with pytest.raises(ConfigValidationError, match="Duplicate") as exc_info:
            _ = Config.from_dict(data)

        assert exc_info.value.key == "plugins.1.name"
        assert exc_info.value.value == "cpu.sh"

    def test_rejects_port_out_of_range(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"control": {"port": 70000}})

        assert exc_info.value.key == "control.port"

    def test_relative_paths_resolve_against_base_dir(self) -> None:
        data = {"plugins": [{"path": "cpu.sh"}]}

        config = Config.from_dict(data, base_dir=Path("/srv/plugbar"))

        assert config.to_specs()[0].path == Path("/srv/plugbar/cpu.sh")


class TestPluginConfig:
    @pytest.mark.parametrize(
        ("interval", "expected"),
        [("10s", 10.0), ("5m", 300.0), ("500ms", 0.5), (30, 30.0), (2.5, 2.5)],
    )
    def test_parses_interval(self, interval: str | float, expected: float) -> None:
        plugin = PluginConfig.model_validate(
            {"path": "cpu.sh", "model": "interval", "interval": interval}
        )

        assert plugin.interval == expected

    def test_interval_model_requires_interval(self) -> None:
        with pytest.raises(ValueError, match="need an 'interval'"):
            _ = PluginConfig.model_validate({"path": "cpu.sh", "model": "interval"})

    def test_stream_model_rejects_interval(self) -> None:
        with pytest.raises(ValueError, match="do not take an 'interval'"):
            _ = PluginConfig.model_validate({"path": "feed.sh", "interval": "5s"})

    def test_rejects_invalid_interval(self) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            _ = PluginConfig.model_validate(
                {"path": "cpu.sh", "model": "interval", "interval": "soon"}
            )

    def test_absolute_path_ignores_base_dir(self) -> None:
        plugin = PluginConfig(path=Path("/opt/feed.sh"))

        assert plugin.to_spec(Path("/srv")).path == Path("/opt/feed.sh")


class TestReadTomlFile:
    def test_returns_parsed_dict(self, fs: "FakeFilesystem") -> None:
        path = Path("/test/config.toml")
        fs.create_file(path, contents='[control]\nenabled = false\n')

        assert read_toml_file(path) == {"control": {"enabled": False}}


class TestFindConfigFile:
    def test_prefers_environment_variable(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        explicit = tmp_path / "elsewhere.toml"
        monkeypatch.setenv("PLUGBAR_CONFIG", str(explicit))
        (tmp_path / "plugbar.toml").write_text("")

        assert find_config_file(tmp_path) == explicit

    def test_finds_file_in_start_directory(self, tmp_path: Path) -> None:
        (tmp_path / "plugbar.toml").write_text("")

        assert find_config_file(tmp_path) == tmp_path / "plugbar.toml"

    def test_returns_none_without_config(self, tmp_path: Path) -> None:
        assert find_config_file(tmp_path) is None
