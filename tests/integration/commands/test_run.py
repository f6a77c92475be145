"""Integration tests for the run and serve commands."""

import functools
import io
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from plugbar.cli import ExitCode
from tests.support import write_script

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def _output(console: Console) -> str:
    assert isinstance(console.file, io.StringIO)
    return console.file.getvalue()


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


class TestRunValidation:
    def test_missing_plugin_exits_not_found(
        self,
        tmp_path: Path,
        console: Console,
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        code = plugbar_cli_with_exit_code("run", str(tmp_path / "missing.sh"))

        assert code == ExitCode.NOT_FOUND
        assert "Plugin not found" in _output(console)

    def test_invalid_interval_exits_with_validation_error(
        self,
        tmp_path: Path,
        console: Console,
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        code = plugbar_cli_with_exit_code(
            "run", str(tmp_path / "cpu.sh"), "--interval", "often"
        )

        assert code == ExitCode.VALIDATION_ERROR
        assert "Invalid duration" in _output(console)

    def test_invalid_env_exits_with_validation_error(
        self,
        tmp_path: Path,
        console: Console,
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        code = plugbar_cli_with_exit_code(
            "run", str(tmp_path / "cpu.sh"), "--env", "NOVALUE"
        )

        assert code == ExitCode.VALIDATION_ERROR
        assert "expected KEY=VALUE" in _output(console)


class TestServeValidation:
    def test_no_plugins_exits_not_found(
        self,
        console: Console,
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        code = plugbar_cli_with_exit_code("serve")

        assert code == ExitCode.NOT_FOUND
        assert "No plugins configured" in _output(console)

    def test_duplicate_names_across_sources_exit_with_validation_error(
        self,
        tmp_path: Path,
        console: Console,
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        plugin_dir = tmp_path / "plugins"
        plugin_dir.mkdir()
        script = plugin_dir / "cpu.10s.sh"
        script.write_text("#!/bin/sh\necho cpu\n")
        script.chmod(0o755)
        config = tmp_path / "plugbar.toml"
        config.write_text('[[plugins]]\nname = "cpu"\npath = "other.sh"\n')

        code = plugbar_cli_with_exit_code("serve", "--dir", str(plugin_dir))

        assert code == ExitCode.VALIDATION_ERROR
        assert "Duplicate plugin name 'cpu'" in _output(console)


class TestServeDispatch:
    @pytest.fixture
    def plugin_dir(self, tmp_path: Path) -> Path:
        directory = tmp_path / "plugins"
        directory.mkdir()
        _ = write_script(directory / "feed.sh", "echo feed")
        return directory

    def test_serves_control_api_on_requested_port(
        self,
        plugin_dir: Path,
        console: Console,
        mocker: "MockerFixture",
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        run = mocker.patch("plugbar.cli._app.anyio.run")

        code = plugbar_cli_with_exit_code(
            "serve", "--dir", str(plugin_dir), "--control-port", "7001"
        )

        assert code == ExitCode.SUCCESS
        target = run.call_args.args[0]
        assert isinstance(target, functools.partial)
        host, control = target.args
        assert host.names == ["feed"]
        assert control.port == 7001
        assert "Control API on http://127.0.0.1:7001/plugins" in _output(console)

    def test_no_control_runs_the_host_alone(
        self,
        plugin_dir: Path,
        console: Console,
        mocker: "MockerFixture",
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        run = mocker.patch("plugbar.cli._app.anyio.run")

        code = plugbar_cli_with_exit_code(
            "serve", "--dir", str(plugin_dir), "--no-control"
        )

        assert code == ExitCode.SUCCESS
        target = run.call_args.args[0]
        assert not isinstance(target, functools.partial)
        assert target.__self__.names == ["feed"]
        assert "Control API" not in _output(console)


class TestRunDispatch:
    def test_infers_interval_from_file_name(
        self,
        tmp_path: Path,
        mocker: "MockerFixture",
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        script = write_script(tmp_path / "cpu.10s.sh", "echo cpu")
        host_class = mocker.patch("plugbar.cli._app.PluginHost")
        _ = mocker.patch("plugbar.cli._app.anyio.run")

        code = plugbar_cli_with_exit_code("run", str(script), "a", "b")

        assert code == ExitCode.SUCCESS
        (spec,) = host_class.call_args.args[0]
        assert spec.display_name == "cpu"
        assert spec.interval == 10.0
        assert spec.args == ("a", "b")

    def test_explicit_interval_and_env(
        self,
        tmp_path: Path,
        mocker: "MockerFixture",
        plugbar_cli_with_exit_code: Callable[..., int],
    ) -> None:
        script = write_script(tmp_path / "feed.sh", "echo feed")
        host_class = mocker.patch("plugbar.cli._app.PluginHost")
        _ = mocker.patch("plugbar.cli._app.anyio.run")

        code = plugbar_cli_with_exit_code(
            "run", str(script), "--interval", "5m", "--env", "TZ=UTC", "--name", "clock"
        )

        assert code == ExitCode.SUCCESS
        (spec,) = host_class.call_args.args[0]
        assert spec.display_name == "clock"
        assert spec.interval == 300.0
        assert spec.env == {"TZ": "UTC"}
