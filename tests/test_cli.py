"""Tests for switchyard.cli — entrypoint, app resolution and subcommands."""

import sys
import types

import pytest

from switchyard.app import App
from switchyard.cli import main
from switchyard.cli._resolve import resolve_app


def load_users(next) -> None:
    next()


def render_users(next) -> None:
    next()


@pytest.fixture
def _fake_app_module(monkeypatch: pytest.MonkeyPatch) -> None:
    """Register a fake module with switchyard apps on sys.modules."""
    mod = types.ModuleType("_fake_switchyard_app")
    app = App()
    app.add_route("/api", "/api/users", "GET", [load_users, render_users])
    app.add_route("/api", "/api/users", "POST", [load_users], is_ajax=True)
    mod.app = app  # type: ignore[attr-defined]
    mod.empty = App()  # type: ignore[attr-defined]
    mod.factory = lambda: App()  # type: ignore[attr-defined]
    mod.not_an_app = "just a string"  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_fake_switchyard_app", mod)


class TestCLIHelp:
    def test_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "switchyard" in capsys.readouterr().out

    def test_run_missing_app(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["run"])
        assert exc_info.value.code == 2


@pytest.mark.usefixtures("_fake_app_module")
class TestResolveApp:
    def test_explicit_attribute(self) -> None:
        assert isinstance(resolve_app("_fake_switchyard_app:app"), App)

    def test_default_attribute(self) -> None:
        assert resolve_app("_fake_switchyard_app") is sys.modules["_fake_switchyard_app"].app

    def test_factory(self) -> None:
        assert isinstance(resolve_app("_fake_switchyard_app:factory"), App)

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            resolve_app("nonexistent_module_xyz:app")

    def test_missing_attribute(self) -> None:
        with pytest.raises(AttributeError):
            resolve_app("_fake_switchyard_app:does_not_exist")

    def test_not_an_app(self) -> None:
        with pytest.raises(TypeError, match="not a switchyard.App"):
            resolve_app("_fake_switchyard_app:not_an_app")


@pytest.mark.usefixtures("_fake_app_module")
class TestRoutesCommand:
    def test_lists_routes(self, capsys) -> None:
        main(["routes", "_fake_switchyard_app:app"])
        out = capsys.readouterr().out
        lines = out.splitlines()

        assert lines[0].split() == ["PREFIX", "METHOD", "PATH", "AJAX", "CHAIN"]
        assert "load_users -> render_users" in out
        assert lines[2].split()[:4] == ["/api", "GET", "/api/users", "no"]
        assert lines[3].split()[:4] == ["/api", "POST", "/api/users", "yes"]

    def test_no_routes(self, capsys) -> None:
        main(["routes", "_fake_switchyard_app:empty"])
        assert capsys.readouterr().out.strip() == "No routes registered."

    def test_bad_app_exits_one(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "_fake_switchyard_app:not_an_app"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


@pytest.mark.usefixtures("_fake_app_module")
class TestRunCommand:
    def test_overrides_passed_to_server(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple] = []

        def fake_run(app, host, port, *, log_level="info") -> None:
            calls.append((app, host, port, log_level))

        monkeypatch.setattr("switchyard.server.dev.run_dev_server", fake_run)
        main(["run", "_fake_switchyard_app:app", "--host", "0.0.0.0", "--port", "9001", "--log-level", "debug"])

        ((app, host, port, level),) = calls
        assert app is sys.modules["_fake_switchyard_app"].app
        assert (host, port, level) == ("0.0.0.0", 9001, "debug")

    def test_defaults_from_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple] = []
        monkeypatch.setattr(
            "switchyard.server.dev.run_dev_server",
            lambda app, host, port, *, log_level="info": calls.append((host, port, log_level)),
        )
        main(["run", "_fake_switchyard_app:empty"])
        assert calls == [("127.0.0.1", 8000, "info")]
