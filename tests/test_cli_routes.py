"""Tests for warble.cli._routes — ``warble routes`` subcommand."""

import sys
import types

import pytest

from warble.app import App
from warble.cli import main


@pytest.fixture
def _empty_app_module(monkeypatch: pytest.MonkeyPatch) -> None:
    mod = types.ModuleType("_routes_test_app")
    mod.app = App()  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "_routes_test_app", mod)


class TestWarbleRoutes:
    def test_lists_service_routes(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes"])
        lines = capsys.readouterr().out.splitlines()

        assert lines[0].split() == ["METHOD", "PATH", "GROUP", "BODY", "HANDLER"]
        assert set(lines[1]) == {"-"}
        rows = [line.split() for line in lines[2:]]
        assert rows[0] == ["GET", "/", "-", "-", "index", "(index)"]
        assert rows[1][:4] == ["POST", "/api/users", "/api/users", "userSchema"]
        assert rows[2][:4] == ["POST", "/api/users/", "/api/users", "userSchema"]
        assert rows[2][4] == "create_user"

    @pytest.mark.usefixtures("_empty_app_module")
    def test_no_routes(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_routes_test_app:app"])
        assert capsys.readouterr().out.strip() == "No routes registered."

    def test_bad_import_exits_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "nonexistent_module_xyz:app"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err
