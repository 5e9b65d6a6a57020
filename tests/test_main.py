"""Tests für die Kommandozeile."""
import json

import pytest
from click.testing import CliRunner

from conftest import ManualScheduler
from main import cli
from window_manager import WindowEnumerator
from window_matcher import WindowMatcher
from window_watcher import WindowWatcher

WMCTRL_LX = (
    "0x04000007  0 Navigator.firefox  laptop GitHub — Mozilla Firefox\n"
    "0x03a00004  0 code.Code  laptop a.py - Visual Studio Code\n"
    "0x03a0000b  0 code.Code  laptop b.py - Visual Studio Code\n"
)


@pytest.fixture
def run_cli(tools, catalog, monkeypatch, tmp_path):
    watcher = WindowWatcher(WindowEnumerator(run=tools), WindowMatcher(), catalog, scheduler=ManualScheduler())
    monkeypatch.setattr(WindowWatcher, "from_config", classmethod(lambda cls, cfg=None, scheduler=None: watcher))
    config_path = str(tmp_path / "none.json")

    def run(*args):
        return CliRunner().invoke(cli, ["--config", config_path, *args])
    return run


def test_list(tools, run_cli):
    tools.set(["wmctrl", "-lx"], WMCTRL_LX)
    result = run_cli("list")
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [d["application"]["name"] for d in data] == ["Firefox", "VS Code", "VS Code"]


def test_list_grouped(tools, run_cli):
    tools.set(["wmctrl", "-lx"], WMCTRL_LX)
    data = json.loads(run_cli("list", "--grouped").output)
    assert [(g["application"]["name"], len(g["windows"])) for g in data] == [("Firefox", 1), ("VS Code", 2)]


def test_apps(run_cli):
    data = json.loads(run_cli("apps").output)
    assert [a["name"] for a in data] == ["Files", "Firefox", "GNOME Terminal", "VS Code"]


def test_activate_failure(run_cli):
    result = run_cli("activate", "0x04000007")
    assert result.exit_code == 1
    assert "0x04000007" in result.output


def test_close(tools, run_cli):
    tools.set(["wmctrl", "-i", "-c", "0x04000007"], "")
    assert run_cli("close", "0x4000007").exit_code == 0


def test_broken_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{nope")
    result = CliRunner().invoke(cli, ["--config", str(path), "apps"])
    assert result.exit_code == 1
    assert "Konfigurationsdatei" in result.output
