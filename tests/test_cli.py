from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from plottybot import cli
from plottybot.core.model import DeviceEntry


class FakeService:
    def __init__(self, *, settings=None, renderer=None) -> None:
        self.load_warnings: tuple[str, ...] = ()
        self.entries = [
            DeviceEntry(index=1, name="PlotterA", address="10.0.0.5"),
            DeviceEntry(index=2, name="PlotterB", address="10.0.0.6"),
        ]
        self.closed = False

    def refresh_devices(self) -> bool:
        return True

    def list_devices(self):
        return self.entries

    def connect_by_index(self, index):
        if 1 <= index <= len(self.entries):
            return self.entries[index - 1]
        return None

    def connect_by_name(self, name):
        return next((entry for entry in self.entries if entry.name == name), None)

    def wait_until_connected(self, timeout_s=None) -> bool:
        return True

    def connection_status(self) -> str:
        return "Connected"

    def stop(self) -> bool:
        return True

    def close(self) -> None:
        self.closed = True


runner = CliRunner()


def test_devices_command(monkeypatch):
    monkeypatch.setattr(cli, "PlottyService", FakeService)
    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 0
    assert "1. PlotterA 10.0.0.5" in result.stdout
    assert "2. PlotterB 10.0.0.6" in result.stdout


def test_devices_command_without_devices(monkeypatch):
    class EmptyService(FakeService):
        def list_devices(self):
            return []

    monkeypatch.setattr(cli, "PlottyService", EmptyService)
    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 0
    assert "No Devices Found" in result.stdout


def test_devices_command_discovery_failure(monkeypatch):
    class OfflineService(FakeService):
        def refresh_devices(self) -> bool:
            return False

    monkeypatch.setattr(cli, "PlottyService", OfflineService)
    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 1
    assert "Error: Device discovery failed" in result.stderr


def test_status_command(monkeypatch):
    monkeypatch.setattr(cli, "PlottyService", FakeService)
    result = runner.invoke(cli.app, ["status", "--device", "2"])
    assert result.exit_code == 0
    assert "PlotterB (10.0.0.6): Connected" in result.stdout


def test_status_command_unknown_device(monkeypatch):
    monkeypatch.setattr(cli, "PlottyService", FakeService)
    result = runner.invoke(cli.app, ["status", "--device", "5"])
    assert result.exit_code == 1
    assert "Error: Could not resolve device #5" in result.stderr


def test_status_command_timeout(monkeypatch):
    class SlowService(FakeService):
        def wait_until_connected(self, timeout_s=None) -> bool:
            return False

        def connection_status(self) -> str:
            return "Connecting"

    monkeypatch.setattr(cli, "PlottyService", SlowService)
    result = runner.invoke(cli.app, ["status", "--name", "PlotterA", "--timeout", "0.1"])
    assert result.exit_code == 1
    assert "PlotterA at 10.0.0.5 did not connect (Connecting)" in result.stderr


def test_stop_command(monkeypatch):
    monkeypatch.setattr(cli, "PlottyService", FakeService)
    result = runner.invoke(cli.app, ["stop", "--name", "PlotterA"])
    assert result.exit_code == 0
    assert "Sent stop to PlotterA (10.0.0.5)" in result.stdout


def test_stop_command_not_delivered(monkeypatch):
    class DroppingService(FakeService):
        def stop(self) -> bool:
            return False

    monkeypatch.setattr(cli, "PlottyService", DroppingService)
    result = runner.invoke(cli.app, ["stop"])
    assert result.exit_code == 1
    assert "stop was not delivered to PlotterA" in result.stderr


def test_load_warning_is_printed(monkeypatch):
    class WarnService(FakeService):
        def __init__(self, **kwargs) -> None:
            super().__init__(**kwargs)
            self.load_warnings = ("Settings file settings.yaml is empty; using packaged defaults",)

    monkeypatch.setattr(cli, "PlottyService", WarnService)
    result = runner.invoke(cli.app, ["devices"])
    assert result.exit_code == 0
    assert "Warning: Settings file settings.yaml is empty" in result.stderr


def test_offline_draw_writes_preview(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    preview = tmp_path / "square.svg"

    result = runner.invoke(cli.app, ["draw", "square", "--size", "50", "--offline", "--preview", str(preview)])

    assert result.exit_code == 0
    assert "Drew square (size 50): 8 instructions, 4 segments" in result.stdout
    assert preview.read_text(encoding="utf-8").count("<line ") == 4


def test_invalid_config_error_is_clean(tmp_path: Path):
    config = tmp_path / "bad.yaml"
    config.write_text("device_port: 0\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["draw", "star", "--offline", "--config", str(config)])

    assert result.exit_code == 1
    assert "Error: Schema validation failed" in result.stderr
    assert "Traceback" not in result.stdout
    assert "Traceback" not in result.stderr
