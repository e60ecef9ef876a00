"""Tests for display detection and the screenshot gate."""

import pytest

from aiterm.capabilities import (
    SCREENSHOT_BLOCKED_NOTICE,
    Capabilities,
    CapabilityGate,
    is_screenshot_command,
)


class TestDetect:

    def test_no_display(self):
        caps = Capabilities.detect({}, system="Linux")
        assert not caps.has_display
        assert caps.display_server == "none"

    def test_x11(self):
        caps = Capabilities.detect({"DISPLAY": ":0"}, system="Linux")
        assert caps.has_display and caps.x11 and not caps.wayland
        assert caps.display_server == "x11"

    def test_wayland_wins(self):
        caps = Capabilities.detect({"DISPLAY": ":0", "WAYLAND_DISPLAY": "wayland-0"})
        assert caps.has_display and caps.wayland and not caps.x11
        assert caps.display_server == "wayland"

    def test_macos_has_display_without_env(self):
        caps = Capabilities.detect({}, system="Darwin")
        assert caps.has_display and caps.quartz
        assert caps.display_server == "quartz"

    def test_macos_screencapture_passes_gate(self):
        gate = CapabilityGate(Capabilities.detect({}, system="Darwin"))
        assert gate.check("screencapture -x screenshot.png") is None

    def test_defaults_to_host_platform(self, monkeypatch):
        monkeypatch.setattr("aiterm.capabilities.platform.system", lambda: "Darwin")
        assert Capabilities.detect({}).quartz


class TestScreenshotCommand:

    @pytest.mark.parametrize("command", [
        "scrot shot.png",
        "gnome-screenshot -f out.png",
        "screencapture -x s.png",
        "import -window root screenshot.png",
        "sleep 1; import -window root s.png",
    ])
    def test_detected(self, command):
        assert is_screenshot_command(command)

    @pytest.mark.parametrize("command", [
        "ls",
        'python -c "import os"',
        "echo important",
    ])
    def test_not_detected(self, command):
        assert not is_screenshot_command(command)


class TestCapabilityGate:

    def test_blocks_screenshot_without_display(self):
        gate = CapabilityGate(Capabilities(has_display=False))
        assert gate.check("scrot a.png") == SCREENSHOT_BLOCKED_NOTICE

    def test_allows_screenshot_with_display(self):
        gate = CapabilityGate(Capabilities(has_display=True, x11=True))
        assert gate.check("scrot a.png") is None

    def test_ignores_other_commands(self):
        gate = CapabilityGate(Capabilities(has_display=False))
        assert gate.check("ls -la") is None
