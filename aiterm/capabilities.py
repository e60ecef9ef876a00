"""Host capability detection and the gate that vetoes commands needing them."""

import os
import platform
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from .logger import get_logger, redact

_log = get_logger(__name__)

__all__ = [
    "Capabilities",
    "CapabilityGate",
    "SCREENSHOT_BLOCKED_NOTICE",
    "is_screenshot_command",
]

SCREENSHOT_BLOCKED_NOTICE = "Screenshot blocked: no graphical display."

_SCREENSHOT_TOOLS = ("scrot", "gnome-screenshot", "screencapture")
# ImageMagick's `import` only counts as a command word, not inside `python -c "import os"`.
_IMAGEMAGICK_IMPORT_RE = re.compile(r"(?:^|[;&|]\s*)import\s", re.IGNORECASE)


@dataclass(frozen=True)
class Capabilities:
    has_display: bool = False
    wayland: bool = False
    x11: bool = False
    quartz: bool = False

    @classmethod
    def detect(cls, environ: Optional[Mapping[str, str]] = None,
               system: Optional[str] = None) -> "Capabilities":
        """Probe the display from ``environ`` and the OS name (``platform.system()``)."""
        env = os.environ if environ is None else environ
        system = platform.system() if system is None else system
        wayland = "WAYLAND_DISPLAY" in env
        x11 = "DISPLAY" in env and not wayland
        # macOS draws through Quartz and normally sets neither variable.
        quartz = system == "Darwin" and not (wayland or x11)
        return cls(has_display=wayland or x11 or quartz, wayland=wayland, x11=x11, quartz=quartz)

    @property
    def display_server(self) -> str:
        if self.wayland:
            return "wayland"
        if self.x11:
            return "x11"
        if self.quartz:
            return "quartz"
        return "none"


def is_screenshot_command(command: str) -> bool:
    cmd = command.strip().lower()
    if any(tool in cmd for tool in _SCREENSHOT_TOOLS):
        return True
    return bool(_IMAGEMAGICK_IMPORT_RE.search(cmd))


class CapabilityGate:
    """Static veto over command categories the host cannot support."""

    def __init__(self, capabilities: Capabilities):
        self.capabilities = capabilities

    def check(self, command: str) -> Optional[str]:
        """Return the block notice for ``command``, or ``None`` when it may proceed."""
        if not self.capabilities.has_display and is_screenshot_command(command):
            _log.warning("Command blocked (no display): %s", redact(command))
            return SCREENSHOT_BLOCKED_NOTICE
        return None
