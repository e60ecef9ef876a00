"""Centralized color palette for terminal rendering."""

from dataclasses import dataclass
from typing import Dict, List

__all__ = ["Palette", "get_palette", "set_theme", "list_themes"]


@dataclass(frozen=True)
class Palette:
    # Core palette
    ACCENT: str
    BORDER: str
    DIM: str
    TEXT: str
    MUTED: str

    # Semantic colors
    SUCCESS: str
    WARN: str
    ERROR: str
    INFO: str

    # Prompt / input
    PROMPT: str


_PALETTES: Dict[str, Palette] = {
    "dark": Palette(
        ACCENT="#7FA6D9",
        BORDER="#30363D",
        DIM="#6E7681",
        TEXT="#E6EDF3",
        MUTED="#8B949E",
        SUCCESS="#57DB9C",
        WARN="#E3B341",
        ERROR="#F85149",
        INFO="#58A6FF",
        PROMPT="#B7C6D8",
    ),
    # Every slot maps to a style that renders without color.
    "no_color": Palette(
        ACCENT="bold",
        BORDER="default",
        DIM="dim",
        TEXT="default",
        MUTED="dim",
        SUCCESS="bold",
        WARN="bold",
        ERROR="bold",
        INFO="default",
        PROMPT="default",
    ),
}

_current = "dark"


def get_palette() -> Palette:
    return _PALETTES[_current]


def set_theme(name: str) -> bool:
    global _current
    normalized = str(name or "").strip().lower()
    if normalized not in _PALETTES:
        return False
    _current = normalized
    return True


def list_themes() -> List[str]:
    return sorted(_PALETTES)
