"""Directory navigation handled locally instead of in a throwaway subshell.

A ``cd`` run through ``sh -c`` only changes the subshell's directory, so the
agent intercepts plain ``cd`` commands and keeps its own working directory.
"""

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = ["DirectoryChange", "parse_cd", "resolve_cd_target", "change_directory"]

_SHELL_OPERATORS = (";", "&", "|", "<", ">", "\n", "`", "$(")


@dataclass(frozen=True)
class DirectoryChange:
    ok: bool
    target: Path


def parse_cd(command: str) -> Optional[str]:
    """Return the ``cd`` argument (``""`` for a bare ``cd``), or ``None`` if not a cd."""
    cmd = command.strip()
    if cmd == "cd":
        return ""
    if not cmd.startswith("cd") or not cmd[2:3].isspace():
        return None
    if any(op in cmd for op in _SHELL_OPERATORS):
        return None

    # Anything but a single path (extra args, unbalanced quotes) is left to the shell.
    try:
        parts = shlex.split(cmd[2:])
    except ValueError:
        return None
    if len(parts) != 1:
        return None
    return parts[0]


def _home_dir() -> Optional[Path]:
    home = os.path.expanduser("~")
    return None if home == "~" else Path(home)


def resolve_cd_target(arg: str, cwd: Path, home: Optional[Path] = None) -> Path:
    home = home if home is not None else _home_dir()
    if arg in ("", "~"):
        return home if home is not None else cwd
    if arg.startswith("~/") and home is not None:
        return Path(os.path.normpath(home / arg[2:]))

    path = Path(arg)
    if not path.is_absolute():
        path = cwd / path
    return Path(os.path.normpath(path))


def change_directory(arg: str, cwd: Path, home: Optional[Path] = None) -> DirectoryChange:
    target = resolve_cd_target(arg, cwd, home)
    return DirectoryChange(ok=target.is_dir(), target=target)
