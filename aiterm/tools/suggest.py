"""Filename typo correction for commands that failed on a missing path."""

import os
from pathlib import Path
from typing import Optional, Union

from ..logger import get_logger

_log = get_logger(__name__)

__all__ = ["MAX_SUGGESTION_DISTANCE", "extract_missing_path", "simple_distance", "suggest_fix"]

MAX_SUGGESTION_DISTANCE = 2

# Unix error phrasings that precede a quoted path, checked in order.
# e.g. rm: cannot remove 'index.hmtl': No such file or directory
_MISSING_PATH_MARKERS = (
    "cannot remove '",
    "cannot access '",
    "No such file or directory",
)


def extract_missing_path(stderr: str) -> Optional[str]:
    """Pull the path a command complained about out of its stderr."""
    for marker in _MISSING_PATH_MARKERS:
        pos = stderr.find(marker)
        if pos < 0:
            continue
        after = stderr[pos + len(marker):]
        end = after.find("'")
        if end >= 0:
            return after[:end] or None

    # Fallback for "cat: index.tx: No such file or directory": second field.
    fields = stderr.split(":")
    if len(fields) > 1:
        token = fields[1].strip()
        return token or None
    return None


def simple_distance(a: str, b: str) -> int:
    """Length difference plus mismatching bytes at the same positions.

    Not an edit distance: there is no alignment, so an insertion near the
    start makes every later byte count as a mismatch.
    """
    a_bytes = a.encode("utf-8")
    b_bytes = b.encode("utf-8")
    mismatches = sum(1 for x, y in zip(a_bytes, b_bytes) if x != y)
    return abs(len(a_bytes) - len(b_bytes)) + mismatches


def suggest_fix(command: str, stderr: str, cwd: Union[str, Path]) -> Optional[str]:
    """Return ``command`` with the missing path swapped for the closest entry in ``cwd``.

    Only entries within ``MAX_SUGGESTION_DISTANCE`` qualify; the lowest score
    wins and ties keep the first entry in name order. The substitution is
    textual and touches only the first occurrence of the missing token.
    """
    missing = extract_missing_path(stderr)
    if not missing:
        return None

    try:
        entries = sorted(os.listdir(cwd))
    except OSError as e:
        _log.info("Cannot list %s for suggestions: %s", cwd, e)
        return None

    best_match: Optional[str] = None
    best_score = MAX_SUGGESTION_DISTANCE + 1
    for name in entries:
        score = simple_distance(missing, name)
        if score < best_score:
            best_score = score
            best_match = name

    if best_match is None:
        return None

    corrected = command.replace(missing, best_match, 1)
    if corrected == command:
        return None

    _log.info("Suggesting '%s' for missing '%s' (score %d)", best_match, missing, best_score)
    return corrected
