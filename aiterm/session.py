"""Session persistence: save and load the transcript with its working directory."""

import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import CONFIG_DIR
from .conversation import ConversationLog
from .errors import SessionError
from .logger import get_logger

_log = get_logger(__name__)

SESSIONS_DIR = CONFIG_DIR / "sessions"


def _ensure_sessions_dir():
    """Ensure sessions directory exists."""
    SESSIONS_DIR.mkdir(parents=True, exist_ok=True)


def _safe_name(name: str) -> str:
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in name)


def save_session(
    log: ConversationLog,
    cwd: Path,
    name: Optional[str] = None,
) -> str:
    """Save the transcript and working directory to a session file.

    Args:
        log: Conversation to persist, system prompt included
        cwd: Working directory at the time of saving
        name: Optional session name (auto-generated if not provided)

    Returns:
        Session filename
    """
    _ensure_sessions_dir()

    if not name:
        name = f"session_{int(time.time())}"

    filename = f"{_safe_name(name)}.json"
    filepath = SESSIONS_DIR / filename

    data = {
        "name": name,
        "created_at": time.strftime("%Y-%m-%d %H:%M:%S"),
        "cwd": str(cwd),
        "conversation": log.to_payload(),
    }

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    _log.info("Saved session %s (%d messages)", filename, len(log))
    return filename


def _find_session_file(name: str) -> Optional[Path]:
    # Exact filename, then name.json, then first name prefix match.
    filepath = SESSIONS_DIR / name
    if filepath.is_file():
        return filepath
    filepath = SESSIONS_DIR / f"{name}.json"
    if filepath.is_file():
        return filepath
    for candidate in sorted(SESSIONS_DIR.glob("*.json")):
        if candidate.stem.startswith(name):
            return candidate
    return None


def load_session(name: str) -> Optional[Tuple[ConversationLog, Path]]:
    """Load a session by name, filename or name prefix.

    Returns:
        (log, cwd) or None if no session matches

    Raises:
        SessionError: the file exists but does not hold a valid transcript
    """
    _ensure_sessions_dir()

    filepath = _find_session_file(name)
    if filepath is None:
        return None

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise SessionError(name, f"{type(e).__name__}: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("conversation"), list):
        raise SessionError(name, "missing conversation")

    try:
        log = ConversationLog.from_payload(data["conversation"])
    except (ValueError, AttributeError) as e:
        raise SessionError(name, f"bad message: {e}")

    cwd = Path(data.get("cwd") or Path.home())
    _log.info("Loaded session %s (%d messages)", filepath.name, len(log))
    return log, cwd


def list_sessions(limit: int = 10) -> List[Dict[str, Any]]:
    """List recent sessions.

    Returns:
        List of session summaries (filename, name, created_at, messages, cwd)
    """
    _ensure_sessions_dir()

    sessions = []
    for filepath in sorted(SESSIONS_DIR.glob("*.json"),
                           key=lambda p: p.stat().st_mtime,
                           reverse=True)[:limit]:
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
            sessions.append({
                "filename": filepath.name,
                "name": data.get("name", filepath.stem),
                "created_at": data.get("created_at", "unknown"),
                "messages": len(data.get("conversation", [])),
                "cwd": data.get("cwd", ""),
            })
        except (json.JSONDecodeError, OSError, AttributeError):
            continue

    return sessions
