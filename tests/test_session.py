"""Tests for session save/load."""

import json

import pytest

from aiterm import session as session_module
from aiterm.conversation import ConversationLog, Role
from aiterm.errors import SessionError
from aiterm.session import list_sessions, load_session, save_session


def _log():
    log = ConversationLog()
    log.add(Role.SYSTEM, "sys")
    log.add(Role.USER, "list files")
    log.add(Role.ASSISTANT, "CMD: ls")
    return log


def test_save_and_load(tmp_path):
    filename = save_session(_log(), tmp_path, "work")
    assert filename == "work.json"

    log, cwd = load_session("work")
    assert log.messages == _log().messages
    assert cwd == tmp_path


def test_name_is_sanitised(tmp_path):
    assert save_session(_log(), tmp_path, "my session/1") == "my_session_1.json"


def test_prefix_lookup(tmp_path):
    save_session(_log(), tmp_path, "deploy-notes")
    loaded = load_session("deploy")
    assert loaded is not None


def test_missing_session(tmp_path):
    assert load_session("nothing-here") is None


def test_corrupt_session_raises(tmp_path):
    session_module.SESSIONS_DIR.mkdir(parents=True, exist_ok=True)
    (session_module.SESSIONS_DIR / "bad.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(SessionError):
        load_session("bad")


def test_bad_role_raises(tmp_path):
    session_module.SESSIONS_DIR.mkdir(parents=True, exist_ok=True)
    data = {"conversation": [{"role": "tool", "content": "x"}]}
    (session_module.SESSIONS_DIR / "odd.json").write_text(json.dumps(data), encoding="utf-8")
    with pytest.raises(SessionError):
        load_session("odd")


def test_list_sessions(tmp_path):
    save_session(_log(), tmp_path, "one")
    save_session(_log(), tmp_path, "two")
    sessions = list_sessions()
    assert {s["name"] for s in sessions} == {"one", "two"}
    assert all(s["messages"] == 3 for s in sessions)
    assert all(s["cwd"] == str(tmp_path) for s in sessions)
