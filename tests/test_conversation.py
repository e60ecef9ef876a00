"""Tests for the conversation transcript."""

import pytest

from aiterm.conversation import ConversationLog, Message, Role


def test_append_preserves_order():
    log = ConversationLog()
    log.add(Role.SYSTEM, "sys")
    log.add(Role.USER, "hi")
    log.add(Role.ASSISTANT, "MSG: hello")
    assert [m.role for m in log] == [Role.SYSTEM, Role.USER, Role.ASSISTANT]
    assert log.last() == Message(Role.ASSISTANT, "MSG: hello")
    assert len(log) == 3


def test_payload_shape():
    log = ConversationLog([Message(Role.USER, "ls please")])
    assert log.to_payload() == [{"role": "user", "content": "ls please"}]


def test_payload_round_trip():
    log = ConversationLog()
    log.add(Role.SYSTEM, "sys")
    log.add(Role.USER, "COMMAND_OUTPUT:\ncommand: ls")
    restored = ConversationLog.from_payload(log.to_payload())
    assert restored.messages == log.messages


def test_messages_are_a_snapshot():
    log = ConversationLog()
    log.add(Role.USER, "a")
    snapshot = log.messages
    log.add(Role.USER, "b")
    assert len(snapshot) == 1
    assert log.count(Role.USER) == 2


def test_rejects_non_messages():
    with pytest.raises(TypeError):
        ConversationLog().append({"role": "user", "content": "x"})


def test_unknown_role_rejected():
    with pytest.raises(ValueError):
        Message.from_dict({"role": "tool", "content": "x"})


def test_empty_log():
    log = ConversationLog()
    assert log.last() is None
    assert log.to_payload() == []
