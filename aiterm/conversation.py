"""Append-only conversation transcript sent to the model on every request."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

__all__ = ["Role", "Message", "ConversationLog"]


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(role=Role(str(data.get("role", ""))), content=str(data.get("content", "")))


class ConversationLog:
    """Ordered, append-only sequence of role-tagged messages.

    Insertion order is the dialogue history the model sees, so entries are
    never removed, replaced or reordered once appended.
    """

    def __init__(self, messages: Optional[Iterable[Message]] = None):
        self._messages: List[Message] = []
        for message in messages or ():
            self.append(message)

    def append(self, message: Message) -> Message:
        if not isinstance(message, Message):
            raise TypeError(f"expected Message, got {type(message).__name__}")
        self._messages.append(message)
        return message

    def add(self, role: Role, content: str) -> Message:
        return self.append(Message(role=role, content=content))

    def extend(self, messages: Iterable[Message]) -> None:
        for message in messages:
            self.append(message)

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def count(self, role: Role) -> int:
        return sum(1 for message in self._messages if message.role is role)

    def to_payload(self) -> List[Dict[str, str]]:
        """Serialize in order for the model transport."""
        return [message.to_dict() for message in self._messages]

    @classmethod
    def from_payload(cls, items: Iterable[Dict[str, Any]]) -> "ConversationLog":
        return cls(Message.from_dict(item) for item in items)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]
