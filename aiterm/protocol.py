"""Reply protocol: decode one model reply and drive it through gate, confirm and execute.

Wire format, one directive per line::

    MSG: text shown to the human
    CMD: a single shell command

A reply carries at most one command; when several ``CMD:`` lines appear the
last one is used. The handler never touches the transcript or the working
directory itself: it returns the messages to append and the new directory in
a ``ReplyOutcome`` and the session loop applies them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from .capabilities import CapabilityGate
from .conversation import Message, Role
from .directory import change_directory, parse_cd
from .logger import get_logger, redact
from .rendering import (
    render_ai_message,
    render_blocked,
    render_cancelled,
    render_directory_change,
    render_proposed_command,
    render_result,
    render_suggestion,
)
from .risk import RiskLevel, classify_command, confirm_command
from .tools.shell import CaptureExecutor, ExecutionResult
from .tools.suggest import suggest_fix

_log = get_logger(__name__)

__all__ = [
    "MESSAGE_MARKER",
    "COMMAND_MARKER",
    "COMMAND_OUTPUT_HEADER",
    "ReplyState",
    "TurnOutcome",
    "ContinuationPolicy",
    "MessageReply",
    "CommandReply",
    "MessageAndCommand",
    "Unrecognized",
    "ParsedReply",
    "ReplyOutcome",
    "ReplyHandler",
    "parse_reply",
]

MESSAGE_MARKER = "MSG:"
COMMAND_MARKER = "CMD:"
COMMAND_OUTPUT_HEADER = "COMMAND_OUTPUT:"
COMMAND_CANCELLED_HEADER = "COMMAND_CANCELLED:"


class ReplyState(str, Enum):
    AWAITING_REPLY = "awaiting_reply"
    PARSED = "parsed"
    BLOCKED = "blocked"
    DIRECTORY_HANDLED = "directory_handled"
    CONFIRMING = "confirming"
    DONE = "done"


class TurnOutcome(str, Enum):
    NO_COMMAND = "no_command"
    CAPABILITY_DENIED = "capability_denied"
    DIRECTORY_CHANGED = "directory_changed"
    DIRECTORY_RESOLUTION_FAILED = "directory_resolution_failed"
    USER_DECLINED = "user_declined"
    EXECUTED = "executed"


class ContinuationPolicy(str, Enum):
    """When the model is asked to re-reason after a command ran.

    ``ALWAYS`` lets the model confirm success explicitly; ``ON_FAILURE`` hands
    control back to the human as soon as a command succeeds.
    """

    ALWAYS = "always"
    ON_FAILURE = "on-failure"

    def should_continue(self, result: ExecutionResult) -> bool:
        if self is ContinuationPolicy.ON_FAILURE:
            return not result.succeeded
        return True

    @classmethod
    def parse(cls, value) -> "ContinuationPolicy":
        normalized = str(value or "").strip().lower().replace("_", "-")
        for policy in cls:
            if policy.value == normalized:
                return policy
        raise ValueError(f"Unknown continuation policy: {value!r}")


# ── Parsed reply variants ─────────────────────────

@dataclass(frozen=True)
class MessageReply:
    text: str

    @property
    def command(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class CommandReply:
    command: str

    @property
    def text(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class MessageAndCommand:
    text: str
    command: str


@dataclass(frozen=True)
class Unrecognized:
    raw: str

    @property
    def text(self) -> Optional[str]:
        return None

    @property
    def command(self) -> Optional[str]:
        return None


ParsedReply = Union[MessageReply, CommandReply, MessageAndCommand, Unrecognized]


def parse_reply(raw: str, keep_unmarked: bool = False) -> ParsedReply:
    """Decode a raw reply into its message text and pending command.

    Unmarked lines are dropped unless ``keep_unmarked`` is set, in which case
    their non-empty text joins the message.
    """
    message_lines: List[str] = []
    command = ""

    for line in raw.splitlines():
        if line.startswith(MESSAGE_MARKER):
            message_lines.append(line[len(MESSAGE_MARKER):].strip())
        elif line.startswith(COMMAND_MARKER):
            candidate = line[len(COMMAND_MARKER):].strip()
            if candidate:
                command = candidate
        elif keep_unmarked and line.strip():
            message_lines.append(line.strip())

    text = "\n".join(message_lines).strip()

    if text and command:
        return MessageAndCommand(text=text, command=command)
    if command:
        return CommandReply(command=command)
    if text:
        return MessageReply(text=text)
    return Unrecognized(raw=raw)


# ── State machine ─────────────────────────────────

@dataclass
class ReplyOutcome:
    kind: TurnOutcome
    parsed: ParsedReply
    messages: List[Message] = field(default_factory=list)
    continue_reasoning: bool = False
    working_directory: Optional[Path] = None
    result: Optional[ExecutionResult] = None
    risk: Optional[RiskLevel] = None
    states: List[ReplyState] = field(default_factory=list)


Confirm = Callable[[object, str, RiskLevel], bool]


class ReplyHandler:
    """Runs one reply through AwaitingReply → Parsed → {Blocked, DirectoryHandled, Confirming} → Done."""

    def __init__(
        self,
        console,
        executor: CaptureExecutor,
        gate: CapabilityGate,
        continuation: ContinuationPolicy = ContinuationPolicy.ALWAYS,
        keep_unmarked: bool = False,
        confirm: Confirm = confirm_command,
        home: Optional[Path] = None,
    ):
        self.console = console
        self.executor = executor
        self.gate = gate
        self.continuation = continuation
        self.keep_unmarked = keep_unmarked
        self.confirm = confirm
        self.home = home

    def handle(self, raw: str, cwd: Path) -> ReplyOutcome:
        states = [ReplyState.AWAITING_REPLY]
        parsed = parse_reply(raw, keep_unmarked=self.keep_unmarked)
        states.append(ReplyState.PARSED)

        if parsed.text:
            render_ai_message(self.console, parsed.text)

        command = parsed.command
        if not command:
            states.append(ReplyState.DONE)
            return ReplyOutcome(
                kind=TurnOutcome.NO_COMMAND,
                parsed=parsed,
                messages=[Message(Role.ASSISTANT, raw)],
                states=states,
            )

        notice = self.gate.check(command)
        if notice:
            states += [ReplyState.BLOCKED, ReplyState.DONE]
            render_blocked(self.console, notice)
            return ReplyOutcome(
                kind=TurnOutcome.CAPABILITY_DENIED,
                parsed=parsed,
                messages=[Message(Role.ASSISTANT, notice)],
                states=states,
            )

        cd_arg = parse_cd(command)
        if cd_arg is not None:
            states += [ReplyState.DIRECTORY_HANDLED, ReplyState.DONE]
            return self._handle_cd(parsed, cd_arg, cwd, states)

        states.append(ReplyState.CONFIRMING)
        risk = classify_command(command)
        render_proposed_command(self.console, command, risk.value)
        if not self.confirm(self.console, command, risk):
            states.append(ReplyState.DONE)
            render_cancelled(self.console)
            return ReplyOutcome(
                kind=TurnOutcome.USER_DECLINED,
                parsed=parsed,
                messages=[
                    Message(Role.ASSISTANT, raw),
                    Message(Role.USER, f"{COMMAND_CANCELLED_HEADER} user declined to run: {command}"),
                ],
                risk=risk,
                states=states,
            )

        result = self.executor.execute(command, cwd)
        if not result.succeeded and not result.launch_failed:
            suggestion = suggest_fix(command, result.stderr_view, cwd)
            if suggestion:
                result = replace(result, suggestion=suggestion)

        render_result(self.console, result)
        if result.suggestion:
            render_suggestion(self.console, result.suggestion)

        states.append(ReplyState.DONE)
        return ReplyOutcome(
            kind=TurnOutcome.EXECUTED,
            parsed=parsed,
            messages=[
                Message(Role.ASSISTANT, raw),
                Message(Role.USER, f"{COMMAND_OUTPUT_HEADER}\n{result.model_view()}"),
            ],
            continue_reasoning=self.continuation.should_continue(result),
            result=result,
            risk=risk,
            states=states,
        )

    def _handle_cd(self, parsed: ParsedReply, arg: str, cwd: Path,
                   states: List[ReplyState]) -> ReplyOutcome:
        change = change_directory(arg, cwd, self.home)
        render_directory_change(self.console, change.ok, str(change.target))
        if change.ok:
            _log.info("Working directory changed to %s", change.target)
            return ReplyOutcome(
                kind=TurnOutcome.DIRECTORY_CHANGED,
                parsed=parsed,
                messages=[Message(Role.ASSISTANT, f"Changed directory to {change.target}")],
                working_directory=change.target,
                states=states,
            )

        _log.info("cd rejected, not a directory: %s", redact(str(change.target)))
        return ReplyOutcome(
            kind=TurnOutcome.DIRECTORY_RESOLUTION_FAILED,
            parsed=parsed,
            messages=[Message(Role.USER, f"cd failed: {change.target}")],
            states=states,
        )
