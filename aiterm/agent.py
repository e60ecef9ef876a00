"""Session loop: drives model replies through the protocol until control returns to the human."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from .conversation import ConversationLog, Message, Role
from .errors import TransportError
from .logger import get_logger
from .protocol import ReplyHandler, ReplyOutcome, TurnOutcome
from .rendering import render_error, render_warning
from .ui import ThinkingIndicator

_log = get_logger(__name__)

__all__ = ["TerminalAgent", "TurnSummary", "SCREENSHOT_ANALYSIS_HEADER"]

SCREENSHOT_ANALYSIS_HEADER = "SCREENSHOT_ANALYSIS:"


@dataclass
class TurnSummary:
    outcomes: List[ReplyOutcome] = field(default_factory=list)
    error: Optional[str] = None
    hit_iteration_limit: bool = False

    @property
    def iterations(self) -> int:
        return len(self.outcomes)

    @property
    def last_kind(self) -> Optional[TurnOutcome]:
        return self.outcomes[-1].kind if self.outcomes else None


class TerminalAgent:
    """Owns the transcript and the working directory for one interactive session."""

    def __init__(self, llm, handler: ReplyHandler, system_prompt: str, cwd: Path,
                 console: Optional[Console] = None, max_iterations: int = 10,
                 vision_llm=None, show_indicator: bool = True):
        self.llm = llm
        self.handler = handler
        self.system_prompt = system_prompt
        self.cwd = Path(cwd)
        self.console = console or handler.console
        self.max_iterations = max(1, int(max_iterations))
        self.vision_llm = vision_llm
        self.show_indicator = show_indicator
        self.log = self._fresh_log()

    def _fresh_log(self) -> ConversationLog:
        log = ConversationLog()
        log.add(Role.SYSTEM, self.system_prompt)
        return log

    def reset(self):
        self.log = self._fresh_log()

    def restore(self, log: ConversationLog, cwd: Path):
        self.log = log
        if Path(cwd).is_dir():
            self.cwd = Path(cwd)
        else:
            _log.warning("Saved working directory %s is gone, keeping %s", cwd, self.cwd)

    def _request_reply(self) -> str:
        if not self.show_indicator:
            return self.llm.chat(self.log.to_payload())
        with ThinkingIndicator(self.console):
            return self.llm.chat(self.log.to_payload())

    def chat(self, user_input: str) -> TurnSummary:
        """Run one human turn: ask, handle, and keep asking while the reply says so."""
        self.log.add(Role.USER, user_input)
        summary = TurnSummary()

        for _ in range(self.max_iterations):
            try:
                raw = self._request_reply()
            except TransportError as e:
                _log.error("Model request failed: %s", e)
                render_error(self.console, str(e))
                summary.error = str(e)
                return summary

            outcome = self.handler.handle(raw, self.cwd)
            self.log.extend(outcome.messages)
            if outcome.working_directory is not None:
                self.cwd = outcome.working_directory
            summary.outcomes.append(outcome)

            if outcome.result is not None and outcome.result.created_file:
                self._analyze_screenshot(outcome.result.created_file)

            if not outcome.continue_reasoning:
                return summary

        summary.hit_iteration_limit = True
        render_warning(self.console, f"Reached max iterations ({self.max_iterations}).")
        return summary

    def _analyze_screenshot(self, filename: Path):
        if self.vision_llm is None:
            return
        path = Path(filename)
        if not path.is_absolute():
            path = self.cwd / path
        if not path.is_file():
            _log.info("Screenshot %s not found, skipping analysis", path)
            return

        try:
            if self.show_indicator:
                with ThinkingIndicator(self.console, label="Looking at screenshot"):
                    analysis = self.vision_llm.analyze_image(path)
            else:
                analysis = self.vision_llm.analyze_image(path)
        except TransportError as e:
            _log.warning("Screenshot analysis failed: %s", e)
            render_error(self.console, str(e))
            return

        self.log.append(Message(Role.USER, f"{SCREENSHOT_ANALYSIS_HEADER}\n{analysis}"))
