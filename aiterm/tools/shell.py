"""Shell command execution with bounded output capture."""

import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..capabilities import is_screenshot_command
from ..logger import get_logger, redact

_log = get_logger(__name__)

__all__ = [
    "MAX_CAPTURE_LEN",
    "TRUNCATION_MARKER",
    "LAUNCH_FAILURE_EXIT_CODE",
    "SCREENSHOT_CANDIDATES",
    "ExecutionResult",
    "CaptureExecutor",
    "signal_name",
    "truncate",
]

MAX_CAPTURE_LEN = 800
TRUNCATION_MARKER = "\n... (truncated)"
LAUNCH_FAILURE_EXIT_CODE = -1
SCREENSHOT_CANDIDATES = ("screenshot.png", "Screenshot.png", "screen.png")


def truncate(text: str, limit: int = MAX_CAPTURE_LEN) -> str:
    """Keep the first ``limit`` characters and mark the cut; short text is untouched."""
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


@dataclass(frozen=True)
class ExecutionResult:
    command: str
    exit_code: int
    stdout_view: str
    stderr_view: str
    suggestion: Optional[str] = None
    created_file: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def launch_failed(self) -> bool:
        return self.exit_code == LAUNCH_FAILURE_EXIT_CODE

    def model_view(self) -> str:
        """Machine-readable block appended to the transcript as COMMAND_OUTPUT."""
        view = (
            f"command: {self.command}\n"
            f"exit_code: {self.exit_code}\n"
            f"stdout:\n{self.stdout_view}\n"
            f"stderr:\n{self.stderr_view}"
        )
        if self.suggestion:
            view += f"\nsuggestion: {self.suggestion}"
        return view


class CaptureExecutor:
    """Run commands verbatim through the host interpreter and capture their output.

    Execution is synchronous and has no timeout. Any failure to start the
    interpreter is returned as a result with exit code -1, never raised.
    """

    def __init__(self, shell: str = "sh", capture_limit: int = MAX_CAPTURE_LEN):
        self.shell = shell
        self.capture_limit = capture_limit

    def execute(self, command: str, cwd: Union[str, Path]) -> ExecutionResult:
        _log.info("Executing in %s: %s", cwd, redact(command))

        try:
            proc = subprocess.run(
                [self.shell, "-c", command],
                capture_output=True,
                cwd=str(cwd),
                env={**os.environ, "TERM": "dumb"},
            )
        except (OSError, subprocess.SubprocessError) as e:
            _log.warning("Launch failed for %s: %s", redact(command), e)
            return ExecutionResult(
                command=command,
                exit_code=LAUNCH_FAILURE_EXIT_CODE,
                stdout_view="",
                stderr_view=truncate(f"{type(e).__name__}: {e}", self.capture_limit),
            )

        exit_code = self._normalize_exit_code(proc.returncode)
        stdout = proc.stdout.decode("utf-8", errors="replace")
        stderr = proc.stderr.decode("utf-8", errors="replace")

        created_file = None
        if exit_code == 0 and is_screenshot_command(command):
            created_file = self._find_created_screenshot(Path(cwd))

        _log.info("Exit code %d (stdout %d chars, stderr %d chars)",
                  exit_code, len(stdout), len(stderr))
        return ExecutionResult(
            command=command,
            exit_code=exit_code,
            stdout_view=truncate(stdout, self.capture_limit),
            stderr_view=truncate(stderr, self.capture_limit),
            created_file=created_file,
        )

    @staticmethod
    def _normalize_exit_code(returncode: int) -> int:
        # Signal deaths come back negative; report them the way shells do so
        # that -1 stays reserved for launch failures.
        if returncode < 0:
            return 128 + abs(returncode)
        return returncode

    @staticmethod
    def _find_created_screenshot(cwd: Path) -> Optional[Path]:
        for name in SCREENSHOT_CANDIDATES:
            path = cwd / name
            if path.exists():
                return path
        return None


def signal_name(exit_code: int) -> Optional[str]:
    """Name the signal behind a ``128 + N`` exit code, if any."""
    if exit_code <= 128:
        return None
    try:
        return signal.Signals(exit_code - 128).name
    except ValueError:
        return None
