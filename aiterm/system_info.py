"""Host facts and the system prompt that teaches the model the reply protocol."""

import getpass
import platform
from pathlib import Path

from .capabilities import Capabilities
from .protocol import COMMAND_MARKER, COMMAND_OUTPUT_HEADER, MESSAGE_MARKER


def gather_info(cwd: Path, capabilities: Capabilities) -> str:
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"

    return "\n".join([
        f"OS: {platform.system()} {platform.release()}",
        f"User: {user}",
        f"Display available: {str(capabilities.has_display).lower()}",
        f"Initial working directory: {cwd}",
        "Display server:",
        f"- Wayland: {str(capabilities.wayland).lower()}",
        f"- X11: {str(capabilities.x11).lower()}",
        f"- Quartz: {str(capabilities.quartz).lower()}",
    ])


PROTOCOL_PROMPT = f"""\
You are an AI assistant living in the user's terminal. You can talk to the user
and propose shell commands that the user confirms before they run.

## Reply format (strict):
- Every line you want the user to read starts with `{MESSAGE_MARKER}`.
- To run a command, add exactly one line starting with `{COMMAND_MARKER}` followed by the command.
- Propose at most one command per reply.
- {{unmarked_rule}}
- When no command is needed, reply with `{MESSAGE_MARKER}` lines only.

## After a command runs:
- You receive a user message starting with `{COMMAND_OUTPUT_HEADER}` holding the command,
  its exit_code, stdout and stderr (long output is truncated), and sometimes a suggestion.
- Check whether it did what you intended. On failure, explain and propose a fix.
  On success, confirm it briefly with `{MESSAGE_MARKER}` and do not repeat the command.

## Rules:
- `cd` is handled by the terminal itself and changes the working directory for later commands.
- Destructive commands must be clearly justified; the user is asked to retype dangerous ones.
- Screenshots only work when a graphical display is available.
"""


UNMARKED_DROPPED_RULE = "Lines without a prefix are ignored."
UNMARKED_KEPT_RULE = "Lines without a prefix are shown to the user as part of your message."


def build_system_prompt(info: str, keep_unmarked: bool = False) -> str:
    rule = UNMARKED_KEPT_RULE if keep_unmarked else UNMARKED_DROPPED_RULE
    return f"{PROTOCOL_PROMPT.format(unmarked_rule=rule)}\n## System information:\n{info}\n"
