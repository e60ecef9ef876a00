"""Command risk classification and the confirmation policy applied per risk level."""

from enum import Enum

from .logger import get_logger, redact
from .theme import get_palette

_log = get_logger(__name__)

__all__ = [
    "RiskLevel",
    "DANGEROUS_PATTERNS",
    "CAUTION_PREFIXES",
    "classify_command",
    "confirm_command",
]


class RiskLevel(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    DANGEROUS = "dangerous"


# Substring signatures, matched against the lower-cased command.
DANGEROUS_PATTERNS = (
    "rm -rf /",
    "rm -rf ~",
    "rm -rf *",
    "dd if=",
    "mkfs",
    "shutdown",
    "reboot",
    ":(){:|:&};:",  # fork bomb
)

# Mutating verbs, matched as prefixes.
CAUTION_PREFIXES = ("rm ", "mv ", "cp ", "chmod ", "chown ", "kill ", "pkill ")


def classify_command(command: str) -> RiskLevel:
    """Grade a command by its text alone. Dangerous wins over caution."""
    cmd = command.strip().lower()

    for pattern in DANGEROUS_PATTERNS:
        if pattern in cmd:
            return RiskLevel.DANGEROUS

    for prefix in CAUTION_PREFIXES:
        if cmd.startswith(prefix):
            return RiskLevel.CAUTION

    return RiskLevel.SAFE


def confirm_command(console, command: str, risk: RiskLevel) -> bool:
    """Ask the human to approve ``command`` with friction matching ``risk``.

    ``SAFE`` and ``CAUTION`` take a single y/n answer (``CAUTION`` shows a
    warning first). ``DANGEROUS`` requires the exact command to be typed back;
    the typed line is compared without any trimming.
    """
    palette = get_palette()
    try:
        if risk is RiskLevel.DANGEROUS:
            console.print(
                f"  [bold {palette.ERROR}]⛔ Dangerous command.[/bold {palette.ERROR}] "
                f"[{palette.MUTED}]Type it again exactly to run it:[/{palette.MUTED}]"
            )
            console.print(f"  [{palette.DIM}]$[/{palette.DIM}] ", end="")
            console.print(command, markup=False, highlight=False)
            typed = console.input(f"  [{palette.ERROR}]>[/{palette.ERROR}] ")
            approved = typed == command
        else:
            if risk is RiskLevel.CAUTION:
                console.print(
                    f"  [{palette.WARN}]⚠ This command modifies files or processes.[/{palette.WARN}]"
                )
            answer = console.input(f"  [bold {palette.TEXT}]Execute? (y/n):[/bold {palette.TEXT}] ")
            approved = answer.strip().lower() == "y"
    except (KeyboardInterrupt, EOFError):
        approved = False

    _log.info("Command %s at %s risk: %s", "approved" if approved else "declined",
              risk.value, redact(command))
    return approved
