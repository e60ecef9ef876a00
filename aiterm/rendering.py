"""Console rendering helpers for protocol events and command results."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .theme import get_palette
from .tools.shell import ExecutionResult, signal_name

_PREVIEW_LINES = 20


def render_ai_message(console: Console, text: str):
    p = get_palette()
    console.print(f"[bold {p.SUCCESS}]AI:[/bold {p.SUCCESS}] ", end="")
    console.print(text, markup=False, highlight=False)


def render_proposed_command(console: Console, command: str, risk_label: str):
    p = get_palette()
    console.print(
        f"\n  [bold {p.WARN}]Proposed command[/bold {p.WARN}] "
        f"[{p.DIM}]({risk_label})[/{p.DIM}]"
    )
    console.print(f"  [{p.ACCENT}]$[/{p.ACCENT}] ", end="")
    console.print(command, markup=False, highlight=False)


def render_blocked(console: Console, notice: str):
    p = get_palette()
    console.print(f"  [bold {p.ERROR}]⛔ {escape(notice)}[/bold {p.ERROR}]")


def render_cancelled(console: Console):
    p = get_palette()
    console.print(f"  [{p.DIM}]Cancelled.[/{p.DIM}]")


def render_directory_change(console: Console, ok: bool, target: str):
    p = get_palette()
    if ok:
        console.print(f"  [{p.SUCCESS}]Directory changed to[/{p.SUCCESS}] {escape(target)}")
    else:
        console.print(f"  [{p.ERROR}]cd failed:[/{p.ERROR}] {escape(target)}")


def render_result(console: Console, result: ExecutionResult):
    """Human view: success shows stdout, failure shows stderr."""
    p = get_palette()
    if result.succeeded:
        console.print(f"  [bold {p.SUCCESS}]✔ Success[/bold {p.SUCCESS}]")
        body = result.stdout_view
    elif result.launch_failed:
        console.print(f"  [bold {p.ERROR}]✖ Error:[/bold {p.ERROR}] could not start the shell")
        body = result.stderr_view
    else:
        sig = signal_name(result.exit_code)
        detail = f"exit code {result.exit_code}" + (f", {sig}" if sig else "")
        console.print(f"  [bold {p.ERROR}]✖ Failed[/bold {p.ERROR}] [{p.DIM}]({detail})[/{p.DIM}]")
        body = result.stderr_view

    lines = body.rstrip("\n").splitlines()
    if len(lines) > _PREVIEW_LINES:
        omitted = len(lines) - _PREVIEW_LINES
        lines = lines[:_PREVIEW_LINES] + [f"... ({omitted} more lines)"]
    for line in lines:
        console.print(f"     {line}", markup=False, highlight=False)


def render_suggestion(console: Console, suggestion: str):
    p = get_palette()
    console.print(f"  [{p.INFO}]Did you mean:[/{p.INFO}] ", end="")
    console.print(suggestion, markup=False, highlight=False)


def render_error(console: Console, message: str):
    p = get_palette()
    panel = Panel(
        f"[{p.ERROR}]{escape(message)}[/{p.ERROR}]",
        title=f"[bold {p.ERROR}]Error[/bold {p.ERROR}]",
        title_align="left",
        border_style=p.ERROR,
        padding=(0, 2),
    )
    console.print()
    console.print(panel)


def render_warning(console: Console, message: str):
    p = get_palette()
    console.print(f"\n[{p.WARN}]⚠ {escape(message)}[/{p.WARN}]")
