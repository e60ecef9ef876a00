"""Slash-command routing and handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .agent import TerminalAgent
from .config import CONFIG_FIELDS, Config
from .conversation import Role
from .errors import ConfigError
from .llm import LLMAdapter
from .protocol import ContinuationPolicy
from .session import list_sessions, load_session, save_session
from .system_info import UNMARKED_DROPPED_RULE, UNMARKED_KEPT_RULE
from .theme import get_palette, set_theme
from .ui import SLASH_COMMANDS, build_help_text

_SLASH_ALIASES = {"/h": "/help", "/?": "/help", "/exit": "/quit", "/q": "/quit", "/cwd": "/pwd"}

_HISTORY_PREVIEW_CHARS = 160


@dataclass
class CommandContext:
    console: Console
    agent: TerminalAgent
    config: Config
    llm: LLMAdapter


CommandHandler = Callable[[CommandContext, list[str]], str]


def _resolve_command(raw_cmd: str) -> str:
    """Resolve abbreviated slash commands via exact/alias/prefix matching."""
    cmd = raw_cmd.lower()

    # Enter right after '/' runs the first command.
    if cmd == "/":
        return SLASH_COMMANDS[0]

    if cmd in SLASH_COMMANDS:
        return cmd
    if cmd in _SLASH_ALIASES:
        return _SLASH_ALIASES[cmd]

    matches = [candidate for candidate in SLASH_COMMANDS if candidate.startswith(cmd)]
    if matches:
        return matches[0]

    return cmd


def handle_command(
    command: str,
    *,
    console: Console,
    agent: TerminalAgent,
    config: Config,
    llm: LLMAdapter,
) -> str:
    """Handle one slash command string. Returns "quit" when the REPL should end."""
    parts = command.split()
    if not parts:
        return ""

    cmd = _resolve_command(parts[0])
    args = parts[1:]

    ctx = CommandContext(console=console, agent=agent, config=config, llm=llm)
    handler = COMMAND_HANDLERS.get(cmd)
    if not handler:
        p = get_palette()
        console.print(f"  [{p.WARN}]Unknown: {escape(cmd)}. Try /help[/{p.WARN}]")
        return ""

    return handler(ctx, args)


def show_config_panel(console: Console, config: Config) -> None:
    p = get_palette()
    table = Table(show_header=False, border_style=p.BORDER, padding=(0, 2), box=None)
    table.add_column("Key", style=f"bold {p.ACCENT}", min_width=14)
    table.add_column("Value", style=p.TEXT)
    for key, value in config.summary().items():
        table.add_row(key, escape(str(value)))
    console.print(Panel(table, title=f"[bold {p.ACCENT}] Configuration [/bold {p.ACCENT}]",
                        title_align="left", border_style=p.BORDER, padding=(0, 1)))


def _switch_model(ctx: CommandContext, name: str) -> None:
    p = get_palette()
    ctx.config.set_active_model(name)
    preset = ctx.config.get_active_preset()
    kwargs = preset.get_llm_kwargs()
    ctx.llm.model = kwargs["model"]
    ctx.llm.api_base = kwargs["api_base"]
    ctx.llm.api_key = kwargs["api_key"]
    ctx.llm.temperature = kwargs["temperature"]
    ctx.llm.max_tokens = kwargs["max_tokens"]
    ctx.console.print(
        f"  [{p.SUCCESS}]✓[/{p.SUCCESS}] Switched → [bold]{escape(name)}[/bold] "
        f"[{p.DIM}]({escape(preset.model)})[/{p.DIM}]"
    )
    if preset.api_base:
        ctx.console.print(f"    [{p.DIM}]{escape(preset.api_base)}[/{p.DIM}]")


def _show_model_table(ctx: CommandContext) -> None:
    p = get_palette()
    table = Table(border_style=p.BORDER)
    table.add_column("", width=2)
    table.add_column("Name", style=f"bold {p.ACCENT}")
    table.add_column("Model", style=p.TEXT)
    table.add_column("API Base", style=p.DIM)
    table.add_column("Key", style=p.DIM)
    table.add_column("Description", style=p.MUTED)
    for model in ctx.config.list_models():
        marker = f"[{p.SUCCESS}]●[/{p.SUCCESS}]" if model["active"] else " "
        table.add_row(
            marker,
            escape(model["name"]),
            escape(model["model"]),
            escape(model["api_base"]),
            model["key"],
            escape(model["desc"]),
        )
    ctx.console.print(Panel(table, title=f"[bold {p.ACCENT}] Models [/bold {p.ACCENT}]",
                            title_align="left", border_style=p.BORDER))


def _apply_runtime_setting(ctx: CommandContext, key: str) -> None:
    """Push a changed config value into the live session."""
    handler = ctx.agent.handler
    match key:
        case "continue-after-command":
            handler.continuation = ContinuationPolicy.parse(ctx.config.continue_after_command)
        case "unmarked-lines":
            _set_unmarked_lines(ctx, ctx.config.unmarked_lines == "message")
        case "max-iterations":
            ctx.agent.max_iterations = ctx.config.max_iterations
        case "shell":
            handler.executor.shell = ctx.config.shell
        case "theme":
            set_theme(ctx.config.theme)
        case "vision-model":
            preset = ctx.config.get_vision_preset()
            ctx.agent.vision_llm = LLMAdapter(**preset.get_llm_kwargs()) if preset else None
        case "active-model":
            _switch_model(ctx, ctx.config.active_model)


def _set_unmarked_lines(ctx: CommandContext, keep: bool) -> None:
    """Switch unmarked-line handling and tell the model about the new rule."""
    agent = ctx.agent
    if agent.handler.keep_unmarked == keep:
        return
    old, new = UNMARKED_DROPPED_RULE, UNMARKED_KEPT_RULE
    if not keep:
        old, new = new, old
    agent.handler.keep_unmarked = keep
    agent.system_prompt = agent.system_prompt.replace(old, new)
    agent.log.add(Role.SYSTEM, new)


def _cmd_quit(ctx: CommandContext, args: list[str]) -> str:
    _ = args
    p = get_palette()
    ctx.console.print(f"[{p.DIM}]Goodbye![/{p.DIM}]")
    return "quit"


def _cmd_help(ctx: CommandContext, args: list[str]) -> str:
    _ = args
    ctx.console.print(build_help_text())
    return ""


def _cmd_pwd(ctx: CommandContext, args: list[str]) -> str:
    _ = args
    ctx.console.print(f"  {escape(str(ctx.agent.cwd))}")
    return ""


def _cmd_history(ctx: CommandContext, args: list[str]) -> str:
    p = get_palette()
    try:
        limit = int(args[0]) if args else 20
    except ValueError:
        ctx.console.print(f"  [{p.WARN}]Usage: /history [n][/{p.WARN}]")
        return ""

    messages = [m for m in ctx.agent.log if m.role is not Role.SYSTEM]
    if not messages:
        ctx.console.print(f"  [{p.DIM}]No messages yet[/{p.DIM}]")
        return ""

    role_colors = {Role.USER: p.INFO, Role.ASSISTANT: p.SUCCESS}
    for message in messages[-limit:] if limit > 0 else messages:
        color = role_colors.get(message.role, p.DIM)
        preview = " ".join(message.content.split())
        if len(preview) > _HISTORY_PREVIEW_CHARS:
            preview = preview[:_HISTORY_PREVIEW_CHARS - 1] + "…"
        ctx.console.print(
            f"  [bold {color}]{message.role.value:<9}[/bold {color}] {escape(preview)}"
        )
    ctx.console.print(f"  [{p.DIM}]{len(messages)} messages[/{p.DIM}]")
    return ""


def _cmd_save(ctx: CommandContext, args: list[str]) -> str:
    p = get_palette()
    if ctx.agent.log.count(Role.USER) == 0:
        ctx.console.print(f"  [{p.DIM}]Nothing to save (empty conversation)[/{p.DIM}]")
        return ""

    name = args[0] if args else None
    filename = save_session(ctx.agent.log, ctx.agent.cwd, name)
    ctx.console.print(f"  [{p.SUCCESS}]✓ Saved session: {escape(filename)}[/{p.SUCCESS}]")
    return ""


def _cmd_load(ctx: CommandContext, args: list[str]) -> str:
    p = get_palette()
    if not args:
        sessions = list_sessions(5)
        if not sessions:
            ctx.console.print(f"  [{p.DIM}]No saved sessions[/{p.DIM}]")
        else:
            ctx.console.print("  [bold]Recent sessions:[/bold]")
            for session in sessions:
                ctx.console.print(
                    f"    {escape(session['name'])} "
                    f"({session['messages']} msgs, {session['created_at']})"
                )
            ctx.console.print(f"  [{p.DIM}]Use /load <name> to load[/{p.DIM}]")
        return ""

    loaded = load_session(args[0])
    if loaded is None:
        ctx.console.print(f"  [{p.WARN}]Session not found: {escape(args[0])}[/{p.WARN}]")
        return ""

    log, cwd = loaded
    ctx.agent.restore(log, cwd)
    ctx.console.print(
        f"  [{p.SUCCESS}]✓ Loaded: {escape(args[0])} ({len(log)} messages)[/{p.SUCCESS}]"
    )
    ctx.console.print(f"  [{p.DIM}]↳ cwd {escape(str(ctx.agent.cwd))}[/{p.DIM}]")
    return ""


def _cmd_sessions(ctx: CommandContext, args: list[str]) -> str:
    _ = args
    p = get_palette()
    sessions = list_sessions(10)
    if not sessions:
        ctx.console.print(f"  [{p.DIM}]No saved sessions[/{p.DIM}]")
        return ""

    table = Table(border_style=p.BORDER)
    table.add_column("Name", style=f"bold {p.ACCENT}")
    table.add_column("Messages", style=p.TEXT, justify="right")
    table.add_column("Directory", style=p.DIM)
    table.add_column("Created", style=p.DIM)
    for session in sessions:
        table.add_row(
            escape(str(session["name"])),
            str(session["messages"]),
            escape(str(session["cwd"])),
            str(session["created_at"]),
        )

    ctx.console.print(Panel(
        table,
        title=f"[bold {p.ACCENT}]Recent Sessions[/bold {p.ACCENT}]",
        title_align="left",
        border_style=p.BORDER,
    ))
    return ""


def _cmd_policy(ctx: CommandContext, args: list[str]) -> str:
    p = get_palette()
    if not args:
        current = ctx.agent.handler.continuation.value
        ctx.console.print(f"  Continue after command: [bold]{current}[/bold]")
        ctx.console.print(f"  [{p.DIM}]Usage: /policy always | on-failure[/{p.DIM}]")
        return ""

    ok, message = ctx.config.set_config_value("continue-after-command", args[0])
    if not ok:
        raise ConfigError("continue-after-command", message)
    _apply_runtime_setting(ctx, "continue-after-command")
    ctx.console.print(f"  [{p.SUCCESS}]✓[/{p.SUCCESS}] {escape(message)}")
    return ""


def _cmd_model(ctx: CommandContext, args: list[str]) -> str:
    p = get_palette()
    if not args or args[0] == "list":
        _show_model_table(ctx)
        return ""

    name = args[0]
    if name == ctx.config.active_model:
        ctx.console.print(f"  [{p.DIM}]Already on '{escape(name)}'[/{p.DIM}]")
    elif name in ctx.config.models:
        _switch_model(ctx, name)
    else:
        ctx.console.print(
            f"  [{p.WARN}]Unknown: '{escape(name)}'. Use /model to list presets.[/{p.WARN}]"
        )
    return ""


def _cmd_config(ctx: CommandContext, args: list[str]) -> str:
    p = get_palette()
    if not args:
        show_config_panel(ctx.console, ctx.config)
        return ""

    key = args[0].lower()
    if key == "keys":
        for spec in CONFIG_FIELDS.values():
            ctx.console.print(
                f"  [bold {p.ACCENT}]{spec.key:<24}[/bold {p.ACCENT}] {spec.description}"
            )
        return ""

    if key not in CONFIG_FIELDS:
        raise ConfigError(key, "unknown configuration key (see /config keys)")

    if len(args) < 2:
        value = ctx.config.get_config_value(key)
        ctx.console.print(f"  {key} = {escape(str(value))}")
        return ""

    ok, message = ctx.config.set_config_value(key, " ".join(args[1:]))
    if not ok:
        raise ConfigError(key, message)
    _apply_runtime_setting(ctx, key)
    ctx.console.print(f"  [{p.SUCCESS}]✓[/{p.SUCCESS}] {escape(message)}")
    return ""


def _cmd_reset(ctx: CommandContext, args: list[str]) -> str:
    _ = args
    p = get_palette()
    ctx.agent.reset()
    ctx.console.print(f"  [{p.SUCCESS}]✓ Conversation cleared.[/{p.SUCCESS}]")
    return ""


COMMAND_HANDLERS: dict[str, CommandHandler] = {
    "/quit": _cmd_quit,
    "/help": _cmd_help,
    "/pwd": _cmd_pwd,
    "/history": _cmd_history,
    "/save": _cmd_save,
    "/load": _cmd_load,
    "/sessions": _cmd_sessions,
    "/policy": _cmd_policy,
    "/model": _cmd_model,
    "/config": _cmd_config,
    "/reset": _cmd_reset,
}
