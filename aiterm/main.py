"""
aiterm v1.0.0: an AI assistant that lives in your terminal.

Command: aiterm run
"""

import os
import sys
import traceback
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .agent import TerminalAgent
from .capabilities import Capabilities, CapabilityGate
from .config import HISTORY_FILE, Config, ModelPreset
from .errors import AgentError
from .llm import LLMAdapter
from .logger import get_logger, setup_logger
from .protocol import ContinuationPolicy, ReplyHandler
from .system_info import build_system_prompt, gather_info
from .theme import get_palette, set_theme
from .tools.shell import CaptureExecutor
from .ui import build_banner

console = Console()
_log = get_logger(__name__)


def _prepare(config: Config, model: Optional[str] = None, api_key: Optional[str] = None,
             api_base: Optional[str] = None, verbose: bool = False) -> ModelPreset:
    """Apply CLI overrides, configure logging and theme, return the active preset."""
    if model:
        if model in config.models:
            config.active_model = model
        else:
            config.models["_cli"] = ModelPreset(
                name="_cli",
                provider="openai",
                model=model,
                api_base=api_base,
                api_key=api_key or "not-needed",
            )
            config.active_model = "_cli"
    if verbose:
        config.verbose = True

    setup_logger("aiterm", verbose=config.verbose, log_file=config.log_file)
    set_theme(config.theme)

    preset = config.get_active_preset()
    if api_key:
        preset.api_key = api_key
    if api_base:
        preset.api_base = api_base
    return preset


def build_agent(config: Config, preset: ModelPreset, cwd: Path,
                capabilities: Capabilities, out: Console) -> TerminalAgent:
    """Wire transport, executor, gate and handler into a session loop."""
    llm = LLMAdapter(**preset.get_llm_kwargs())
    vision_preset = config.get_vision_preset()
    vision_llm = LLMAdapter(**vision_preset.get_llm_kwargs()) if vision_preset else None

    keep_unmarked = config.unmarked_lines == "message"
    handler = ReplyHandler(
        console=out,
        executor=CaptureExecutor(shell=config.shell),
        gate=CapabilityGate(capabilities),
        continuation=ContinuationPolicy.parse(config.continue_after_command),
        keep_unmarked=keep_unmarked,
    )
    system_prompt = build_system_prompt(gather_info(cwd, capabilities), keep_unmarked=keep_unmarked)
    return TerminalAgent(
        llm=llm,
        handler=handler,
        system_prompt=system_prompt,
        cwd=cwd,
        console=out,
        max_iterations=config.max_iterations,
        vision_llm=vision_llm,
    )


def _resolve_cwd(cwd: str) -> Path:
    path = Path(cwd).expanduser().resolve()
    if not path.is_dir():
        console.print(f"[red]Error: '{cwd}' is not a valid directory.[/red]")
        sys.exit(1)
    return path


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx):
    """aiterm: an AI assistant for your terminal."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
@click.option("--model", "-m", default=None, help="Model preset name or litellm model id")
@click.option("--api-key", "-k", default=None, help="API key override")
@click.option("--api-base", "-b", default=None, help="API base override")
@click.option("--cwd", "-d", default=".", help="Initial working directory")
@click.option("--continue", "continue_mode", type=click.Choice(["always", "on-failure"]),
              default=None, help="Re-ask the model after every command or only after failures")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def run(model, api_key, api_base, cwd, continue_mode, verbose):
    """Start an interactive session."""
    os.environ.setdefault("PROMPT_TOOLKIT_NO_CPR", "1")
    config = Config.load(cwd)
    if continue_mode:
        config.continue_after_command = continue_mode
    preset = _prepare(config, model, api_key, api_base, verbose)
    working_dir = _resolve_cwd(cwd)

    console.print(build_banner(__version__))

    from .ui import (
        MAX_SLASH_MENU_ITEMS,
        PTK_STYLE,
        SlashCommandCompleter,
        make_prompt_html,
        render_startup,
    )

    capabilities = Capabilities.detect()
    render_startup(console, config, capabilities, working_dir)
    agent = build_agent(config, preset, working_dir, capabilities, console)
    _log.info("Session started in %s with model %s", working_dir, preset.model)

    from .command_router import handle_command

    from prompt_toolkit import PromptSession
    from prompt_toolkit.history import FileHistory
    from prompt_toolkit.key_binding import KeyBindings
    from prompt_toolkit.shortcuts import CompleteStyle

    HISTORY_FILE.parent.mkdir(parents=True, exist_ok=True)

    session = PromptSession(
        history=FileHistory(str(HISTORY_FILE)),
        multiline=False,
        completer=SlashCommandCompleter(max_items=MAX_SLASH_MENU_ITEMS),
        complete_while_typing=True,
        style=PTK_STYLE,
        complete_style=CompleteStyle.COLUMN,
    )

    repl_kb = KeyBindings()

    @repl_kb.add("escape", "enter")
    def _newline(event):
        event.current_buffer.insert_text("\n")

    pending_ctrl_d_exit = False

    while True:
        p = get_palette()
        try:
            user_input = session.prompt(make_prompt_html(agent.cwd.name),
                                        key_bindings=repl_kb).strip()
            pending_ctrl_d_exit = False
        except EOFError:
            if pending_ctrl_d_exit:
                console.print(f"\n[{p.DIM}]Goodbye![/{p.DIM}]")
                break
            pending_ctrl_d_exit = True
            console.print(f"\n[{p.DIM}]Press Ctrl-D again to exit.[/{p.DIM}]")
            continue
        except KeyboardInterrupt:
            console.print(f"\n[{p.DIM}]Goodbye![/{p.DIM}]")
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit"):
            console.print(f"[{p.DIM}]Goodbye![/{p.DIM}]")
            break

        try:
            if user_input.startswith("/"):
                result = handle_command(
                    user_input,
                    console=console,
                    agent=agent,
                    config=config,
                    llm=agent.llm,
                )
                if result == "quit":
                    break
                continue

            agent.chat(user_input)
        except KeyboardInterrupt:
            console.print(f"\n[{p.WARN}]  Interrupted.[/{p.WARN}]")
        except AgentError as error:
            _log.warning("Turn failed: %s", error)
            console.print(f"\n[{p.ERROR}]  Error: {escape(str(error))}[/{p.ERROR}]")
            if config.verbose:
                console.print(traceback.format_exc(), markup=False)


@cli.command()
@click.argument("message", nargs=-1, required=True)
@click.option("--model", "-m", default=None)
@click.option("--cwd", "-d", default=".")
@click.option("--continue", "continue_mode", type=click.Choice(["always", "on-failure"]),
              default=None)
def ask(message, model, cwd, continue_mode):
    """Run a single turn and exit."""
    config = Config.load(cwd)
    if continue_mode:
        config.continue_after_command = continue_mode
    preset = _prepare(config, model)
    working_dir = _resolve_cwd(cwd)

    agent = build_agent(config, preset, working_dir, Capabilities.detect(), console)
    summary = agent.chat(" ".join(message))
    if summary.error:
        sys.exit(1)


@cli.command("config")
def config_cmd():
    """Show configuration."""
    from .command_router import show_config_panel

    cfg = Config.load()
    set_theme(cfg.theme)
    show_config_panel(console, cfg)


if __name__ == "__main__":
    cli()
