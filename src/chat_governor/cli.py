"""Command-line adapter built on rich-click and lib_cli_exit_tools.

Purpose
-------
Expose the governor for operators and smoke tests: print package metadata,
simulate admission checks for an identity, and window a conversation stored as
JSON.

Contents
--------
* :func:`cli` - root group with traceback and ``.env`` toggles.
* ``info`` / ``check`` / ``window`` subcommands.
* :func:`main` - entry point used by the console script and ``python -m``.
"""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta
from pathlib import Path
from typing import Any, Sequence

import lib_cli_exit_tools
import rich_click as click
from rich.console import Console
from rich.table import Table

from . import __init__conf__
from . import config as governor_config
from .adapters import FixedWindowRateGovernor, SystemClock
from .domain import ConfigurationError, ConversationMessage, RateDecision, WindowResult
from .runtime import init, summary_info

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(invoke_without_command=True, context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--traceback/--no-traceback",
    default=False,
    help="Show full Python traceback on errors.",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=None,
    help=f"Load the nearest .env before reading settings (default from {governor_config.DOTENV_ENV_VAR}).",
)
@click.version_option(__init__conf__.version, "--version", "-V", prog_name=__init__conf__.shell_command)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, use_dotenv: bool | None) -> None:
    """Rate governor and context windower for chat assistants."""

    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    if governor_config.dotenv_requested(use_dotenv):
        governor_config.enable_dotenv()
    if ctx.invoked_subcommand is None:
        click.echo(summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print resolved metadata so users can confirm the installation."""

    click.echo(summary_info(), nl=False)


@cli.command("check", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("identity")
@click.option("--requests", "-n", "requests", type=click.IntRange(min=1), default=1, show_default=True, help="Number of checks to issue.")
@click.option("--max-requests", type=int, default=None, help="Requests admitted per window (default from CHAT_RATE_LIMIT).")
@click.option(
    "--window",
    "window_seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Window length in seconds (default from CHAT_RATE_LIMIT).",
)
def cli_check(identity: str, requests: int, max_requests: int | None, window_seconds: float | None) -> None:
    """Issue REQUESTS admission checks for IDENTITY against a fresh governor."""

    try:
        settings = governor_config.build_settings()
        governor = FixedWindowRateGovernor(
            max_requests=max_requests if max_requests is not None else settings.max_requests,
            window=timedelta(seconds=window_seconds if window_seconds is not None else settings.window_seconds),
            clock=SystemClock(),
        )
    except OverflowError as exc:
        raise click.BadParameter("window is too large", param_hint="'--window'") from exc
    except ConfigurationError as exc:
        raise click.BadParameter(str(exc)) from exc
    decisions = [governor.check(identity) for _ in range(requests)]
    _render_decisions(identity, decisions)


@cli.command("window", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("conversation", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--max-messages", type=click.IntRange(min=1), default=None, help="Messages kept verbatim (default from CHAT_MAX_MESSAGES).")
@click.option("--timeout", type=float, default=None, help="Summary call deadline in seconds (default from CHAT_SUMMARY_TIMEOUT).")
def cli_window(conversation: Path, max_messages: int | None, timeout: float | None) -> None:
    """Window the JSON conversation stored in CONVERSATION and print the result."""

    messages = _load_conversation(conversation)
    try:
        result = asyncio.run(_window(messages, max_messages=max_messages, timeout=timeout))
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))


async def _window(messages: list[ConversationMessage], *, max_messages: int | None, timeout: float | None) -> WindowResult:
    runtime = init(
        max_messages=max_messages,
        summary_timeout=timeout if timeout is not None else governor_config.UNSET,
        start=False,
    )
    try:
        return await runtime.reduce(messages, max_messages)
    finally:
        await runtime.shutdown_async()


def _load_conversation(path: Path) -> list[ConversationMessage]:
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path} is not valid JSON: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get("messages", [])
    if not isinstance(payload, list):
        raise click.ClickException(f"{path} must contain a list of messages")
    try:
        return [ConversationMessage.from_dict(item, position=index) for index, item in enumerate(payload)]
    except (ValueError, TypeError, AttributeError) as exc:
        raise click.ClickException(f"{path} contains an invalid message: {exc}") from exc


def _render_decisions(identity: str, decisions: list[RateDecision]) -> None:
    table = Table(title=f"Admission checks for {identity}")
    table.add_column("#", justify="right")
    table.add_column("allowed")
    table.add_column("remaining", justify="right")
    table.add_column("window resets at")
    for index, decision in enumerate(decisions, start=1):
        table.add_row(
            str(index),
            "[green]yes[/green]" if decision.allowed else "[red]no[/red]",
            str(decision.remaining),
            decision.reset_at.isoformat() if decision.reset_at is not None else "-",
        )
    Console().print(table)


def main(argv: Sequence[str] | None = None, *, restore_traceback: bool = True) -> int:
    """Run the CLI through lib_cli_exit_tools and return the exit code.

    Traceback preferences changed by ``--traceback`` are restored afterwards so
    repeated in-process invocations (tests, notebooks) stay independent.
    """

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


__all__ = ["cli", "main"]
