"""Command line interface for qai.

This module defines the ``qai`` command using the ``click`` library.
It exposes several subcommands:

``qai query [--multi] [-n N] <request>``
    Ask the model for a command.  With ``--multi`` the reply lists
    alternatives under ``MODERN:`` and ``STANDARD:`` headings.

``qai shell-init [zsh]``
    Print the shell integration script.  Add
    ``eval "$(qai shell-init zsh)"`` to ``.zshrc``.

``qai validate-api``
    Check that the API is reachable and the key is accepted, without
    spending tokens.  Run by the trigger widget before AI mode starts.

``qai complete <request>``
    Run one AI mode round trip (fetch, filter, pick) and print the chosen
    command.  Run by the Enter widget while in AI mode.

``qai tools``
    Show, refresh or clear the cache of installed tools.

Errors are printed to standard error and make the command exit with
status 1, which the shell widgets rely on.
"""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import click

from . import __version__
from .api import validate_api_key_from_config
from .config import Config, load_config
from .errors import QaiError
from .logging_utils import configure_logging, get_log_file
from .query import run_query
from .selection import default_picker
from .session import AI_TRIGGER_TEXT, AiModeSession, LineEditor, ProcessFetcher, QueryRequest
from .shell import generate_init_script, supported_shells
from .tools import ToolCache


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration for the current invocation, exiting on error."""
    try:
        config = load_config(ctx.obj.get("config_path"))
    except QaiError as exc:
        _fail(str(exc))
    if config.debug:
        configure_logging(ctx.obj.get("verbosity", 0), debug=True)
    return config


def _self_command(ctx: click.Context) -> List[str]:
    """argv used to re-invoke qai from a child process or shell widget."""
    argv = [sys.executable, "-m", "qai"]
    config_path = ctx.obj.get("config_path")
    if config_path is not None:
        argv += ["--config", str(config_path)]
    return argv


@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=f"Logs are written to: {get_log_file()}",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config file",
)
@click.option("-v", "--verbose", count=True, help="Enable verbose logging (repeat for debug)")
@click.version_option(__version__, prog_name="qai")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: int) -> None:
    """qai - natural language to shell commands via LLM."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbosity"] = verbose
    configure_logging(verbose)


@cli.command(name="query")
@click.option("-m", "--multi", is_flag=True, help="Return multiple command options")
@click.option("-n", "--count", type=click.IntRange(min=1), default=None, help="Number of results (with --multi)")
@click.argument("query", nargs=-1, required=True)
@click.pass_context
def query_cmd(ctx: click.Context, multi: bool, count: Optional[int], query: tuple) -> None:
    """Send a query to the LLM and print shell command(s)."""
    config = _load_config(ctx)
    request = QueryRequest(
        text=" ".join(query).strip(),
        multi=multi,
        count=count or config.count,
        cwd=os.getcwd(),
        context={"shell": os.environ.get("SHELL", "")},
    )
    if not request.text:
        _fail("Please provide a query, e.g. qai query \"list files by size\"")
    cache = ToolCache.load()
    try:
        result = run_query(request, config, cache=cache)
    except QaiError as exc:
        _fail(str(exc))
    click.echo(result)


@cli.command(name="shell-init")
@click.argument("shell", default="zsh")
@click.pass_context
def shell_init(ctx: click.Context, shell: str) -> None:
    """Print the shell initialization script."""
    config = _load_config(ctx)
    qai_command = "qai"
    if ctx.obj.get("config_path") is not None:
        qai_command = f"qai --config {shlex.quote(str(ctx.obj['config_path']))}"
    try:
        script = generate_init_script(shell, config, qai_command)
    except QaiError as exc:
        _fail(str(exc))
    if script is None:
        _fail(f"Unsupported shell: '{shell}'. Supported shells: {', '.join(supported_shells())}")
    click.echo(script, nl=False)


@cli.command(name="validate-api")
@click.pass_context
def validate_api(ctx: click.Context) -> None:
    """Validate the API key (no token usage)."""
    config = _load_config(ctx)
    try:
        validate_api_key_from_config(config)
    except QaiError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)
    click.echo("API key is valid")


@cli.command(name="complete")
@click.argument("query", nargs=-1, required=True)
@click.pass_context
def complete(ctx: click.Context, query: tuple) -> None:
    """Fetch, filter and pick a command for an AI mode query."""
    config = _load_config(ctx)
    editor = LineEditor(buffer=AI_TRIGGER_TEXT)
    # No probe: the trigger widget ran validate-api before entering AI mode.
    session = AiModeSession(
        editor,
        fetcher=ProcessFetcher(_self_command(ctx), timeout=config.timeout),
        picker=default_picker(),
        cache=ToolCache.load(),
        count=config.count,
    )
    session.press_trigger()
    editor.buffer = " ".join(query)
    session.submit()

    if session.chosen is None:
        notices = [m for m in editor.messages if m]
        click.echo(notices[-1] if notices else "❌ No results", err=True)
        sys.exit(1)
    click.echo(session.chosen)


@cli.command(name="tools")
@click.option("-r", "--refresh", is_flag=True, help="Re-probe common modern tools")
@click.option("--clear", is_flag=True, help="Clear the tool cache")
def tools_cmd(refresh: bool, clear: bool) -> None:
    """Manage the tool cache used to filter suggestions."""
    cache = ToolCache.load()
    if clear:
        cache.clear()
    if refresh:
        cache.refresh()
    try:
        cache.save()
    except QaiError as exc:
        _fail(str(exc))
    if clear and not refresh:
        click.echo("Tool cache cleared.")
        return

    stats = cache.stats()
    click.echo(f"Tool cache: {cache.path}")
    click.echo(f"Available tools: {stats.available_count} ({stats.modern_tools_count} modern)")
    click.echo(f"Unavailable tools: {stats.unavailable_count}")
    modern = cache.modern_tools()
    if modern:
        click.echo(f"Modern tools: {', '.join(modern)}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
