import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from promptr import __version__
from promptr.config import Config
from promptr.exceptions import PromptrError
from promptr.logging_utils import configure_logging
from promptr.naming import describe_title

from .config_commands import config_app
from .memory_commands import memories_app
from .utils import open_store

# --- Main Application ---
app = typer.Typer(
    help="Promptr: save, organize and reuse prompts captured from AI chat tools."
)

app.add_typer(memories_app, name="memories")
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    if value:
        typer.echo(f"Promptr version: {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Path to write debug logs. If not set, logs are not written to file.",
        resolve_path=True,
        show_default=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose (DEBUG level) logging to console and log file (if specified).",
    ),
    store_path: Optional[str] = typer.Option(
        None,
        "--store-path",
        "-s",
        help="Directory of the Promptr store. Overrides env var and config.",
        show_default=False,
    ),
    user: Optional[str] = typer.Option(
        None,
        "--user",
        "-u",
        help="User id that owns the prompts. Overrides env var and config.",
        show_default=False,
    ),
    version: Optional[bool] = typer.Option(
        None,
        "-v",
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the application version and exit.",
    ),
):
    """
    Promptr CLI main entry point.
    Resolves logging, the store location and the acting user for subcommands.
    """
    if ctx.obj is None:
        ctx.obj = {}

    config = Config()
    config.update_from_cli("promptr_path", store_path)
    config.update_from_cli("user_id", user)
    if verbose:
        config.update_from_cli("verbose", True)
    if not config.validate():
        typer.secho(
            "Error: Invalid configuration. Run 'promptr config show' to inspect it.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    resolved_log_file = (
        log_file
        if log_file
        else Path(config.get("log_file")) if config.get("log_file") else None
    )
    resolved_verbose = bool(config.get("verbose", False))
    configure_logging(verbose=resolved_verbose, log_file=resolved_log_file)

    ctx.obj["config"] = config
    ctx.obj["verbose"] = resolved_verbose
    ctx.obj["log_file"] = str(resolved_log_file) if resolved_log_file else None
    ctx.obj["promptr_path"] = config.get("promptr_path")
    ctx.obj["user_id"] = config.get("user_id")


@app.command(
    "name",
    help='Generates a short title for a prompt.\n\nUsage Examples:\n  promptr name "Can you explain how binary search works?"\n  cat prompt.txt | promptr name - --trace',
)
def name_command(
    text: str = typer.Argument(..., help="Prompt text, or '-' to read it from stdin."),
    trace: bool = typer.Option(
        False, "--trace", help="Show each strategy tried and the candidate it produced."
    ),
) -> None:
    if text == "-":
        text = sys.stdin.read()
    result = describe_title(text)
    typer.echo(result.title)
    if not trace:
        return

    table = Table(title=f"Strategy: {result.strategy}")
    table.add_column("Step", style="cyan", no_wrap=True)
    table.add_column("Candidate", style="magenta", overflow="fold")
    for step in result.trace.steps:
        table.add_row(step["type"], step["details"]["candidate"] or "-")
    Console(width=200).print(table)


@app.command(
    "waitlist",
    help="Adds an email address to the launch waitlist.\n\nUsage Examples:\n  promptr waitlist me@example.com",
)
def waitlist_command(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Email address to add."),
) -> None:
    store = open_store(ctx)
    try:
        entry = store.add_waitlist_email(email)
    except PromptrError as e:
        typer.secho(f"Error: {e.args[0]}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.secho(f"Added {entry.email} to the waitlist.", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
