from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from promptr import config as config_module
from promptr.config import Config, DEFAULT_CONFIG

config_app = typer.Typer(help="Manage Promptr configuration settings.")


@config_app.command(
    "set",
    help="Sets a Promptr configuration key in the user's global config file.\n\nUsage Examples:\n  promptr config set default_tool ChatGPT\n  promptr config set promptr_path /mnt/data/promptr",
)
def set_config_command(
    ctx: typer.Context,
    key: str = typer.Argument(
        ...,
        help=f"The configuration key to set. Valid keys: {', '.join(DEFAULT_CONFIG.keys())}.",
    ),
    value: str = typer.Argument(..., help="The new value for the configuration key."),
) -> None:
    config: Config = ctx.obj["config"]
    if not config.set(key, value):
        # Config.set has already reported the reason on stderr
        raise typer.Exit(code=1)
    typer.secho(
        f"Successfully set '{key}' to '{value}' in the user global configuration: {config_module.USER_CONFIG_PATH}",
        fg=typer.colors.GREEN,
    )
    typer.echo(
        "Note: Environment variables or a local '.promptr.yaml' may override this global setting."
    )


@config_app.command(
    "show",
    help="Displays the effective Promptr configuration and where each value came from.\n\nUsage Examples:\n  promptr config show\n  promptr config show --key user_id",
)
def show_config_command(
    ctx: typer.Context,
    key: Optional[str] = typer.Option(
        None,
        "--key",
        "-k",
        help=f"Specific configuration key to display. Valid keys: {', '.join(DEFAULT_CONFIG.keys())}.",
    ),
) -> None:
    config: Config = ctx.obj["config"]
    console = Console(width=200)
    table = Table(title="Promptr Configuration")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Effective Value", style="magenta", overflow="fold")
    table.add_column("Source", style="green", no_wrap=True, overflow="fold")

    if key:
        if key not in config.get_all_keys():
            typer.secho(
                f"Error: Configuration key '{key}' is not a recognized key.",
                fg=typer.colors.RED,
                err=True,
            )
            typer.echo("Known configuration keys are:")
            for known_key in sorted(config.get_all_keys()):
                typer.echo(f"- {known_key}")
            raise typer.Exit(code=1)
        rows = {key: config.get_with_source(key)}
    else:
        rows = config.get_all_with_sources()

    for name in sorted(rows):
        value, source = rows[name]
        table.add_row(name, "Not Set" if value is None else str(value), source)
    console.print(table)
