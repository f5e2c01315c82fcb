from pathlib import Path

import typer

from promptr.exceptions import StoreError
from promptr.library import PromptLibrary
from promptr.store import JsonStore


def open_store(ctx: typer.Context) -> JsonStore:
    """Open the store resolved by the main callback, exiting on failure."""
    store_path = ctx.obj.get("promptr_path")
    if not store_path:
        typer.secho(
            "Error: Store path not set. Use --store-path or 'promptr config set promptr_path ...'.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)
    config = ctx.obj["config"]
    try:
        return JsonStore(store_path, default_tool=config.get("default_tool"))
    except StoreError as e:
        typer.secho(f"Error opening store at '{store_path}': {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def open_library(ctx: typer.Context) -> PromptLibrary:
    """Open the acting user's library file, exiting when it cannot be read."""
    path = Path(ctx.obj["promptr_path"]) / "libraries" / f"{ctx.obj['user_id']}.json"
    try:
        return PromptLibrary(path)
    except StoreError as e:
        typer.secho(f"Error opening library: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
