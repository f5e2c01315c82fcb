import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from promptr.exceptions import PromptrError
from promptr.library import (
    SORT_OPTIONS,
    display_title,
    export_memories,
    extract_variables,
    fill_variables,
    filter_memories,
    library_stats,
    parse_import,
)
from promptr.models import MemoryCreate, MemoryUpdate
from promptr.naming import generate_title

from .utils import open_library, open_store

memories_app = typer.Typer(help="Save, list and reuse prompts.")
folder_app = typer.Typer(help="Group prompts into folders.")
memories_app.add_typer(folder_app, name="folder")


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@memories_app.command(
    "list",
    help="Lists saved prompts.\n\nUsage Examples:\n  promptr memories list --search sql --sort name-asc\n  promptr memories list --view favorites --tag work",
)
def list_command(
    ctx: typer.Context,
    search: str = typer.Option("", "--search", "-q", help="Case-insensitive text search."),
    tags: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Only prompts carrying every given tag."),
    view: str = typer.Option("all", "--view", help="all, favorites, recent, folder-<id>, or a tool name."),
    sort: str = typer.Option("newest", "--sort", help=f"One of: {', '.join(SORT_OPTIONS)}."),
) -> None:
    store = open_store(ctx)
    library = open_library(ctx)
    try:
        memories = filter_memories(
            store.list_memories(ctx.obj["user_id"]),
            library,
            view=view,
            tags=tags or [],
            query=search,
            sort=sort,
        )
    except PromptrError as e:
        _fail(e.args[0])

    if not memories:
        typer.echo("No prompts found.")
        return

    table = Table(title="Prompts")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="magenta", overflow="fold")
    table.add_column("Tool", style="green")
    table.add_column("Tags")
    table.add_column("Copies", justify="right")
    for memory in memories:
        meta = library.metadata.get(memory.id)
        star = "* " if library.is_favorite(memory.id) else ""
        table.add_row(
            memory.id,
            star + display_title(memory),
            memory.tool or "",
            ", ".join(meta.tags) if meta else "",
            str(meta.copy_count) if meta else "0",
        )
    Console(width=200).print(table)


@memories_app.command(
    "add",
    help='Saves a prompt.\n\nUsage Examples:\n  promptr memories add "Summarize this article in 3 bullets" --tool ChatGPT\n  promptr memories add "Translate {{text}} to {{language}}" --auto-name',
)
def add_command(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Prompt text."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name."),
    tool: Optional[str] = typer.Option(None, "--tool", help="Tool the prompt came from."),
    model: Optional[str] = typer.Option(None, "--model", help="Model the prompt was used with."),
    auto_name: bool = typer.Option(False, "--auto-name", help="Generate a name when none is given."),
) -> None:
    store = open_store(ctx)
    if auto_name and not (name and name.strip()):
        name = generate_title(text)
    try:
        item = MemoryCreate(
            text=text,
            name=name,
            tool=tool,
            model=model,
            variables=extract_variables(text) or None,
        )
        memory = store.add_memory(ctx.obj["user_id"], item)
    except ValidationError as e:
        _fail(e.errors()[0]["msg"])
    except PromptrError as e:
        _fail(e.args[0])
    typer.secho(f"Saved prompt {memory.id}: {display_title(memory)}", fg=typer.colors.GREEN)


@memories_app.command("edit", help="Edits a prompt, keeping the previous text in its history.")
def edit_command(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Prompt id."),
    text: Optional[str] = typer.Option(None, "--text", help="New prompt text."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New display name."),
    tool: Optional[str] = typer.Option(None, "--tool", help="New tool label."),
) -> None:
    store = open_store(ctx)
    library = open_library(ctx)
    user_id = ctx.obj["user_id"]
    changes = {k: v for k, v in {"text": text, "name": name, "tool": tool}.items() if v is not None}
    if not changes:
        _fail("Nothing to change. Pass --text, --name or --tool.")
    try:
        current = store.get_memory(memory_id, user_id)
        update = MemoryUpdate(**changes)
        library.push_version(current)
        store.update_memory(memory_id, user_id, update)
    except ValidationError as e:
        _fail(e.errors()[0]["msg"])
    except PromptrError as e:
        _fail(e.args[0])
    library.save()
    typer.secho(f"Updated prompt {memory_id}.", fg=typer.colors.GREEN)


@memories_app.command("history", help="Shows the saved versions of a prompt.")
def history_command(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Prompt id."),
) -> None:
    versions = open_library(ctx).versions(memory_id)
    if not versions:
        typer.echo("No previous versions.")
        return
    table = Table(title=f"History of {memory_id}")
    table.add_column("#", justify="right")
    table.add_column("Saved", style="green", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Text", overflow="fold")
    for index, version in enumerate(versions, start=1):
        table.add_row(str(index), version.timestamp.isoformat(), version.name or "", version.text)
    Console(width=200).print(table)


@memories_app.command("delete", help="Deletes a prompt.")
def delete_command(
    ctx: typer.Context,
    memory_ids: List[str] = typer.Argument(..., help="Prompt id(s)."),
) -> None:
    store = open_store(ctx)
    library = open_library(ctx)
    removed = store.delete_memories(memory_ids, ctx.obj["user_id"])
    if not removed:
        _fail("No matching prompts.")
    library.forget(memory_ids)
    library.save()
    typer.secho(f"Deleted {removed} prompt(s).", fg=typer.colors.GREEN)


@memories_app.command(
    "copy",
    help='Prints a prompt with its variables filled and counts the use.\n\nUsage Examples:\n  promptr memories copy 3f2a... --var language=French --var text="Hello"',
)
def copy_command(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Prompt id."),
    variables: Optional[List[str]] = typer.Option(None, "--var", help="Variable value as name=value."),
) -> None:
    store = open_store(ctx)
    library = open_library(ctx)
    try:
        memory = store.get_memory(memory_id, ctx.obj["user_id"])
    except PromptrError as e:
        _fail(e.args[0])

    values = dict(memory.variable_defaults or {})
    for assignment in variables or []:
        key, sep, value = assignment.partition("=")
        if not sep:
            _fail(f"Invalid --var '{assignment}'. Use name=value.")
        values[key.strip()] = value
    missing = [v for v in extract_variables(memory.text) if v not in values]
    if missing:
        _fail(f"Missing values for: {', '.join(missing)}")

    typer.echo(fill_variables(memory.text, {k: str(v) for k, v in values.items()}))
    library.record_copy(memory.id)
    library.save()


@memories_app.command("tag", help="Adds (or with --remove, removes) a tag on a prompt.")
def tag_command(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Prompt id."),
    tag: str = typer.Argument(..., help="Tag text."),
    remove: bool = typer.Option(False, "--remove", help="Remove the tag instead."),
) -> None:
    library = open_library(ctx)
    tags = library.remove_tag(memory_id, tag) if remove else library.add_tag(memory_id, tag)
    library.save()
    typer.echo(f"Tags: {', '.join(tags) if tags else '(none)'}")


@memories_app.command("favorite", help="Toggles a prompt's favorite flag.")
def favorite_command(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Prompt id."),
) -> None:
    library = open_library(ctx)
    starred = library.toggle_favorite(memory_id)
    library.save()
    typer.echo("Added to favorites." if starred else "Removed from favorites.")


@memories_app.command("export", help="Writes all prompts to a JSON file.")
def export_command(
    ctx: typer.Context,
    output: Path = typer.Argument(..., help="Destination file."),
) -> None:
    store = open_store(ctx)
    memories = store.list_memories(ctx.obj["user_id"])
    if not memories:
        _fail("No prompts to export")
    output.write_text(export_memories(memories), encoding="utf-8")
    typer.secho(f"Exported {len(memories)} prompts to {output}", fg=typer.colors.GREEN)


@memories_app.command("import", help="Saves every prompt from an exported JSON file.")
def import_command(
    ctx: typer.Context,
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Exported file."),
) -> None:
    store = open_store(ctx)
    try:
        items = parse_import(source.read_text(encoding="utf-8"))
        saved = store.add_memories(ctx.obj["user_id"], items)
    except PromptrError as e:
        _fail(e.args[0])
    logging.getLogger(__name__).info("Imported %d prompts from %s", len(saved), source)
    typer.secho(f"Imported {len(saved)} prompts", fg=typer.colors.GREEN)


@memories_app.command("duplicate", help="Saves a copy of a prompt under a new id.")
def duplicate_command(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Prompt id."),
) -> None:
    store = open_store(ctx)
    try:
        copy = store.duplicate_memory(memory_id, ctx.obj["user_id"])
    except PromptrError as e:
        _fail(e.args[0])
    typer.secho(f"Duplicated prompt {memory_id} as {copy.id}: {display_title(copy)}", fg=typer.colors.GREEN)


@memories_app.command("stats", help="Summarizes saved prompts by tool, favorites and tags.")
def stats_command(ctx: typer.Context) -> None:
    store = open_store(ctx)
    library = open_library(ctx)
    stats = library_stats(store.list_memories(ctx.obj["user_id"]), library)

    table = Table(title="Library Stats")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="magenta", overflow="fold")
    table.add_row("Prompts", str(stats["total"]))
    table.add_row("Favorites", str(stats["favorites"]))
    for tool, count in sorted(stats["by_tool"].items()):
        table.add_row(f"Tool: {tool}", str(count))
    table.add_row("Tags", ", ".join(library.all_tags()) or "(none)")
    table.add_row("Folders", str(len(library.folders)))
    Console(width=200).print(table)


@folder_app.command("create", help="Creates a folder and prints its id.")
def folder_create_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Folder name."),
    color: Optional[str] = typer.Option(None, "--color", help="Display color, e.g. '#22c55e'."),
) -> None:
    library = open_library(ctx)
    try:
        folder = library.create_folder(name, color)
    except PromptrError as e:
        _fail(e.args[0])
    library.save()
    typer.secho(f"Created folder {folder.id}: {folder.name}", fg=typer.colors.GREEN)


@folder_app.command("list", help="Lists folders with the number of prompts in each.")
def folder_list_command(ctx: typer.Context) -> None:
    library = open_library(ctx)
    if not library.folders:
        typer.echo("No folders found.")
        return
    table = Table(title="Folders")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Color")
    table.add_column("Prompts", justify="right")
    for folder in library.folders:
        filed = sum(1 for meta in library.metadata.values() if meta.folder == folder.id)
        table.add_row(folder.id, folder.name, folder.color, str(filed))
    Console(width=200).print(table)


@folder_app.command("assign", help="Files a prompt in a folder.")
def folder_assign_command(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Prompt id."),
    folder_id: str = typer.Argument(..., help="Folder id."),
) -> None:
    store = open_store(ctx)
    library = open_library(ctx)
    try:
        store.get_memory(memory_id, ctx.obj["user_id"])
        folder = library.get_folder(folder_id)
        library.assign_folder(memory_id, folder.id)
    except PromptrError as e:
        _fail(e.args[0])
    library.save()
    typer.echo(f"Filed {memory_id} in {folder.name}.")


@folder_app.command("unassign", help="Removes a prompt from its folder.")
def folder_unassign_command(
    ctx: typer.Context,
    memory_id: str = typer.Argument(..., help="Prompt id."),
) -> None:
    library = open_library(ctx)
    library.assign_folder(memory_id, None)
    library.save()
    typer.echo(f"Removed {memory_id} from its folder.")


@folder_app.command("delete", help="Deletes a folder; its prompts stay saved.")
def folder_delete_command(
    ctx: typer.Context,
    folder_id: str = typer.Argument(..., help="Folder id."),
) -> None:
    library = open_library(ctx)
    try:
        folder = library.get_folder(folder_id)
    except PromptrError as e:
        _fail(e.args[0])
    library.delete_folder(folder.id)
    library.save()
    typer.secho(f"Deleted folder {folder.name}.", fg=typer.colors.GREEN)
