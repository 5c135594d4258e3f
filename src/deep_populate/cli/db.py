"""Content store commands."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from deep_populate.core.ports.database import ContentDatabase

db_app = typer.Typer(help="Manage the content entry store.")
console = Console()


def _get_database() -> ContentDatabase:
    from deep_populate.db.engine import get_engine
    from deep_populate.db.sql import SqlContentDatabase

    return SqlContentDatabase(get_engine())


def _read_fixture(path: Path) -> dict[str, list[dict[str, Any]]]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]{path} is not valid JSON: {exc}[/red]")
        raise typer.Exit(1) from exc
    if not isinstance(raw, dict) or not all(isinstance(v, list) for v in raw.values()):
        console.print("[red]Expected an object mapping model uids to lists of entries.[/red]")
        raise typer.Exit(1)
    return raw


@db_app.command("init")
def init() -> None:
    """Create the content entry table if it does not exist."""
    db = _get_database()

    async def _run() -> None:
        try:
            await db.ensure_ready()
            console.print("[green]Content store ready.[/green]")
        finally:
            await db.dispose()

    asyncio.run(_run())


@db_app.command("load")
def load(
    file: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="JSON object of uid -> entries.")],
) -> None:
    """Insert fixture entries; entries keep their ``id`` when they have one."""
    fixture = _read_fixture(file)
    db = _get_database()

    async def _run() -> list[tuple[str, int]]:
        try:
            await db.ensure_ready()
            return [(uid, await db.insert_entries(uid, entries)) for uid, entries in fixture.items()]
        finally:
            await db.dispose()

    loaded = asyncio.run(_run())
    table = Table(show_lines=False)
    table.add_column("uid")
    table.add_column("inserted")
    for uid, count in loaded:
        table.add_row(uid, str(count))
    console.print(table)


@db_app.command("count")
def count(
    uid: Annotated[str, typer.Argument(help="Model uid, e.g. api::article.article.")],
) -> None:
    """Show how many entries a model has."""
    db = _get_database()

    async def _run() -> int:
        try:
            return await db.count_entries(uid)
        finally:
            await db.dispose()

    console.print(f"{uid}: {asyncio.run(_run())} entries")
