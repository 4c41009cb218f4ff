# ABOUTME: The `libris ls` command for listing the library.
# ABOUTME: Displays a Rich table of every book visible to the current session.

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from libris.cli.options import build_settings, db_option, remote_options
from libris.cli.render import describe_cover
from libris.cli.runtime import open_library
from libris.config import Settings
from libris.db.mapping import BookRecord

console = Console()


async def _list(settings: Settings) -> list[BookRecord]:
    async with open_library(settings) as library:
        return await library.reconciler.list()


@click.command("ls")
@db_option
@remote_options
def ls(
    db_path: Path | None,
    remote_url: str | None,
    remote_key: str | None,
    access_token: str | None,
    user_id: str | None,
) -> None:
    """List all books in the library."""
    settings = build_settings(db_path, remote_url, remote_key, access_token, user_id)
    records = asyncio.run(_list(settings))

    if not records:
        console.print("[yellow]No books in the library.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Format")
    table.add_column("Cover")
    table.add_column("Stored")

    for record in records:
        table.add_row(
            record.id,
            record.title,
            record.author or "[dim]unknown[/dim]",
            record.format.value,
            describe_cover(record),
            record.storage,
        )

    console.print(table)
    console.print(f"\n[dim]{len(records)} book(s)[/dim]")
