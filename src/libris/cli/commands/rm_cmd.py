# ABOUTME: The `libris rm` command for deleting a book.
# ABOUTME: Removes the metadata row and releases the file, cover, and drawings.

import asyncio
from pathlib import Path

import click
from rich.console import Console

from libris.cli.options import build_settings, db_option, remote_options
from libris.cli.runtime import open_library
from libris.config import Settings
from libris.db.remote import RemoteBackendError
from libris.db.store import BookNotFoundError

console = Console()


async def _remove(settings: Settings, book_id: str) -> None:
    async with open_library(settings) as library:
        await library.coordinator.delete(book_id)


@click.command("rm")
@click.argument("book_id")
@db_option
@remote_options
def rm(
    book_id: str,
    db_path: Path | None,
    remote_url: str | None,
    remote_key: str | None,
    access_token: str | None,
    user_id: str | None,
) -> None:
    """Delete a book and everything stored for it."""
    settings = build_settings(db_path, remote_url, remote_key, access_token, user_id)
    try:
        asyncio.run(_remove(settings, book_id))
    except BookNotFoundError as exc:
        console.print(f"[red]Book {book_id} not found.[/red]")
        raise SystemExit(1) from exc
    except RemoteBackendError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    console.print(f"[green]Deleted {book_id}.[/green]")
