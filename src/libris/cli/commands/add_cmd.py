# ABOUTME: The `libris add` command for adding a book file to the library.
# ABOUTME: Creates the placeholder record, waits for enrichment, and shows the result.

import asyncio
import mimetypes
from pathlib import Path

import click
from rich.console import Console

from libris.cli.options import build_settings, db_option, remote_options
from libris.cli.render import record_table
from libris.cli.runtime import open_library
from libris.config import Settings
from libris.db.mapping import BookRecord
from libris.db.remote import RemoteBackendError
from libris.formats.errors import CorruptBookError
from libris.metadata.types import IngestHints, UploadedFile

console = Console()


async def _add(settings: Settings, file: UploadedFile, hints: IngestHints) -> BookRecord:
    async with open_library(settings) as library:
        record = await library.coordinator.ingest(file, hints)
        console.print(f"[dim]Added {record.title} ({record.id}), looking up metadata...[/dim]")
        await library.coordinator.join()
        return record


@click.command("add")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--title", default=None, help="Title to use instead of the file's own.")
@click.option("--author", default=None, help="Author to use instead of the file's own.")
@click.option("--cover-url", default=None, help="Cover image URL; skips cover lookup.")
@db_option
@remote_options
def add(
    path: Path,
    title: str | None,
    author: str | None,
    cover_url: str | None,
    db_path: Path | None,
    remote_url: str | None,
    remote_key: str | None,
    access_token: str | None,
    user_id: str | None,
) -> None:
    """Add a book file (EPUB or PDF) to the library."""
    settings = build_settings(db_path, remote_url, remote_key, access_token, user_id)
    content_type, _ = mimetypes.guess_type(path.name)
    file = UploadedFile.from_path(path, content_type=content_type)
    hints = IngestHints(title=title, author=author, cover_url=cover_url)

    try:
        record = asyncio.run(_add(settings, file, hints))
    except CorruptBookError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    except RemoteBackendError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    console.print(record_table(record))
