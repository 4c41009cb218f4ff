# ABOUTME: The `libris inspect` command for viewing what a book file contains.
# ABOUTME: Shows the detected format, filename guess, and embedded metadata and cover.

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from libris.formats.errors import CorruptBookError
from libris.formats.extractor import detect_format, extract_cover, extract_metadata, validate_file
from libris.metadata.normalizer import parse_filename
from libris.metadata.types import BookFormat, ExtractedMetadata, Lookup, UploadedFile

console = Console()


async def _extract(
    file: UploadedFile, book_format: BookFormat
) -> tuple[Lookup[ExtractedMetadata], Lookup[bytes]]:
    metadata, cover = await asyncio.gather(
        extract_metadata(file, book_format), extract_cover(file, book_format)
    )
    return metadata, cover


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(path: Path) -> None:
    """Show metadata extracted from an EPUB or PDF file."""
    file = UploadedFile.from_path(path)
    book_format = detect_format(file)
    try:
        validate_file(file, book_format)
    except CorruptBookError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    parsed = parse_filename(file.name)
    metadata, cover = asyncio.run(_extract(file, book_format))
    embedded = metadata.value or ExtractedMetadata()

    table = Table(title=path.name, show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Format", book_format.value)
    table.add_row("Title", embedded.title or "[dim]none[/dim]")
    table.add_row("Author", embedded.author or "[dim]none[/dim]")
    table.add_row("Filename title", parsed.title)
    table.add_row("Filename author", parsed.author or "[dim]none[/dim]")
    table.add_row("Cover", f"yes ({len(cover.value)} bytes)" if cover.is_found else "no")

    console.print(table)
