# ABOUTME: The `libris cover` command for looking up a cover online.
# ABOUTME: Runs the discovery resolver for a title/author and prints the chosen URL.

import asyncio

import click
from rich.console import Console

from libris.cli import runtime
from libris.metadata.resolver import CoverResolver
from libris.metadata.types import CoverResult

console = Console()


async def _find(title: str, author: str | None) -> CoverResult:
    async with runtime.make_http_client() as http:
        return await CoverResolver.default(http).find_cover(title, author)


@click.command("cover")
@click.argument("title")
@click.option("--author", default=None, help="Author to narrow the search.")
def cover(title: str, author: str | None) -> None:
    """Find a cover image URL for a title."""
    result = asyncio.run(_find(title, author))

    if result.is_placeholder:
        console.print(f"[yellow]No cover found.[/yellow] Using {result.url}")
        return

    console.print(f"[bold]Cover:[/bold] {result.url}")
    console.print(f"[dim]Source: {result.source}[/dim]")
    if result.author:
        console.print(f"[dim]Author: {result.author}[/dim]")
