# ABOUTME: The `libris search` command for searching the public catalog.
# ABOUTME: Shows Open Library hits with links to external archive searches.

import asyncio

import click
from rich.console import Console
from rich.table import Table

from libris.cli import runtime
from libris.metadata.catalog import CatalogResult, search_catalog

console = Console()


async def _search(query: str) -> list[CatalogResult]:
    async with runtime.make_http_client() as http:
        return await search_catalog(http, query)


@click.command("search")
@click.argument("query")
def search(query: str) -> None:
    """Search the Open Library catalog for books to add."""
    results = asyncio.run(_search(query))

    if not results:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table()
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Lang", width=5)
    table.add_column("Cover")

    for result in results:
        table.add_row(
            result.title,
            result.author,
            result.language or "?",
            "yes" if result.cover_url else "[dim]no[/dim]",
        )

    console.print(table)
    console.print(f"\n[dim]{len(results)} result(s)[/dim]")
    first = results[0]
    for name, url in first.external_links.items():
        console.print(f"[dim]{name}:[/dim] {url}")
