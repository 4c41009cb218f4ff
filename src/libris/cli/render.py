# ABOUTME: Rich rendering helpers shared by the CLI commands.
# ABOUTME: Formats BookRecords as detail tables and cover references for display.

from rich.table import Table

from libris.db.mapping import BookRecord, blob_key


def describe_cover(record: BookRecord) -> str:
    if record.has_placeholder_cover:
        return "[dim]placeholder[/dim]"
    key = blob_key(record.cover_ref)
    if key is not None:
        return f"embedded ({key})"
    return record.cover_ref


def record_table(record: BookRecord) -> Table:
    table = Table(title=record.id, show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Title", record.title)
    table.add_row("Author", record.author or "[dim]unknown[/dim]")
    table.add_row("Format", record.format.value)
    table.add_row("Cover", describe_cover(record))
    table.add_row("Enrichment", record.enrichment_state.value)
    table.add_row("Stored", record.storage)
    return table
