# ABOUTME: CLI package for Libris, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.logging import RichHandler

from libris.cli.commands import add_cmd, cover_cmd, inspect_cmd, ls_cmd, rm_cmd, search_cmd


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=False)],
    )
    # httpx logs every request at INFO; only show it when asked.
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


@click.group()
@click.version_option(package_name="libris")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Libris - a personal e-book library."""
    configure_logging(verbose)


cli.add_command(add_cmd.add)
cli.add_command(ls_cmd.ls)
cli.add_command(rm_cmd.rm)
cli.add_command(cover_cmd.cover)
cli.add_command(search_cmd.search)
cli.add_command(inspect_cmd.inspect)
