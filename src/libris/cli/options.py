# ABOUTME: Shared Click options for Libris CLI commands.
# ABOUTME: Provides reusable decorators for --db and the remote backend/identity flags.

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from libris.config import Session, Settings
from libris.db.store import DEFAULT_DB_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to library database (default: {DEFAULT_DB_PATH})",
)


def remote_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the remote backend and identity options shared by library commands."""
    func = click.option(
        "--user",
        "user_id",
        envvar="LIBRIS_USER",
        default=None,
        help="User id to act as. Omit to run as a guest (local storage only).",
    )(func)
    func = click.option(
        "--token",
        "access_token",
        envvar="LIBRIS_TOKEN",
        default=None,
        help="Access token for the remote backend.",
    )(func)
    func = click.option(
        "--remote-key",
        envvar="LIBRIS_REMOTE_KEY",
        default=None,
        help="API key for the remote backend.",
    )(func)
    func = click.option(
        "--remote-url",
        envvar="LIBRIS_REMOTE_URL",
        default=None,
        help="Base URL of the remote metadata backend.",
    )(func)
    return func


def build_settings(
    db_path: Path | None,
    remote_url: str | None,
    remote_key: str | None,
    access_token: str | None,
    user_id: str | None,
) -> Settings:
    return Settings(
        db_path=db_path or DEFAULT_DB_PATH,
        remote_url=remote_url,
        remote_key=remote_key,
        session=Session(user_id=user_id, access_token=access_token),
    )
