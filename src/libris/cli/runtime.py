# ABOUTME: Wires settings into a running library: store, remote backend, resolver, coordinator.
# ABOUTME: Commands enter it as an async context manager so every handle is closed on exit.

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from libris.config import Settings
from libris.core.ingest import IngestionCoordinator
from libris.core.reconciler import Reconciler
from libris.db.remote import RestBackend
from libris.db.store import LocalStore
from libris.metadata.http import LibrisHttpClient
from libris.metadata.resolver import CoverResolver


@dataclass
class Library:
    reconciler: Reconciler
    coordinator: IngestionCoordinator
    resolver: CoverResolver
    http: LibrisHttpClient


def make_http_client() -> LibrisHttpClient:
    return LibrisHttpClient()


def make_remote(settings: Settings) -> RestBackend | None:
    return settings.build_remote()


@asynccontextmanager
async def open_library(settings: Settings) -> AsyncIterator[Library]:
    store = LocalStore(settings.db_path).open()
    http = make_http_client()
    remote = make_remote(settings)
    try:
        reconciler = Reconciler(store, remote, settings.session)
        resolver = CoverResolver.default(http)
        yield Library(
            reconciler=reconciler,
            coordinator=IngestionCoordinator(reconciler, resolver),
            resolver=resolver,
            http=http,
        )
    finally:
        if remote is not None:
            await remote.aclose()
        await http.aclose()
        store.close()
