# ABOUTME: Public API for the Libris persistence layer.
# ABOUTME: Exports the local store, the remote backend client, and the BookRecord type.

from libris.db.mapping import BookRecord
from libris.db.remote import RemoteBackendError, RemotePermissionError, RestBackend
from libris.db.store import DEFAULT_DB_PATH, BookNotFoundError, LocalStore

__all__ = [
    "DEFAULT_DB_PATH",
    "BookNotFoundError",
    "BookRecord",
    "LocalStore",
    "RemoteBackendError",
    "RemotePermissionError",
    "RestBackend",
]
