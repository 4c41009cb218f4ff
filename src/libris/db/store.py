# ABOUTME: LocalStore: the embedded SQLite store for metadata rows, blobs, and drawings.
# ABOUTME: One explicitly opened handle per process, injected wherever storage is needed.

import logging
import sqlite3
from pathlib import Path

from libris.db.mapping import BookRecord, record_to_row, row_to_record, utc_now
from libris.db.schema import MIGRATIONS, SCHEMA_V1

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".libris" / "library.db"
MEMORY_DB = ":memory:"


class BookNotFoundError(ValueError):
    """Raised when a book id is not present in any backend."""


class StoreClosedError(RuntimeError):
    """Raised when the store is used before open() or after close()."""


def _schema_version(conn: sqlite3.Connection) -> int:
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    if cursor.fetchone() is None:
        return 0
    cursor = conn.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
    row = cursor.fetchone()
    return row[0] if row else 0


def _migrate(conn: sqlite3.Connection) -> None:
    """Create the base schema on first open, then apply pending migrations."""
    current = _schema_version(conn)
    if current == 0:
        conn.executescript(SCHEMA_V1)
        current = 1
    for version, sql in MIGRATIONS:
        if version > current:
            logger.debug("Applying local store migration v%d", version)
            conn.executescript(sql)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class LocalStore:
    """Embedded SQLite store.

    Holds book metadata rows for guests (and for writes the remote backend
    refused), every raw file and extracted cover as a blob, and per-page
    drawing overlays. SQLite's own locking serializes conflicting writes.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = path if path is not None else DEFAULT_DB_PATH
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> Path | str:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> "LocalStore":
        """Open or create the database and bring its schema up to date."""
        if self._conn is not None:
            return self
        if self._path != MEMORY_DB:
            db_path = Path(self._path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(db_path))
            conn.execute("PRAGMA journal_mode=WAL")
        else:
            conn = sqlite3.connect(MEMORY_DB)
        conn.row_factory = sqlite3.Row
        _migrate(conn)
        self._conn = conn
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "LocalStore":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def _db(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreClosedError("LocalStore is not open")
        return self._conn

    # --- Book rows ---

    def put_book(self, record: BookRecord) -> None:
        """Insert or replace a metadata row."""
        row = record_to_row(record)
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        self._db.execute(
            f"INSERT OR REPLACE INTO books ({columns}) VALUES ({placeholders})",
            list(row.values()),
        )
        self._db.commit()

    def get_book(self, book_id: str) -> BookRecord | None:
        cursor = self._db.execute("SELECT * FROM books WHERE id = ?", (book_id,))
        row = cursor.fetchone()
        return row_to_record(row) if row else None

    def list_books(self) -> list[BookRecord]:
        """Return all local rows, newest first."""
        cursor = self._db.execute("SELECT * FROM books ORDER BY created_at DESC, title")
        return [row_to_record(row) for row in cursor.fetchall()]

    def delete_book(self, book_id: str) -> bool:
        """Delete a metadata row. Returns whether a row existed."""
        cursor = self._db.execute("DELETE FROM books WHERE id = ?", (book_id,))
        self._db.commit()
        return cursor.rowcount > 0

    # --- Blobs ---

    def put_blob(self, key: str, data: bytes, content_type: str | None = None) -> None:
        self._db.execute(
            "INSERT OR REPLACE INTO blobs (key, content_type, data, stored_at) VALUES (?, ?, ?, ?)",
            (key, content_type, sqlite3.Binary(data), utc_now()),
        )
        self._db.commit()

    def get_blob(self, key: str) -> bytes | None:
        cursor = self._db.execute("SELECT data FROM blobs WHERE key = ?", (key,))
        row = cursor.fetchone()
        return bytes(row["data"]) if row else None

    def delete_blob(self, key: str) -> bool:
        """Delete a blob. Returns whether it existed; a missing blob is not an error."""
        cursor = self._db.execute("DELETE FROM blobs WHERE key = ?", (key,))
        self._db.commit()
        return cursor.rowcount > 0

    # --- Drawings ---

    def put_drawing(self, key: str, data: str) -> None:
        self._db.execute(
            "INSERT OR REPLACE INTO drawings (key, data, updated_at) VALUES (?, ?, ?)",
            (key, data, utc_now()),
        )
        self._db.commit()

    def scan_drawings(self, prefix: str) -> dict[str, str]:
        """All drawings whose key starts with ``prefix``, keyed by full key."""
        cursor = self._db.execute(
            "SELECT key, data FROM drawings WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
            (_escape_like(prefix) + "%",),
        )
        return {row["key"]: row["data"] for row in cursor.fetchall()}

    def delete_drawings(self, prefix: str) -> int:
        cursor = self._db.execute(
            "DELETE FROM drawings WHERE key LIKE ? ESCAPE '\\'",
            (_escape_like(prefix) + "%",),
        )
        self._db.commit()
        return cursor.rowcount
