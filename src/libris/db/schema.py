# ABOUTME: SQL DDL statements for the Libris local embedded store.
# ABOUTME: Defines metadata rows, blob storage, drawing overlays, and schema migrations.

SCHEMA_V1 = """
-- Book metadata rows held locally (guests, or remote fallback)
CREATE TABLE books (
    id               TEXT PRIMARY KEY,
    user_id          TEXT,
    title            TEXT NOT NULL,
    author           TEXT NOT NULL DEFAULT '',
    format           TEXT NOT NULL,
    cover_ref        TEXT NOT NULL,
    file_ref         TEXT NOT NULL,
    progress         TEXT,
    enrichment_state TEXT NOT NULL DEFAULT 'pending',
    created_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    updated_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE INDEX idx_books_user_id ON books(user_id);

-- Raw book files and extracted covers, keyed by record id or cover_<id>
CREATE TABLE blobs (
    key          TEXT PRIMARY KEY,
    content_type TEXT,
    data         BLOB NOT NULL,
    stored_at    TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""

MIGRATION_V2 = """
-- Free-form drawing overlays, keyed by '<book_id>-<page_key>'
CREATE TABLE drawings (
    key        TEXT PRIMARY KEY,
    data       TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (2);
"""

MIGRATIONS: list[tuple[int, str]] = [
    (2, MIGRATION_V2),
]
