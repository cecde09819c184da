# ABOUTME: SQL DDL statements for the Shelf Notes library database schema.
# ABOUTME: Defines the books table, including the embedded cover record columns.

SCHEMA_VERSION = 1

SCHEMA_V1 = """
-- Core book table; cover_* columns hold the book's cover record
CREATE TABLE books (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    title             TEXT NOT NULL,
    authors           TEXT,
    isbn              TEXT,
    status            TEXT NOT NULL DEFAULT 'to_read',
    primary_cover_url TEXT,
    cover_candidates  TEXT NOT NULL DEFAULT '[]',
    user_cover_file   TEXT,
    cover_thumbnail   BLOB,
    date_added        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    date_modified     TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE UNIQUE INDEX idx_books_isbn ON books(isbn) WHERE isbn IS NOT NULL;
CREATE INDEX idx_books_title ON books(title);

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""
