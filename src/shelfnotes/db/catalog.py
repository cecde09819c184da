# ABOUTME: CRUD operations for the Shelf Notes library catalog.
# ABOUTME: Add, query, save cover state, and delete books in the SQLite database.

import sqlite3

from shelfnotes.covers.candidates import build_candidate_urls, clean_isbn
from shelfnotes.covers.record import CoverRecord
from shelfnotes.db.mapping import BookRecord, cover_to_row, metadata_to_row, row_to_record
from shelfnotes.metadata.types import BookMetadata, ReadingStatus


class DuplicateBookError(Exception):
    """Raised when attempting to add a book with an ISBN that already exists."""


class LibraryCatalog:
    """Wraps a sqlite3 connection and provides typed CRUD for the books table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def add_book(
        self,
        metadata: BookMetadata,
        status: ReadingStatus = ReadingStatus.TO_READ,
        cover: CoverRecord | None = None,
    ) -> int:
        """Add a book to the catalog.

        When no cover record is given, one is seeded from the metadata's
        image links and ISBN (no thumbnail yet).

        Args:
            metadata: The book's metadata.
            status: Initial reading status.
            cover: Explicit cover record, if the caller already has one.

        Returns:
            The row ID of the inserted book.

        Raises:
            DuplicateBookError: If a book with this ISBN already exists.
        """
        if cover is None:
            cover = CoverRecord(candidate_urls=build_candidate_urls(metadata))
        row = metadata_to_row(metadata, status, cover)
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        values = list(row.values())

        try:
            cursor = self._conn.execute(
                f"INSERT INTO books ({columns}) VALUES ({placeholders})",
                values,
            )
            self._conn.commit()
        except sqlite3.IntegrityError as exc:
            if "UNIQUE constraint failed: books.isbn" in str(exc):
                raise DuplicateBookError(f"Book with ISBN {metadata.isbn} already exists") from exc
            raise

        return cursor.lastrowid  # type: ignore[return-value]

    def get_by_id(self, book_id: int) -> BookRecord | None:
        """Retrieve a book by its row ID."""
        cursor = self._conn.execute("SELECT * FROM books WHERE id = ?", (book_id,))
        row = cursor.fetchone()
        return row_to_record(row) if row else None

    def get_by_isbn(self, isbn: str) -> BookRecord | None:
        """Retrieve a book by its ISBN, ignoring hyphens and spaces."""
        cursor = self._conn.execute(
            "SELECT * FROM books WHERE isbn = ?", (clean_isbn(isbn) or isbn,)
        )
        row = cursor.fetchone()
        return row_to_record(row) if row else None

    def list_all(self) -> list[BookRecord]:
        """Return all books in the catalog, ordered by title."""
        cursor = self._conn.execute("SELECT * FROM books ORDER BY title, id")
        return [row_to_record(row) for row in cursor.fetchall()]

    def list_by_status(self, status: ReadingStatus) -> list[BookRecord]:
        """Return books with the given reading status, ordered by title."""
        cursor = self._conn.execute(
            "SELECT * FROM books WHERE status = ? ORDER BY title, id", (status.value,)
        )
        return [row_to_record(row) for row in cursor.fetchall()]

    def save_cover(self, book_id: int, cover: CoverRecord) -> None:
        """Persist all cover fields of a book.

        Raises:
            ValueError: If the book_id does not exist.
        """
        fields = cover_to_row(cover)
        set_clause = ", ".join(f"{k} = ?" for k in fields)
        set_clause += ", date_modified = strftime('%Y-%m-%dT%H:%M:%S', 'now')"
        values = [*list(fields.values()), book_id]

        cursor = self._conn.execute(
            f"UPDATE books SET {set_clause} WHERE id = ?",
            values,
        )
        self._conn.commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")

    def set_status(self, book_id: int, status: ReadingStatus) -> None:
        """Change a book's reading status.

        Raises:
            ValueError: If the book_id does not exist.
        """
        cursor = self._conn.execute(
            "UPDATE books SET status = ?, "
            "date_modified = strftime('%Y-%m-%dT%H:%M:%S', 'now') WHERE id = ?",
            (status.value, book_id),
        )
        self._conn.commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")

    def delete_book(self, book_id: int) -> None:
        """Delete a book from the catalog.

        Raises:
            ValueError: If the book_id does not exist.
        """
        cursor = self._conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        self._conn.commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")
