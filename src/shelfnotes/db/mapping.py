# ABOUTME: Converts between BookMetadata/CoverRecord and SQLite row dictionaries.
# ABOUTME: Handles JSON serialization for list fields (authors, cover candidates).

import json
from dataclasses import dataclass
from typing import Any

from shelfnotes.covers.candidates import clean_isbn
from shelfnotes.covers.record import CoverRecord
from shelfnotes.metadata.types import BookMetadata, ReadingStatus


@dataclass
class BookRecord:
    """A cataloged book: metadata, reading status, and its cover record."""

    id: int
    metadata: BookMetadata
    status: ReadingStatus
    cover: CoverRecord
    date_added: str
    date_modified: str


def metadata_to_row(
    metadata: BookMetadata,
    status: ReadingStatus,
    cover: CoverRecord,
) -> dict[str, Any]:
    """Convert metadata and cover state to a dict suitable for INSERT.

    Serializes authors and cover candidates as JSON arrays. Valid ISBNs are
    stored without separators so uniqueness ignores formatting. Provider
    image links are not stored; they are folded into the candidate list
    instead.
    """
    return {
        "title": metadata.title,
        "authors": json.dumps(metadata.authors),
        "isbn": clean_isbn(metadata.isbn) or metadata.isbn,
        "status": status.value,
        **cover_to_row(cover),
    }


def cover_to_row(cover: CoverRecord) -> dict[str, Any]:
    """Convert a CoverRecord to its column values."""
    return {
        "primary_cover_url": cover.primary_cover_url,
        "cover_candidates": json.dumps(cover.candidate_urls),
        "user_cover_file": cover.user_cover_file,
        "cover_thumbnail": cover.thumbnail,
    }


def row_to_cover(row: Any) -> CoverRecord:
    """Convert the cover columns of a database row back to a CoverRecord."""
    thumbnail = row["cover_thumbnail"]
    return CoverRecord(
        primary_cover_url=row["primary_cover_url"],
        candidate_urls=json.loads(row["cover_candidates"]) if row["cover_candidates"] else [],
        user_cover_file=row["user_cover_file"],
        thumbnail=bytes(thumbnail) if thumbnail is not None else None,
    )


def row_to_metadata(row: Any) -> BookMetadata:
    """Convert a database row (dict-like) back to a BookMetadata instance."""
    return BookMetadata(
        title=row["title"],
        authors=json.loads(row["authors"]) if row["authors"] else [],
        isbn=row["isbn"],
        thumbnail_url=row["primary_cover_url"],
    )


def row_to_record(row: Any) -> BookRecord:
    """Convert a full database row to a BookRecord."""
    return BookRecord(
        id=row["id"],
        metadata=row_to_metadata(row),
        status=ReadingStatus(row["status"]),
        cover=row_to_cover(row),
        date_added=row["date_added"],
        date_modified=row["date_modified"],
    )
