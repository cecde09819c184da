# ABOUTME: Unit tests for row mapping between the books table and Python records.
# ABOUTME: Covers JSON list fields, cover record columns, and reading status.

import sqlite3

from shelfnotes.covers.record import CoverRecord
from shelfnotes.db.mapping import cover_to_row, metadata_to_row, row_to_record
from shelfnotes.metadata.types import BookMetadata, ReadingStatus


class TestCoverToRow:
    """Tests for cover_to_row."""

    def test_serializes_candidates(self) -> None:
        """Candidates are stored as a JSON array; other fields as-is."""
        cover = CoverRecord(
            primary_cover_url="https://a.com/1",
            candidate_urls=["https://a.com/1", "https://b.com/2"],
            user_cover_file="x.jpg",
            thumbnail=b"\xff\xd8",
        )
        row = cover_to_row(cover)
        assert row == {
            "primary_cover_url": "https://a.com/1",
            "cover_candidates": '["https://a.com/1", "https://b.com/2"]',
            "user_cover_file": "x.jpg",
            "cover_thumbnail": b"\xff\xd8",
        }


class TestMetadataToRow:
    """Tests for metadata_to_row."""

    def test_includes_status_and_cover(self) -> None:
        """The insert row carries metadata, status, and cover columns."""
        row = metadata_to_row(
            BookMetadata(title="Dune", authors=["Frank Herbert"], isbn="9780441013593"),
            ReadingStatus.READING,
            CoverRecord(),
        )
        assert row["title"] == "Dune"
        assert row["authors"] == '["Frank Herbert"]'
        assert row["status"] == "reading"
        assert row["cover_candidates"] == "[]"
        assert row["cover_thumbnail"] is None


class TestRowToRecord:
    """Tests for row_to_record, using a real sqlite3.Row."""

    def test_round_trip_through_sqlite(self, library: sqlite3.Connection) -> None:
        """A stored row maps back to an equal cover record."""
        cover = CoverRecord(
            primary_cover_url="https://a.com/1",
            candidate_urls=["https://a.com/1"],
            thumbnail=b"thumb",
        )
        row = metadata_to_row(
            BookMetadata(title="Dune", authors=["Frank Herbert"]), ReadingStatus.FINISHED, cover
        )
        library.execute(
            f"INSERT INTO books ({', '.join(row)}) VALUES ({', '.join('?' for _ in row)})",
            list(row.values()),
        )
        record = row_to_record(library.execute("SELECT * FROM books").fetchone())

        assert record.metadata.title == "Dune"
        assert record.metadata.authors == ["Frank Herbert"]
        assert record.status is ReadingStatus.FINISHED
        assert record.cover == cover
        assert isinstance(record.cover.thumbnail, bytes)
