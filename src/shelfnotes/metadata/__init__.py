# ABOUTME: Metadata package: the book metadata handed over by search/import.
# ABOUTME: Exports BookMetadata, ImageLinks, and ReadingStatus.

from shelfnotes.metadata.types import BookMetadata, ImageLinks, ReadingStatus

__all__ = [
    "BookMetadata",
    "ImageLinks",
    "ReadingStatus",
]
