# ABOUTME: Public API for the Shelf Notes library database layer.
# ABOUTME: Exports connection management, catalog operations, and data types.

from shelfnotes.db.catalog import DuplicateBookError, LibraryCatalog
from shelfnotes.db.connection import open_library
from shelfnotes.db.mapping import BookRecord

__all__ = [
    "BookRecord",
    "DuplicateBookError",
    "LibraryCatalog",
    "open_library",
]
