# ABOUTME: Wires the cover pipeline together for CLI commands.
# ABOUTME: Opens the catalog, caches, HTTP client, and codec, and closes them afterwards.

import contextlib
from collections.abc import AsyncIterator
from pathlib import Path

from shelfnotes.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_DB_PATH,
    DEFAULT_USER_COVER_DIR,
    CoverSettings,
)
from shelfnotes.covers.cache import DiskImageCache, MemoryImageCache
from shelfnotes.covers.codec import PillowThumbnailCodec
from shelfnotes.covers.engine import CoverResolutionEngine
from shelfnotes.covers.fetcher import ImageByteFetcher
from shelfnotes.covers.http import ShelfNotesHttpClient
from shelfnotes.covers.service import CoverService
from shelfnotes.covers.store import UserCoverStore
from shelfnotes.db.catalog import LibraryCatalog
from shelfnotes.db.connection import open_library


def make_http_client(settings: CoverSettings) -> ShelfNotesHttpClient:
    """Build the HTTP client used for cover downloads."""
    return ShelfNotesHttpClient(timeout=settings.request_timeout)


def make_store(covers_dir: Path | None) -> UserCoverStore:
    return UserCoverStore(covers_dir or DEFAULT_USER_COVER_DIR)


@contextlib.asynccontextmanager
async def cover_service(
    db_path: Path | None,
    cache_dir: Path | None,
    covers_dir: Path | None,
    settings: CoverSettings | None = None,
) -> AsyncIterator[CoverService]:
    """Yield a fully wired CoverService; closes the HTTP client and database on exit."""
    settings = settings or CoverSettings()
    conn = open_library(db_path or DEFAULT_DB_PATH)
    http_client = make_http_client(settings)
    try:
        fetcher = ImageByteFetcher(
            http_client,
            MemoryImageCache(settings.memory_cache_budget),
            DiskImageCache(cache_dir or DEFAULT_CACHE_DIR),
        )
        engine = CoverResolutionEngine(
            fetcher, PillowThumbnailCodec(settings.low_res_floor), settings
        )
        yield CoverService(LibraryCatalog(conn), engine, make_store(covers_dir), settings)
    finally:
        await http_client.aclose()
        conn.close()
