# ABOUTME: CoverService ties resolution, user photo storage, and the catalog together for one book.
# ABOUTME: Provides the render contract, thumbnail refresh with request coalescing, and user cover actions.

import asyncio
import enum
import logging
import sqlite3
from dataclasses import dataclass, replace

from shelfnotes.config import CoverSettings
from shelfnotes.covers.codec import ThumbnailError
from shelfnotes.covers.engine import CoverResolutionEngine, ResolvedCover
from shelfnotes.covers.record import CoverRecord
from shelfnotes.covers.store import UserCoverStore
from shelfnotes.covers.urls import CoverTarget, is_local_file_url, normalize_https
from shelfnotes.db.catalog import LibraryCatalog
from shelfnotes.db.mapping import BookRecord

logger = logging.getLogger(__name__)


class CoverSource(enum.Enum):
    """Where the bytes of a rendered cover came from."""

    USER_PHOTO = "user_photo"
    THUMBNAIL = "thumbnail"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class RenderedCover:
    """What to draw right now. ``data`` is None when a placeholder is due."""

    data: bytes | None
    source: CoverSource
    refreshing: bool = False


class CoverService:
    """Cover operations for individual books.

    All record mutation happens on the event loop; image work goes through
    the engine, which runs the codec in worker threads. Concurrent refreshes
    of the same book share one in-flight task.
    """

    def __init__(
        self,
        catalog: LibraryCatalog,
        engine: CoverResolutionEngine,
        store: UserCoverStore,
        settings: CoverSettings | None = None,
    ) -> None:
        self._catalog = catalog
        self._engine = engine
        self._store = store
        self._settings = settings or CoverSettings()
        self._inflight: dict[int, asyncio.Task[CoverRecord | None]] = {}

    @property
    def catalog(self) -> LibraryCatalog:
        return self._catalog

    def is_low_resolution(self, data: bytes) -> bool:
        return self._engine.codec.is_low_resolution(data)

    def needs_refresh(self, record: BookRecord) -> bool:
        """True when the book has no synced thumbnail or a low-resolution one."""
        thumbnail = record.cover.thumbnail
        return not thumbnail or self.is_low_resolution(thumbnail)

    def is_refreshing(self, book_id: int) -> bool:
        return book_id in self._inflight

    # --- Rendering ---

    def render(self, record: BookRecord, size: float, *, refresh: bool = True) -> RenderedCover:
        """Return the best cover bytes available without waiting on the network.

        Large surfaces (longer edge at or above the configured threshold)
        prefer the full-resolution user photo. Otherwise the synced thumbnail
        is used, even when it is low-res. When the thumbnail is missing or
        low-res, a background refresh is started if an event loop is running
        and ``refresh`` is set.
        """
        refreshing = False
        if refresh and self.needs_refresh(record):
            refreshing = self._schedule_refresh(record)

        if size >= self._settings.large_surface_threshold and record.cover.user_cover_file:
            data = self._store.read(record.cover.user_cover_file)
            if data is not None:
                return RenderedCover(data, CoverSource.USER_PHOTO, refreshing)

        if record.cover.has_thumbnail:
            return RenderedCover(record.cover.thumbnail, CoverSource.THUMBNAIL, refreshing)
        return RenderedCover(None, CoverSource.PLACEHOLDER, refreshing)

    def _schedule_refresh(self, record: BookRecord) -> bool:
        try:
            self._start_refresh(record)
        except RuntimeError:
            logger.debug("No running event loop; not refreshing cover for book %d", record.id)
            return False
        return True

    # --- Thumbnail refresh ---

    async def refresh_thumbnail(
        self, record: BookRecord, resolved_url: str | None = None
    ) -> bool:
        """Ensure the book has a synced thumbnail that is not low-res.

        A full-resolution user photo is the first source; a missing or
        corrupt photo file falls through to the remote candidates. If a
        refresh for this book is already running, this awaits that one.

        Returns:
            True if the book ends up with a usable thumbnail.
        """
        task = self._start_refresh(record, resolved_url)
        cover = await asyncio.shield(task)
        if cover is None:
            return False
        if record.cover is not cover:
            record.cover = replace(cover)
        return True

    def _start_refresh(
        self, record: BookRecord, resolved_url: str | None = None
    ) -> "asyncio.Task[CoverRecord | None]":
        task = self._inflight.get(record.id)
        if task is None:
            loop = asyncio.get_running_loop()
            task = loop.create_task(self._refresh(record, resolved_url))
            self._inflight[record.id] = task
            task.add_done_callback(lambda t, book_id=record.id: self._refresh_done(book_id, t))
        return task

    def _refresh_done(self, book_id: int, task: "asyncio.Task[CoverRecord | None]") -> None:
        self._inflight.pop(book_id, None)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Cover refresh for book %d crashed", book_id, exc_info=task.exception()
            )

    async def _refresh(
        self, record: BookRecord, resolved_url: str | None
    ) -> CoverRecord | None:
        thumbnail = record.cover.thumbnail
        if thumbnail and not await asyncio.to_thread(self.is_low_resolution, thumbnail):
            return record.cover

        filename = record.cover.user_cover_file
        if filename and await self._thumbnail_from_user_photo(record, filename):
            return record.cover

        resolved = await self._engine.resolve_and_thumbnail(
            record.cover.candidate_pool(resolved_url),
            target=CoverTarget.THUMBNAIL,
        )
        if resolved is None:
            return None

        record.cover.pin(resolved.candidate)
        record.cover.thumbnail = resolved.thumbnail
        self._save(record)
        return record.cover

    async def _thumbnail_from_user_photo(self, record: BookRecord, filename: str) -> bool:
        data = await asyncio.to_thread(self._store.read, filename)
        if data is None:
            return False
        try:
            record.cover.thumbnail = await self._engine.make_thumbnail(data)
        except ThumbnailError as exc:
            logger.warning("User cover %s cannot be thumbnailed: %s", filename, exc)
            return False
        self._save(record)
        return True

    async def resolve_display(self, record: BookRecord) -> ResolvedCover | None:
        """Resolve a cover for a large on-screen rendering.

        Every candidate participates, preferred URL first, with display-level
        zoom upgrades. A winner is pinned; its thumbnail is also stored if the
        book's current thumbnail is missing or low-res.
        """
        resolved = await self._engine.resolve_and_thumbnail(
            record.cover.display_candidates(),
            preferred=record.cover.primary_cover_url,
            target=CoverTarget.DISPLAY,
        )
        if resolved is None:
            return None

        record.cover.pin(resolved.candidate)
        if await asyncio.to_thread(self.needs_refresh, record):
            record.cover.thumbnail = resolved.thumbnail
        self._save(record)
        return resolved

    # --- Explicit user actions ---

    async def apply_user_photo(self, record: BookRecord, data: bytes) -> None:
        """Use a user-supplied photo as the book's cover.

        The photo is orientation-normalized and re-encoded at full
        resolution (raw bytes are kept if they can't be decoded), replaces
        any previous photo file, and yields the synced thumbnail. The pinned
        remote URL is cleared since the user chose their own photo.

        Raises:
            OSError: If the photo file cannot be written.
        """
        try:
            full_res = await asyncio.to_thread(
                self._engine.codec.make_thumbnail, data, None, self._settings.full_res_quality
            )
        except ThumbnailError:
            full_res = data

        if record.cover.user_cover_file:
            await asyncio.to_thread(self._store.delete, record.cover.user_cover_file)
        record.cover.user_cover_file = await asyncio.to_thread(self._store.save, full_res)
        record.cover.primary_cover_url = None

        try:
            record.cover.thumbnail = await self._engine.make_thumbnail(full_res)
        except ThumbnailError:
            record.cover.thumbnail = None
        self._save(record)

    async def remove_user_photo(self, record: BookRecord) -> None:
        """Delete the book's user photo and the thumbnail derived from it."""
        if not record.cover.user_cover_file:
            return
        await asyncio.to_thread(self._store.delete, record.cover.user_cover_file)
        record.cover = replace(record.cover, user_cover_file=None, thumbnail=None)
        self._save(record)

    async def apply_remote_cover(self, record: BookRecord, url: str) -> bool:
        """Use an online cover the user picked.

        Any user photo is deleted, the URL is pinned, and the synced
        thumbnail is regenerated from it (cleared if that fails).

        Returns:
            True if a thumbnail was produced from the URL.

        Raises:
            ValueError: If ``url`` is blank or a local file URL.
        """
        normalized = normalize_https(url)
        if normalized is None or is_local_file_url(normalized):
            raise ValueError(f"Not a remote cover URL: {url!r}")

        if record.cover.user_cover_file:
            await asyncio.to_thread(self._store.delete, record.cover.user_cover_file)
            record.cover.user_cover_file = None
        record.cover.pin(normalized)

        resolved = await self._engine.resolve_and_thumbnail(
            [normalized], target=CoverTarget.THUMBNAIL
        )
        record.cover.thumbnail = resolved.thumbnail if resolved is not None else None
        self._save(record)
        return resolved is not None

    def delete_book(self, record: BookRecord) -> None:
        """Delete a book and its user photo file.

        Raises:
            ValueError: If the book does not exist.
        """
        self._catalog.delete_book(record.id)
        if record.cover.user_cover_file:
            self._store.delete(record.cover.user_cover_file)

    def _save(self, record: BookRecord) -> None:
        """Persist the cover record. Failures are logged; in-memory state is kept."""
        try:
            self._catalog.save_cover(record.id, record.cover)
        except (sqlite3.Error, ValueError) as exc:
            logger.warning("Could not save cover for book %d: %s", record.id, exc)
