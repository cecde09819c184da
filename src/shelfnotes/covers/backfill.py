# ABOUTME: LibraryBackfillJob generates synced thumbnails for every book that lacks a good one.
# ABOUTME: Works in small batches with a pause between them and stops cleanly on cancellation.

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from shelfnotes.config import CoverSettings
from shelfnotes.covers.service import CoverService
from shelfnotes.db.mapping import BookRecord

logger = logging.getLogger(__name__)

# Called after each processed book with (done, total).
ProgressFn = Callable[[int, int], None]


@dataclass
class BackfillResult:
    """Summary of one backfill run."""

    examined: int = 0
    skipped: int = 0
    refreshed: int = 0
    failed: int = 0
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return self.refreshed + self.failed


class LibraryBackfillJob:
    """Throttled pass over the library that refreshes missing or low-res thumbnails.

    Books that already have a good thumbnail are skipped with a header-only
    size check, so re-running the job is cheap and does no network work.
    """

    def __init__(self, service: CoverService, settings: CoverSettings | None = None) -> None:
        self._service = service
        settings = settings or CoverSettings()
        self._batch_size = settings.backfill_batch_size
        self._delay = settings.backfill_delay

    async def run_once(
        self,
        books: Iterable[BookRecord] | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        on_progress: ProgressFn | None = None,
    ) -> BackfillResult:
        """Refresh thumbnails for every book that needs one.

        Books are processed in listing order. After each batch the job checks
        ``cancel_event`` and then sleeps for the configured delay so
        interactive work gets the loop.

        Args:
            books: Books to consider. Defaults to the whole catalog.
            cancel_event: When set, the job stops before the next batch.
            on_progress: Optional callback receiving (done, total).

        Returns:
            Counts of skipped, refreshed, and failed books.
        """
        result = BackfillResult()
        if books is None:
            books = self._service.catalog.list_all()

        pending: list[BookRecord] = []
        for record in books:
            result.examined += 1
            if await asyncio.to_thread(self._service.needs_refresh, record):
                pending.append(record)
            else:
                result.skipped += 1

        total = len(pending)
        logger.info("Cover backfill: %d of %d book(s) need a thumbnail", total, result.examined)

        for start in range(0, total, self._batch_size):
            if start > 0:
                await asyncio.sleep(self._delay)

            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                logger.info("Cover backfill cancelled after %d book(s)", result.processed)
                break

            for record in pending[start : start + self._batch_size]:
                if await self._service.refresh_thumbnail(record):
                    result.refreshed += 1
                else:
                    result.failed += 1
                if on_progress is not None:
                    on_progress(result.processed, total)

        return result
