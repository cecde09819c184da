# ABOUTME: CoverResolutionEngine tries a book's cover candidates in order until one thumbnails.
# ABOUTME: Each candidate is tried in its original form before its zoom-upgraded form.

import asyncio
import logging
from dataclasses import dataclass

from shelfnotes.config import CoverSettings
from shelfnotes.covers.candidates import dedupe_urls
from shelfnotes.covers.codec import ThumbnailCodec, ThumbnailError
from shelfnotes.covers.fetcher import ImageByteFetcher, ImageFetchError
from shelfnotes.covers.urls import CoverTarget, upgrade_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attempt:
    """One URL to fetch, and the candidate it was derived from."""

    url: str
    candidate: str


@dataclass(frozen=True)
class ResolvedCover:
    """A successful resolution.

    ``url`` is the exact URL that was fetched; ``candidate`` is the candidate
    it came from, which is what gets pinned on the book. ``image`` holds the
    fetched source bytes.
    """

    thumbnail: bytes
    url: str
    candidate: str
    image: bytes


def build_attempt_list(
    candidates: list[str],
    preferred: str | None,
    target: CoverTarget,
) -> list[Attempt]:
    """Order the URLs to try for one book.

    The preferred URL (if any) leads, followed by the remaining candidates.
    Each candidate contributes its original form, then its upgraded form
    when that differs. Original-first matters: some providers serve a valid
    "image not available" picture at higher zoom levels while the plain URL
    returns the real cover.
    """
    attempts: list[Attempt] = []
    seen: set[str] = set()
    for candidate in dedupe_urls([preferred, *candidates]):
        for url in (candidate, upgrade_url(candidate, target)):
            key = url.lower()
            if key in seen:
                continue
            seen.add(key)
            attempts.append(Attempt(url=url, candidate=candidate))
    return attempts


class CoverResolutionEngine:
    """Resolves a working cover image and its synced thumbnail for a candidate list.

    Per-candidate failures (dead links, non-2xx, undecodable bytes) are
    expected and silently advance to the next attempt. Only exhaustion is
    reported, as a None result.
    """

    def __init__(
        self,
        fetcher: ImageByteFetcher,
        codec: ThumbnailCodec,
        settings: CoverSettings | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._codec = codec
        self._settings = settings or CoverSettings()

    @property
    def codec(self) -> ThumbnailCodec:
        return self._codec

    async def make_thumbnail(self, data: bytes) -> bytes:
        """Encode a synced thumbnail off the event loop.

        Raises:
            ThumbnailError: If the bytes cannot be decoded.
        """
        return await asyncio.to_thread(
            self._codec.make_thumbnail,
            data,
            self._settings.thumbnail_max_pixel,
            self._settings.thumbnail_quality,
        )

    async def resolve_and_thumbnail(
        self,
        candidates: list[str],
        preferred: str | None = None,
        target: CoverTarget = CoverTarget.THUMBNAIL,
    ) -> ResolvedCover | None:
        """Return the first attempt that fetches and thumbnails successfully.

        Args:
            candidates: Best-first remote cover URLs.
            preferred: URL to try before the others (e.g. the pinned one).
            target: Decides the zoom level of upgraded attempts.

        Returns:
            The resolved cover, or None when every attempt failed.
        """
        attempts = build_attempt_list(candidates, preferred, target)
        for attempt in attempts:
            try:
                data = await self._fetcher.fetch(attempt.url)
            except ImageFetchError as exc:
                logger.debug("Cover candidate failed to fetch: %s", exc)
                continue

            try:
                thumbnail = await self.make_thumbnail(data)
            except ThumbnailError as exc:
                logger.debug("Cover candidate %s failed to thumbnail: %s", attempt.url, exc)
                continue

            return ResolvedCover(
                thumbnail=thumbnail,
                url=attempt.url,
                candidate=attempt.candidate,
                image=data,
            )

        logger.info("No cover available after %d attempt(s)", len(attempts))
        return None
