# ABOUTME: Cover image pipeline: candidate URLs, two-tier cache, thumbnails, resolution.
# ABOUTME: Exports the building blocks; CoverService and LibraryBackfillJob live in submodules.

from shelfnotes.covers.cache import DiskImageCache, MemoryImageCache
from shelfnotes.covers.codec import (
    NullThumbnailCodec,
    PillowThumbnailCodec,
    PixelSize,
    ThumbnailCodec,
    ThumbnailError,
)
from shelfnotes.covers.engine import CoverResolutionEngine, ResolvedCover
from shelfnotes.covers.fetcher import ImageByteFetcher, ImageFetchError
from shelfnotes.covers.record import CoverRecord
from shelfnotes.covers.urls import CoverTarget, upgrade_url

__all__ = [
    "CoverRecord",
    "CoverResolutionEngine",
    "CoverTarget",
    "DiskImageCache",
    "ImageByteFetcher",
    "ImageFetchError",
    "MemoryImageCache",
    "NullThumbnailCodec",
    "PillowThumbnailCodec",
    "PixelSize",
    "ResolvedCover",
    "ThumbnailCodec",
    "ThumbnailError",
    "upgrade_url",
]
