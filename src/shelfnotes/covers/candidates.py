# ABOUTME: Builds the ordered, deduplicated list of remote cover URLs for a book.
# ABOUTME: Provider image tiers come first (largest first); Open Library ISBN covers are appended last.

import re
from collections.abc import Iterable

from shelfnotes.covers.urls import is_local_file_url, normalize_https
from shelfnotes.metadata.types import BookMetadata, ImageLinks

_OL_COVERS_BASE = "https://covers.openlibrary.org"
_OL_SIZES = ("L", "M", "S")


def clean_isbn(isbn: str | None) -> str | None:
    """Strip everything but digits and X; return None unless 10 or 13 chars remain."""
    if not isbn:
        return None
    cleaned = re.sub(r"[^0-9X]", "", isbn.strip().upper())
    return cleaned if len(cleaned) in (10, 13) else None


def dedupe_urls(urls: Iterable[str | None]) -> list[str]:
    """HTTPS-normalize and case-insensitively deduplicate URLs, keeping first-seen order.

    Blank entries and local file URLs are dropped.
    """
    seen: set[str] = set()
    out: list[str] = []
    for raw in urls:
        url = normalize_https(raw)
        if url is None or is_local_file_url(url):
            continue
        key = url.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(url)
    return out


def image_link_candidates(links: ImageLinks | None) -> list[str]:
    """Provider image links, largest tier first, normalized and deduplicated."""
    if links is None:
        return []
    return dedupe_urls(links.ordered())


def openlibrary_fallback_urls(isbn: str | None) -> list[str]:
    """Open Library cover URLs for an ISBN: Large, then Medium, then Small.

    ``default=false`` asks Open Library to answer a miss with 404 instead of
    its generic placeholder image.
    """
    cleaned = clean_isbn(isbn)
    if cleaned is None:
        return []
    return [
        f"{_OL_COVERS_BASE}/b/isbn/{cleaned}-{size}.jpg?default=false" for size in _OL_SIZES
    ]


def build_candidate_urls(metadata: BookMetadata) -> list[str]:
    """Seed a book's candidate list from imported metadata.

    Order: the provider's primary cover URL, the provider's ranked list, the
    per-tier image links, then the Open Library fallback set.
    """
    pool: list[str | None] = [metadata.thumbnail_url]
    pool.extend(metadata.cover_urls)
    pool.extend(image_link_candidates(metadata.image_links))
    pool.extend(openlibrary_fallback_urls(metadata.isbn))
    return dedupe_urls(pool)
