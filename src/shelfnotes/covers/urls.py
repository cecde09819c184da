# ABOUTME: Pure URL helpers for cover candidates: HTTPS normalization and zoom upgrades.
# ABOUTME: upgrade_url rewrites Google Books cover URLs to a higher zoom level; no I/O.

import enum
from urllib.parse import urlsplit, urlunsplit

_PROVIDER_HOST_MARKERS = ("books.google", "books.googleusercontent")
_ZOOM_PARAM = "zoom"


class CoverTarget(enum.Enum):
    """Where a resolved cover will be shown; decides the requested resolution."""

    THUMBNAIL = "thumbnail"
    DISPLAY = "display"

    @property
    def zoom_level(self) -> int:
        return 3 if self is CoverTarget.DISPLAY else 2


def is_local_file_url(url: str) -> bool:
    """Whether a URL string points at a local file (``file:`` scheme)."""
    return url.strip().lower().startswith("file:")


def normalize_https(url: str | None) -> str | None:
    """Trim a URL and upgrade a plain ``http:`` scheme to ``https:``.

    Returns None for None or blank input. Other schemes are left alone.
    """
    if url is None:
        return None
    stripped = url.strip()
    if not stripped:
        return None
    if stripped[:7].lower() == "http://":
        return "https://" + stripped[7:]
    if stripped[:5].lower() == "http:":
        return "https:" + stripped[5:]
    return stripped


def _is_provider_host(host: str) -> bool:
    return any(marker in host for marker in _PROVIDER_HOST_MARKERS)


def _upgrade_zoom(query: str, target_zoom: int) -> str | None:
    """Return the query with its zoom raised to target_zoom, or None if no change.

    Only the zoom item is touched; every other item keeps its original text
    and position.
    """
    items = query.split("&") if query else []
    for idx, item in enumerate(items):
        name, sep, value = item.partition("=")
        if name.lower() != _ZOOM_PARAM:
            continue
        try:
            current = int(value) if sep else 1
        except ValueError:
            current = 1
        if current >= target_zoom:
            return None
        items[idx] = f"{name}={target_zoom}"
        return "&".join(items)

    items.append(f"{_ZOOM_PARAM}={target_zoom}")
    return "&".join(items)


def upgrade_url(url: str, target: CoverTarget) -> str:
    """Best-effort rewrite of a cover URL to request a higher resolution.

    Google Books cover URLs get their ``zoom`` query parameter raised to the
    target's level (never lowered). Every other host, including Open Library
    which encodes size in the path, is returned unchanged. Local file URLs
    are never rewritten. Upgrading an already-upgraded URL is a no-op.

    Args:
        url: Candidate cover URL.
        target: Thumbnail (zoom 2) or full display (zoom 3).

    Returns:
        The upgraded URL, or the input string itself when nothing changes.
    """
    stripped = url.strip()
    if not stripped or is_local_file_url(stripped):
        return url

    try:
        parts = urlsplit(stripped)
    except ValueError:
        return url

    host = (parts.hostname or "").lower()
    if not host or not _is_provider_host(host):
        return url

    query = _upgrade_zoom(parts.query, target.zoom_level)
    if query is None:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
