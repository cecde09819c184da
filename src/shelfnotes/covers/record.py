# ABOUTME: CoverRecord, the per-book cover state embedded in each library record.
# ABOUTME: Handles pinning a working URL (move-to-front) and building candidate pools.

from dataclasses import dataclass, field

from shelfnotes.covers.candidates import dedupe_urls
from shelfnotes.covers.urls import is_local_file_url, normalize_https


@dataclass
class CoverRecord:
    """Cover fields of one book.

    Attributes:
        primary_cover_url: Remote URL confirmed to work; pinned to the front
            of ``candidate_urls``.
        candidate_urls: Best-first remote cover URLs, HTTPS-normalized and
            case-insensitively unique.
        user_cover_file: File name of a full-resolution user photo in the
            user cover store. Mutually exclusive in intent with a remote cover.
        thumbnail: Small JPEG used for list rendering and sync.
    """

    primary_cover_url: str | None = None
    candidate_urls: list[str] = field(default_factory=list)
    user_cover_file: str | None = None
    thumbnail: bytes | None = None

    def __post_init__(self) -> None:
        self.candidate_urls = dedupe_urls(self.candidate_urls)

    @property
    def has_thumbnail(self) -> bool:
        return self.thumbnail is not None and len(self.thumbnail) > 0

    def pin(self, url: str) -> None:
        """Record ``url`` as the working cover and move it to the front of the candidates.

        Local file URLs are never pinned.
        """
        normalized = normalize_https(url)
        if normalized is None or is_local_file_url(normalized):
            return
        key = normalized.lower()
        rest = [u for u in self.candidate_urls if u.lower() != key]
        self.candidate_urls = [normalized, *rest]
        self.primary_cover_url = normalized

    def candidate_pool(self, resolved_url: str | None = None) -> list[str]:
        """Ordered remote URLs to try when refreshing the thumbnail.

        A freshly resolved URL goes first, then the pinned primary URL, then
        the persisted candidates.
        """
        return dedupe_urls([resolved_url, self.primary_cover_url, *self.candidate_urls])

    def display_candidates(self) -> list[str]:
        """Candidates for large on-screen rendering, preferred URL first."""
        return self.candidate_pool()
