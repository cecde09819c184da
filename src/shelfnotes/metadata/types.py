# ABOUTME: Core metadata data structures handed over by the metadata search client.
# ABOUTME: BookMetadata carries title/author/ISBN plus the provider's cover image links.

import enum
from dataclasses import dataclass, field


@dataclass
class ImageLinks:
    """Cover image variants reported by the metadata provider for one volume.

    Which fields are present depends on record quality; the smaller tiers are
    almost always there, the larger ones only for well-curated volumes.
    """

    extra_large: str | None = None
    large: str | None = None
    medium: str | None = None
    small: str | None = None
    thumbnail: str | None = None
    small_thumbnail: str | None = None

    def ordered(self) -> list[str | None]:
        """All tiers, largest first."""
        return [
            self.extra_large,
            self.large,
            self.medium,
            self.small,
            self.thumbnail,
            self.small_thumbnail,
        ]

    @classmethod
    def from_api(cls, data: dict[str, str]) -> "ImageLinks":
        """Build from a provider ``imageLinks`` JSON object (camelCase keys)."""
        return cls(
            extra_large=data.get("extraLarge"),
            large=data.get("large"),
            medium=data.get("medium"),
            small=data.get("small"),
            thumbnail=data.get("thumbnail"),
            small_thumbnail=data.get("smallThumbnail"),
        )


@dataclass
class BookMetadata:
    """Structured metadata for a book in the library.

    This is what the search/import collaborator produces and what the catalog
    stores. All fields are optional except title. ``cover_urls`` is the
    provider's ranked candidate list; ``image_links`` the raw per-tier links.
    """

    title: str
    authors: list[str] = field(default_factory=list)
    isbn: str | None = None
    thumbnail_url: str | None = None
    cover_urls: list[str] = field(default_factory=list)
    image_links: ImageLinks | None = None

    @property
    def author(self) -> str:
        """Convenience property: joined author string for display."""
        return ", ".join(self.authors) if self.authors else ""


class ReadingStatus(enum.Enum):
    """Where the reader is with a book."""

    TO_READ = "to_read"
    READING = "reading"
    FINISHED = "finished"
