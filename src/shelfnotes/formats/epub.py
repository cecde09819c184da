# ABOUTME: Embedded cover extraction from EPUB files using ebooklib.
# ABOUTME: Lets a book's own EPUB supply the user photo cover; handles malformed files gracefully.

import logging
from pathlib import Path

import ebooklib
from ebooklib import epub

logger = logging.getLogger(__name__)


class EpubReadError(Exception):
    """Raised when an EPUB cannot be read or has no usable cover image."""


def is_epub(path: Path) -> bool:
    """Whether a path looks like an EPUB by extension."""
    return path.suffix.lower() == ".epub"


def _extract_cover_image(book: epub.EpubBook) -> bytes | None:
    """Extract cover image data from an EPUB, if present."""
    # EPUB 3 marks the cover item with the cover-image property
    for item in book.get_items_of_type(ebooklib.ITEM_COVER):
        content = item.get_content()
        if content:
            return content

    # EPUB 2: <meta name="cover" content="item-id"/>
    cover_id = None
    meta_entries = book.get_metadata("OPF", "cover")
    if meta_entries:
        cover_id = meta_entries[0][1].get("content")

    if cover_id:
        cover_item = book.get_item_with_id(cover_id)
        if cover_item:
            return cover_item.get_content()

    # Fallback: look for images with "cover" in the id or filename
    for item in book.get_items_of_type(ebooklib.ITEM_IMAGE):
        item_id = item.get_id() or ""
        item_name = item.get_name() or ""
        if "cover" in item_id.lower() or "cover" in item_name.lower():
            return item.get_content()

    return None


def read_epub_cover(path: Path) -> bytes:
    """Return the embedded cover image bytes of an EPUB.

    Args:
        path: Path to the EPUB file.

    Returns:
        Raw image bytes as stored in the EPUB.

    Raises:
        EpubReadError: If the file cannot be parsed or has no cover image.
    """
    if not path.exists():
        raise EpubReadError(f"File not found: {path}")

    try:
        book = epub.read_epub(str(path), options={"ignore_ncx": True})
    except Exception as exc:
        raise EpubReadError(f"Failed to read EPUB: {path}: {exc}") from exc

    cover = _extract_cover_image(book)
    if not cover:
        raise EpubReadError(f"No cover image in {path}")
    logger.debug("Extracted %d-byte cover from %s", len(cover), path)
    return cover
