# ABOUTME: Shared pytest fixtures for Shelf Notes tests.
# ABOUTME: Provides sample cover images, a temporary library, and a fully wired cover service.

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest
from ebooklib import epub

from shelfnotes.db.catalog import LibraryCatalog
from shelfnotes.db.connection import open_library
from tests.fixtures.harness import CoverHarness, build_harness
from tests.fixtures.images import make_jpeg


@pytest.fixture
def large_cover() -> bytes:
    """A real-looking 800x1200 cover."""
    return make_jpeg(800, 1200)


@pytest.fixture
def small_cover() -> bytes:
    """A 300x400 cover, below the low-resolution floor."""
    return make_jpeg(300, 400, color=(20, 90, 20))


@pytest.fixture
def library(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    conn = open_library(tmp_path / "library.db")
    yield conn
    conn.close()


@pytest.fixture
def catalog(library: sqlite3.Connection) -> LibraryCatalog:
    return LibraryCatalog(library)


@pytest.fixture
def harness(tmp_path: Path, catalog: LibraryCatalog) -> CoverHarness:
    """A CoverService over a temp library, with a fake image server and real Pillow codec."""
    return build_harness(tmp_path, catalog)


@pytest.fixture
def epub_with_cover(tmp_path: Path, large_cover: bytes) -> Path:
    """Create an EPUB whose manifest carries a cover image."""
    book = epub.EpubBook()
    book.set_identifier("test-isbn-978-0-156-00131-1")
    book.set_title("The Name of the Rose")
    book.set_language("en")
    book.add_author("Umberto Eco")

    cover = epub.EpubImage(
        uid="cover-img",
        file_name="images/cover.jpg",
        media_type="image/jpeg",
        content=large_cover,
    )
    book.add_item(cover)

    chapter = epub.EpubHtml(title="Chapter 1", file_name="chap01.xhtml", lang="en")
    chapter.content = b"<html><body><h1>Chapter 1</h1><p>Content.</p></body></html>"
    book.add_item(chapter)

    book.toc = [epub.Link("chap01.xhtml", "Chapter 1", "chap01")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    filepath = tmp_path / "name_of_the_rose.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def epub_without_cover(tmp_path: Path) -> Path:
    """Create a minimal EPUB with no images."""
    book = epub.EpubBook()
    book.set_identifier("minimal-id")
    book.set_title("Untitled Book")
    book.set_language("en")

    chapter = epub.EpubHtml(title="Content", file_name="content.xhtml", lang="en")
    chapter.content = b"<html><body><p>Minimal content.</p></body></html>"
    book.add_item(chapter)

    book.toc = [epub.Link("content.xhtml", "Content", "content")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]

    filepath = tmp_path / "minimal.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def corrupt_epub(tmp_path: Path) -> Path:
    """Create a corrupt file that is not a valid EPUB."""
    filepath = tmp_path / "corrupt.epub"
    filepath.write_text("this is not a valid epub file")
    return filepath
