# ABOUTME: The `shelfnotes add` command for manual book entry.
# ABOUTME: Stores the book and seeds its cover candidates from the given URLs and ISBN.

from pathlib import Path

import click
from rich.console import Console

from shelfnotes.cli.options import db_option
from shelfnotes.config import DEFAULT_DB_PATH
from shelfnotes.db.catalog import DuplicateBookError, LibraryCatalog
from shelfnotes.db.connection import open_library
from shelfnotes.metadata.types import BookMetadata, ReadingStatus

console = Console()

STATUS_CHOICES = [status.value for status in ReadingStatus]


@click.command("add")
@click.argument("title")
@click.option("-a", "--author", "authors", multiple=True, help="Author name (repeatable).")
@click.option("--isbn", default=None, help="ISBN-10 or ISBN-13.")
@click.option(
    "--cover-url",
    "cover_urls",
    multiple=True,
    help="Remote cover image URL, best first (repeatable).",
)
@click.option(
    "--status",
    type=click.Choice(STATUS_CHOICES),
    default=ReadingStatus.TO_READ.value,
    show_default=True,
    help="Reading status.",
)
@db_option
def add(
    title: str,
    authors: tuple[str, ...],
    isbn: str | None,
    cover_urls: tuple[str, ...],
    status: str,
    db_path: Path | None,
) -> None:
    """Add a book to the library."""
    metadata = BookMetadata(
        title=title,
        authors=list(authors),
        isbn=isbn,
        cover_urls=list(cover_urls),
    )

    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        try:
            book_id = catalog.add_book(metadata, status=ReadingStatus(status))
        except DuplicateBookError as exc:
            console.print(f"[red]{exc}[/red]")
            raise SystemExit(1) from exc
        record = catalog.get_by_id(book_id)
    finally:
        conn.close()

    count = len(record.cover.candidate_urls) if record else 0
    console.print(f"[green]Added book {book_id}:[/green] {title} ({count} cover candidate(s))")
