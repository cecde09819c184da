# ABOUTME: The `shelfnotes ls`, `status`, and `rm` commands for browsing and managing books.
# ABOUTME: ls displays a Rich table of the library including each book's cover state.

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelfnotes.cli.commands.add_cmd import STATUS_CHOICES
from shelfnotes.cli.options import cover_options, db_option
from shelfnotes.cli.runtime import cover_service
from shelfnotes.config import DEFAULT_DB_PATH
from shelfnotes.covers.codec import PillowThumbnailCodec, ThumbnailCodec
from shelfnotes.covers.record import CoverRecord
from shelfnotes.db.catalog import LibraryCatalog
from shelfnotes.db.connection import open_library
from shelfnotes.metadata.types import ReadingStatus

console = Console()


def cover_state(cover: CoverRecord, codec: ThumbnailCodec) -> str:
    """Short label for a book's cover: photo, ok, low-res, or missing."""
    if cover.user_cover_file:
        return "photo"
    if not cover.has_thumbnail:
        return "missing"
    if codec.is_low_resolution(cover.thumbnail):  # type: ignore[arg-type]
        return "low-res"
    return "ok"


_STATE_STYLES = {
    "photo": "cyan",
    "ok": "green",
    "low-res": "yellow",
    "missing": "red",
}


@click.command("ls")
@db_option
@click.option(
    "--status",
    "status_filter",
    type=click.Choice(STATUS_CHOICES),
    default=None,
    help="Only show books with this reading status.",
)
def ls(db_path: Path | None, status_filter: str | None) -> None:
    """List all books in the library."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        catalog = LibraryCatalog(conn)
        if status_filter:
            records = catalog.list_by_status(ReadingStatus(status_filter))
        else:
            records = catalog.list_all()
    finally:
        conn.close()

    if not records:
        console.print("[yellow]No books in the library.[/yellow]")
        return

    codec = PillowThumbnailCodec()
    table = Table()
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Status")
    table.add_column("Cover")

    for record in records:
        state = cover_state(record.cover, codec)
        table.add_row(
            str(record.id),
            record.metadata.title,
            record.metadata.author or "[dim]unknown[/dim]",
            record.status.value,
            f"[{_STATE_STYLES[state]}]{state}[/{_STATE_STYLES[state]}]",
        )

    console.print(table)
    console.print(f"\n[dim]{len(records)} book(s)[/dim]")


@click.command("status")
@click.argument("book_id", type=int)
@click.argument("status", type=click.Choice(STATUS_CHOICES))
@db_option
def status(book_id: int, status: str, db_path: Path | None) -> None:
    """Set the reading status of a book."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        LibraryCatalog(conn).set_status(book_id, ReadingStatus(status))
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc
    finally:
        conn.close()
    console.print(f"Book {book_id} is now [bold]{status}[/bold].")


@click.command("rm")
@click.argument("book_id", type=int)
@cover_options
def rm(
    book_id: int, db_path: Path | None, cache_dir: Path | None, covers_dir: Path | None
) -> None:
    """Delete a book and its user cover photo."""

    async def _rm() -> str | None:
        async with cover_service(db_path, cache_dir, covers_dir) as service:
            record = service.catalog.get_by_id(book_id)
            if record is None:
                return None
            service.delete_book(record)
            return record.metadata.title

    title = asyncio.run(_rm())
    if title is None:
        console.print(f"[red]Book with id {book_id} not found[/red]")
        raise SystemExit(1)
    console.print(f"Deleted book {book_id}: {title}")
