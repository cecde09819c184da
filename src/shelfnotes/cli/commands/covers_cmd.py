# ABOUTME: The `shelfnotes covers` command group for resolving and managing book covers.
# ABOUTME: Backfill, per-book resolve, user photo and remote URL actions, export, and cache clearing.

import asyncio
import logging
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)

from shelfnotes.cli.options import cache_dir_option, cover_options
from shelfnotes.cli.runtime import cover_service
from shelfnotes.config import DEFAULT_CACHE_DIR, CoverSettings
from shelfnotes.covers.backfill import BackfillResult, LibraryBackfillJob
from shelfnotes.covers.cache import DiskImageCache
from shelfnotes.covers.service import CoverService
from shelfnotes.db.mapping import BookRecord
from shelfnotes.formats.epub import EpubReadError, is_epub, read_epub_cover

logger = logging.getLogger(__name__)

console = Console()


def _make_progress(console: Console) -> Progress:
    """Create a Rich progress bar for the backfill pass."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    )


def _require_book(service: CoverService, book_id: int) -> BookRecord:
    record = service.catalog.get_by_id(book_id)
    if record is None:
        raise click.ClickException(f"Book with id {book_id} not found")
    return record


@click.group("covers")
def covers() -> None:
    """Resolve, refresh, and manage book cover images."""


@covers.command("backfill")
@cover_options
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=None,
    help="Books per batch (default: 6).",
)
@click.option(
    "--delay",
    type=click.FloatRange(min=0.0),
    default=None,
    help="Seconds to pause between batches (default: 0.12).",
)
def backfill(
    db_path: Path | None,
    cache_dir: Path | None,
    covers_dir: Path | None,
    batch_size: int | None,
    delay: float | None,
) -> None:
    """Generate thumbnails for every book missing one or holding a low-res one."""
    settings = CoverSettings()
    if batch_size is not None:
        settings = replace(settings, backfill_batch_size=batch_size)
    if delay is not None:
        settings = replace(settings, backfill_delay=delay)

    progress = _make_progress(console)
    task_id = progress.add_task("Backfilling covers", total=None)

    def on_progress(done: int, total: int) -> None:
        progress.update(task_id, completed=done, total=total)

    async def _run() -> BackfillResult:
        async with cover_service(db_path, cache_dir, covers_dir, settings) as service:
            job = LibraryBackfillJob(service, settings)
            return await job.run_once(on_progress=on_progress)

    progress.start()
    try:
        result = asyncio.run(_run())
    finally:
        progress.stop()

    console.print(
        f"\n[bold]Backfill complete:[/bold] {result.refreshed} refreshed, "
        f"{result.failed} without a cover, {result.skipped} already up to date."
    )


@covers.command("resolve")
@click.argument("book_id", type=int)
@click.option(
    "--display",
    is_flag=True,
    default=False,
    help="Resolve a large display cover (higher zoom) instead of the thumbnail.",
)
@cover_options
def resolve(
    book_id: int,
    display: bool,
    db_path: Path | None,
    cache_dir: Path | None,
    covers_dir: Path | None,
) -> None:
    """Resolve a working cover for one book and store its thumbnail."""

    async def _run() -> str | None:
        async with cover_service(db_path, cache_dir, covers_dir) as service:
            record = _require_book(service, book_id)
            if display:
                resolved = await service.resolve_display(record)
                return resolved.url if resolved is not None else None
            if await service.refresh_thumbnail(record):
                return record.cover.primary_cover_url or "user photo"
            return None

    source = asyncio.run(_run())
    if source is None:
        console.print(f"[yellow]No cover available for book {book_id}.[/yellow]")
        raise SystemExit(1)
    console.print(f"[green]Cover resolved for book {book_id}:[/green] {source}")


@covers.command("set-url")
@click.argument("book_id", type=int)
@click.argument("url")
@cover_options
def set_url(
    book_id: int,
    url: str,
    db_path: Path | None,
    cache_dir: Path | None,
    covers_dir: Path | None,
) -> None:
    """Use an online cover image URL for a book (replaces any user photo)."""

    async def _run() -> bool:
        async with cover_service(db_path, cache_dir, covers_dir) as service:
            record = _require_book(service, book_id)
            try:
                return await service.apply_remote_cover(record, url)
            except ValueError as exc:
                raise click.BadParameter(str(exc), param_hint="URL") from exc

    if asyncio.run(_run()):
        console.print(f"[green]Cover set for book {book_id}.[/green]")
    else:
        console.print(
            f"[yellow]Cover URL saved for book {book_id}, "
            "but the image could not be downloaded.[/yellow]"
        )


@covers.command("set-photo")
@click.argument("book_id", type=int)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@cover_options
def set_photo(
    book_id: int,
    path: Path,
    db_path: Path | None,
    cache_dir: Path | None,
    covers_dir: Path | None,
) -> None:
    """Use a local photo (or an EPUB's embedded cover) as a book's cover."""
    if is_epub(path):
        try:
            data = read_epub_cover(path)
        except EpubReadError as exc:
            console.print(f"[red]{exc}[/red]")
            raise SystemExit(1) from exc
    else:
        data = path.read_bytes()

    async def _run() -> bool:
        async with cover_service(db_path, cache_dir, covers_dir) as service:
            record = _require_book(service, book_id)
            await service.apply_user_photo(record, data)
            return record.cover.has_thumbnail

    has_thumbnail = asyncio.run(_run())
    console.print(f"[green]Photo cover set for book {book_id}.[/green]")
    if not has_thumbnail:
        console.print("[yellow]The photo could not be decoded; no thumbnail was made.[/yellow]")


@covers.command("remove-photo")
@click.argument("book_id", type=int)
@cover_options
def remove_photo(
    book_id: int,
    db_path: Path | None,
    cache_dir: Path | None,
    covers_dir: Path | None,
) -> None:
    """Delete a book's user photo cover."""

    async def _run() -> bool:
        async with cover_service(db_path, cache_dir, covers_dir) as service:
            record = _require_book(service, book_id)
            had_photo = record.cover.user_cover_file is not None
            await service.remove_user_photo(record)
            return had_photo

    if asyncio.run(_run()):
        console.print(f"Removed photo cover for book {book_id}.")
    else:
        console.print(f"[dim]Book {book_id} has no photo cover.[/dim]")


@covers.command("export")
@click.argument("book_id", type=int)
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--size",
    type=click.FloatRange(min=1.0),
    default=180.0,
    show_default=True,
    help="Longer edge of the target surface, in points.",
)
@cover_options
def export(
    book_id: int,
    output: Path,
    size: float,
    db_path: Path | None,
    cache_dir: Path | None,
    covers_dir: Path | None,
) -> None:
    """Write the cover that would be shown for a book at SIZE to OUTPUT."""

    async def _run() -> bytes | None:
        async with cover_service(db_path, cache_dir, covers_dir) as service:
            record = _require_book(service, book_id)
            if await asyncio.to_thread(service.needs_refresh, record):
                await service.refresh_thumbnail(record)
            return service.render(record, size, refresh=False).data

    data = asyncio.run(_run())
    if data is None:
        console.print(f"[yellow]Book {book_id} has no cover to export.[/yellow]")
        raise SystemExit(1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    console.print(f"Wrote {len(data)} bytes to {output}")


@covers.command("clear-cache")
@cache_dir_option
def clear_cache(cache_dir: Path | None) -> None:
    """Delete all downloaded cover images from the disk cache."""
    cache = DiskImageCache(cache_dir or DEFAULT_CACHE_DIR)
    freed = cache.size_bytes()
    cache.clear()
    logger.info("Cleared cover cache at %s", cache.folder)
    console.print(f"Cleared cover cache ({freed} bytes).")
