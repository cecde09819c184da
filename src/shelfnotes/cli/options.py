# ABOUTME: Shared Click options for Shelf Notes CLI commands.
# ABOUTME: Provides reusable decorators for the database, cover cache, and user cover paths.

from pathlib import Path

import click

from shelfnotes.config import DEFAULT_CACHE_DIR, DEFAULT_DB_PATH, DEFAULT_USER_COVER_DIR

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to library database (default: {DEFAULT_DB_PATH})",
)

cache_dir_option = click.option(
    "--cache-dir",
    "cache_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help=f"Directory for downloaded cover images (default: {DEFAULT_CACHE_DIR})",
)

covers_dir_option = click.option(
    "--covers-dir",
    "covers_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help=f"Directory for user cover photos (default: {DEFAULT_USER_COVER_DIR})",
)


def cover_options(func):
    """Apply the database and cover storage options to a command."""
    return db_option(cache_dir_option(covers_dir_option(func)))
