# ABOUTME: CLI package for Shelf Notes, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click

from shelfnotes.cli.commands import add_cmd, covers_cmd, ls_cmd


@click.group()
@click.version_option(package_name="shelfnotes")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Shelf Notes - a personal book library with reliable cover images."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


cli.add_command(add_cmd.add)
cli.add_command(ls_cmd.ls)
cli.add_command(ls_cmd.status)
cli.add_command(ls_cmd.rm)
cli.add_command(covers_cmd.covers)
