"""Command-line interface for tachosync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- connect: Verify and store the import service credentials
- folder: Select the folder to synchronize
- files: List the data files in the sync folder
- sync: Upload the data files now
- schedule: Choose when syncs run automatically
- status: Show the current configuration
- run: Keep syncing according to the saved schedule
"""

from __future__ import annotations

import click

from tachosync.client.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
    setup_logging,
)
from tachosync.client.cli.connect import connect
from tachosync.client.cli.folder import files, folder
from tachosync.client.cli.run import run
from tachosync.client.cli.schedule import schedule, status
from tachosync.client.cli.sync import sync


@click.group()
@click.version_option(package_name="tachosync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
def cli(verbose: bool) -> None:
    """tachosync - Upload tachograph data files to the import service."""
    setup_logging(verbose)


# Connection
cli.add_command(connect)

# Folder
cli.add_command(folder)
cli.add_command(files)

# Sync
cli.add_command(sync)
cli.add_command(schedule)
cli.add_command(status)
cli.add_command(run)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]
