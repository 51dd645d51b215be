"""Folder commands for the tachosync CLI.

Commands:
- folder: Select the directory to synchronize
- files: List the data files found in it
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from tachosync.client.cli.session import format_report, open_session
from tachosync.client.sync import ConfigurationError, SyncListener


@click.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
def folder(path: Path) -> None:
    """Select the folder to synchronize."""
    with open_session() as session:
        try:
            root = session.set_root(path)
        except ConfigurationError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
    click.echo(f"Sync folder: {root}")


@click.command()
def files() -> None:
    """List the data files in the sync folder.

    Archives found in the folder are unpacked while scanning.
    """
    with open_session(listener=SyncListener()) as session:
        try:
            reports = session.refresh_files()
        except ConfigurationError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    for report in reports:
        click.echo(format_report(report))
    click.echo(f"{len(reports)} files found")
