"""Sync command for the tachosync CLI.

Commands:
- sync: Run one sync cycle now
"""

from __future__ import annotations

import sys

import click

from tachosync.client.cli.session import open_session
from tachosync.core.types import TriggerReason


@click.command()
def sync() -> None:
    """Upload the data files of the sync folder now.

    Each file is moved to Archived when the upload succeeds and to
    Failed otherwise. Waits until every upload has completed.
    """
    with open_session() as session:
        error = session.validate()
        if error is not None:
            click.echo(error, err=True)
            sys.exit(1)

        # Credentials are verified again before a manual sync
        if not session.reconnect():
            sys.exit(1)

        click.echo("Starting sync...")
        report = session.sync_now(TriggerReason.MANUAL)
        if report is None:
            sys.exit(1)
        report.wait()

    parts = [click.style(f"{len(report.synced)} synced", fg="green")]
    if report.failed:
        parts.append(click.style(f"{len(report.failed)} not synced", fg="red"))
    click.echo(f"Sync complete: {', '.join(parts)}")
