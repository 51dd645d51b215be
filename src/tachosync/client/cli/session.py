"""Session helpers shared by the CLI commands.

This module provides:
- EchoListener: Prints sync progress with click
- open_session: Builds a SyncSession from the CLI configuration
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

import click

from tachosync.client.cli.config import (
    get_removal_policy,
    get_server_url,
    get_settle_delay,
    open_settings,
)
from tachosync.client.session import SyncSession
from tachosync.client.sync import FileReport, SyncListener
from tachosync.core.types import SyncStatus

STATUS_COLORS = {
    SyncStatus.SYNCED: "green",
    SyncStatus.NOT_SYNCED: "red",
    SyncStatus.SYNCHRONIZING: "yellow",
}


def format_report(report: FileReport) -> str:
    """One line for a file row."""
    status = click.style(f"{report.status.value:<13}", fg=STATUS_COLORS[report.status])
    return f"  {status} {report.relative_path}"


class EchoListener(SyncListener):
    """Prints session progress to the terminal."""

    def on_log(self, message: str) -> None:
        click.echo(message)

    def on_status(self, report: FileReport) -> None:
        click.echo(format_report(report))

    def on_last_sync(self, timestamp: datetime) -> None:
        click.echo(f"Last sync: {timestamp:%Y-%m-%d %H:%M:%S}")


@contextmanager
def open_session(listener: SyncListener | None = None) -> Iterator[SyncSession]:
    """Open the settings and build a session; both are closed on exit."""
    settings = open_settings()
    session = SyncSession(
        settings,
        server_url=get_server_url(),
        listener=listener or EchoListener(),
        policy=get_removal_policy(),
        settle_delay=get_settle_delay(),
    )
    try:
        yield session
    finally:
        session.close()
        settings.close()
