"""Agent command for the tachosync CLI.

Commands:
- run: Keep syncing according to the saved schedule
"""

from __future__ import annotations

import sys
import time

import click

from tachosync.client.cli.schedule import describe_trigger
from tachosync.client.cli.session import open_session
from tachosync.client.power import ResumeDetector
from tachosync.client.scheduler import SyncScheduler


@click.command()
def run() -> None:
    """Run the sync agent until interrupted.

    Restores the saved schedule and reconciles it after the computer
    wakes up from sleep.
    """
    with open_session() as session:
        error = session.validate()
        if error is not None:
            click.echo(error, err=True)
            sys.exit(1)

        trigger = session.settings.get_schedule()
        scheduler = SyncScheduler(session.sync_now, session.root_exists)
        detector = ResumeDetector(scheduler.handle_resume)

        scheduler.start()
        detector.start()
        try:
            click.echo(f"Sync folder: {session.root}")
            click.echo(f"Schedule: {describe_trigger(trigger)}")
            scheduler.apply_saved(trigger)
            click.echo("Agent running... (Ctrl+C to stop)")
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            click.echo("\nStopping...")
        finally:
            detector.stop()
            scheduler.shutdown()
