"""Schedule commands for the tachosync CLI.

Commands:
- schedule: Choose when syncs run automatically
- status: Show the current configuration
"""

from __future__ import annotations

import sys

import click

from tachosync.client.cli.config import (
    get_config_file,
    get_removal_policy,
    get_server_url,
    open_settings,
)
from tachosync.client.cli.session import open_session
from tachosync.core.types import ScheduleTrigger

TRIGGER_CHOICES = {
    "manual": ScheduleTrigger.MANUAL,
    "application_start": ScheduleTrigger.APPLICATION_START,
    "1H": ScheduleTrigger.EVERY_1H,
    "12H": ScheduleTrigger.EVERY_12H,
    "24H": ScheduleTrigger.EVERY_24H,
}


def describe_trigger(trigger: ScheduleTrigger) -> str:
    """Human-readable trigger mode."""
    if trigger is ScheduleTrigger.MANUAL:
        return "manual"
    if trigger is ScheduleTrigger.APPLICATION_START:
        return "on application start"
    hours = trigger.value[:-1]
    return "every hour" if hours == "1" else f"every {hours} hours"


@click.command()
@click.argument("trigger", type=click.Choice(list(TRIGGER_CHOICES), case_sensitive=False))
def schedule(trigger: str) -> None:
    """Choose when syncs run automatically.

    TRIGGER is one of: manual, application_start, 1H, 12H, 24H.
    The schedule is applied by 'tachosync run'.
    """
    selected = TRIGGER_CHOICES[trigger]

    with open_session() as session:
        if selected is not ScheduleTrigger.MANUAL:
            error = session.validate()
            if error is not None:
                click.echo(error, err=True)
                sys.exit(1)
        session.settings.set_schedule(selected)

    if selected is ScheduleTrigger.MANUAL:
        click.echo("Automatic sync disabled")
    else:
        click.echo(f"Added task in the schedule: {describe_trigger(selected)}")


@click.command()
def status() -> None:
    """Show folder, schedule, last sync and server."""
    settings = open_settings()
    try:
        folder = settings.get_folder()
        trigger = settings.get_schedule()
        last_sync = settings.get_last_sync()
        credentials = settings.get_credentials()
    finally:
        settings.close()

    click.echo(f"Config file: {get_config_file()}")
    click.echo(f"Server: {get_server_url() or 'not configured'}")
    click.echo(f"Company: {credentials[0] if credentials else 'not connected'}")
    click.echo(f"Folder: {folder or 'not selected'}")
    click.echo(f"Schedule: {describe_trigger(trigger)}")
    click.echo(f"Last sync: {last_sync:%Y-%m-%d %H:%M:%S}" if last_sync else "Last sync: never")
    click.echo(f"Removal: {get_removal_policy().value}")
