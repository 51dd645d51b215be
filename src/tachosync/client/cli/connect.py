"""Connection command for the tachosync CLI.

Commands:
- connect: Verify and store the import service credentials
"""

from __future__ import annotations

import sys

import click

from tachosync.client.cli.config import get_server_url, load_config, save_config
from tachosync.client.cli.session import open_session
from tachosync.core.config import COMPANY_ID_EXAMPLE, is_valid_company_id


@click.command()
@click.option("--company-id", prompt="Company identifier", help="Company identifier (UUID).")
@click.option("--api-key", prompt="API key", hide_input=True, help="API key of the company.")
@click.option(
    "--server",
    default=None,
    help="Import service URL (e.g., https://import.example.com). Saved for later runs.",
)
def connect(company_id: str, api_key: str, server: str | None) -> None:
    """Connect to the tachograph import service.

    The credentials are verified with the service before they are saved.
    """
    company_id = company_id.strip()
    if not is_valid_company_id(company_id):
        click.echo(
            f"Error: Company Identifier format is invalid. Example: {COMPANY_ID_EXAMPLE}",
            err=True,
        )
        sys.exit(1)

    if server:
        config = load_config()
        config["server_url"] = server.rstrip("/")
        save_config(config)

    if not get_server_url():
        click.echo("Error: No server configured. Use --server.", err=True)
        sys.exit(1)

    with open_session() as session:
        if not session.connect(company_id, api_key):
            sys.exit(1)
