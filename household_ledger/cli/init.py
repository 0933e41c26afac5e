"""
Database initialization CLI command.

Creates the household-ledger database and registers the default currencies.
"""

import os
from pathlib import Path

import click

from household_ledger.lib.config import DB_PATH_ENV_VAR
from household_ledger.lib.db import DEFAULT_DB_PATH, db_exists, db_session, init_db, reset_db
from household_ledger.services.ledger_service import ensure_default_currencies


def _db_path() -> Path:
    env_db_path = os.environ.get(DB_PATH_ENV_VAR)
    return Path(env_db_path) if env_db_path else DEFAULT_DB_PATH


@click.command()
@click.option("--reset", is_flag=True, help="Reset database (WARNING: deletes all data)")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation when resetting")
def init(reset: bool, yes: bool) -> None:
    """Initialize the household-ledger database."""
    db_path = _db_path()

    if db_exists() and not reset:
        click.echo(f"Database already exists at {db_path}")
        click.echo("Use --reset to recreate (WARNING: this will delete all data)")
        return

    if reset:
        if not yes and not click.confirm("This will DELETE ALL DATA. Continue?"):
            click.echo("Aborted.")
            return

        reset_db()
        click.echo("Database reset successfully.")
    else:
        init_db()
        click.echo(f"Database initialized at {db_path}")

    with db_session() as session:
        created = ensure_default_currencies(session)
        click.echo(f"Registered {len(created)} currencies.")
