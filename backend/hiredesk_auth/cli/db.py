"""Flask CLI commands for creating and resetting the database schema."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from hiredesk_auth.core.extensions import db

LOGGER = logging.getLogger(__name__)


def _ensure_non_production() -> None:
    """Abort destructive commands when running in production."""
    config = current_app.config
    app_env = str(config.get("APP_ENV", "")).lower()
    is_debug = bool(config.get("DEBUG"))
    is_testing = bool(config.get("TESTING"))
    if app_env == "production" or not (is_debug or is_testing or app_env == "development"):
        raise click.UsageError(
            "The 'flask db reset' command is restricted to non-production environments."
        )


@click.group("db")
def db_cli() -> None:
    """Database schema commands."""


@db_cli.command("init")
@with_appcontext
def init_command() -> None:
    """Create missing tables. Existing tables are left untouched."""
    try:
        db.create_all()
    except SQLAlchemyError as exc:
        raise click.ClickException(f"Schema creation failed: {exc}") from exc
    tables = sorted(inspect(db.engine).get_table_names())
    LOGGER.info("Database schema ready", extra={"event": "db.init"})
    click.echo(f"Schema ready: {', '.join(tables) or '(no tables)'}")


@db_cli.command("reset")
@click.option("--yes", is_flag=True, help="Skip the destructive confirmation prompt.")
@with_appcontext
def reset_command(yes: bool) -> None:
    """Drop every table and recreate the schema."""
    _ensure_non_production()
    if not yes:
        click.confirm(
            "This will DROP all application tables and recreate them. Continue?",
            abort=True,
        )
    LOGGER.info("Dropping database schema...")
    db.session.remove()
    db.drop_all()
    LOGGER.info("Recreating database schema...")
    db.create_all()
    click.echo("Schema recreated.")


@db_cli.command("ping")
@with_appcontext
def ping_command() -> None:
    """Exit non-zero when the database is unreachable."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise click.ClickException(f"Database unreachable: {exc}") from exc
    click.echo("Database reachable.")
