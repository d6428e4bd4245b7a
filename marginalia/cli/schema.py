"""CLI commands for database schema migrations.

Migrations live in `migrations/` and run through alembic against the
database configured in storage.yaml.
"""

from __future__ import annotations

import alembic.command
import alembic.config

import marginalia.lib.cli as click
from marginalia.core import di

Migrations = di.Provide["storage.persistent.alembic_config"]


@click.group("schema")
def schema():
    """Apply and inspect database migrations."""
    ...


@schema.command("current")
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def schema_current(verbose: bool, cf: alembic.config.Config = Migrations) -> None:
    """Show the revision the database is at."""
    alembic.command.current(cf, verbose=verbose)


@schema.command("up")
@click.argument("revision", default="head")
@click.option("--sql", is_flag=True, default=False, help="print the SQL instead of running it")
@di.inject
def schema_up(revision: str, sql: bool, cf: alembic.config.Config = Migrations) -> None:
    """Upgrade the database to REVISION, the latest one by default."""
    alembic.command.upgrade(cf, revision, sql=sql)


@schema.command("down")
@click.argument("revision")
@click.option("--sql", is_flag=True, default=False, help="print the SQL instead of running it")
@di.inject
def schema_down(revision: str, sql: bool, cf: alembic.config.Config = Migrations) -> None:
    """Downgrade the database to REVISION, e.g. `-1` or `base`."""
    alembic.command.downgrade(cf, revision, sql=sql)


@schema.command("history")
@click.option("--range", "-r", "rev_range", default=None, help="e.g. `001:head`")
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def schema_history(rev_range: str | None, verbose: bool, cf: alembic.config.Config = Migrations) -> None:
    alembic.command.history(cf, rev_range=rev_range, verbose=verbose, indicate_current=True)


@schema.command("stamp")
@click.argument("revision")
@di.inject
def schema_stamp(revision: str, cf: alembic.config.Config = Migrations) -> None:
    """Record REVISION as applied without running any migration."""
    alembic.command.stamp(cf, revision)


@schema.command("generate")
@click.argument("message")
@click.option("--empty", is_flag=True, default=False, help="skip comparing the tables with the database")
@di.inject
def schema_generate(message: str, empty: bool, cf: alembic.config.Config = Migrations) -> None:
    """Write a new migration named after MESSAGE."""
    alembic.command.revision(cf, message, autogenerate=not empty)
