#!/usr/bin/env python3
"""
Memo Database Management CLI
-----------------------------

Command-line interface for the memo database.

This module provides the main CLI group and shared context setup
for all database commands.

Command Structure:
    - Setup & Initialization (init)
    - Statistics (stats, activity, mark-read)
    - Maintenance (health, reconcile)
    - Runtime policy (config get/set/list)

Usage:
    # Get general help
    memodb --help

    # Statistics of user 3
    memodb stats 3

    # Repair drifted counters
    memodb reconcile --fix
"""
import click
import logging
from pathlib import Path

from memo.core.paths import DB_PATH, ALEMBIC_DIR, LOG_DIR
from memo.database import MemoDB


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=str(DB_PATH),
    help="Path to database file",
)
@click.option(
    "--alembic-dir",
    type=click.Path(),
    default=str(ALEMBIC_DIR),
    help="Path to Alembic directory",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, alembic_dir, log_dir, verbose):
    """Memo Database Management CLI"""

    # Suppress Alembic INFO logging by default
    logging.getLogger("alembic").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path)
    ctx.obj["alembic_dir"] = Path(alembic_dir)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["verbose"] = verbose


def get_db(ctx) -> MemoDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        ctx.obj["db"] = MemoDB(
            db_path=ctx.obj["db_path"],
            alembic_dir=ctx.obj["alembic_dir"],
            log_dir=ctx.obj["log_dir"],
        )
        ctx.obj["logger"] = ctx.obj["db"].logger
    return ctx.obj["db"]


# Import and register command modules
# These imports must come after CLI group definition
from .setup import init  # noqa: E402
from .stats import stats, activity, mark_read  # noqa: E402
from .maintenance import health, reconcile  # noqa: E402
from .config import config  # noqa: E402

# Register top-level commands
cli.add_command(init)
cli.add_command(stats)
cli.add_command(activity)
cli.add_command(mark_read)
cli.add_command(health)
cli.add_command(reconcile)

# Register command groups
cli.add_command(config)


if __name__ == "__main__":
    cli(obj={})
