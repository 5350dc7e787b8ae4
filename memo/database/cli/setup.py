"""
Setup & Initialization Commands
--------------------------------

Commands:
    - init: Create the schema (or migrate it) and seed policy defaults
"""
import click

from memo.core.logging_manager import handle_cli_error
from memo.core.exceptions import DatabaseError
from . import get_db


@click.command()
@click.pass_context
def init(ctx):
    """Initialize database schema and policy defaults."""
    try:
        db = get_db(ctx)
        click.echo("🗄️  Initializing database schema...")
        db.initialize_schema()
        added = db.seed_defaults()
        status = db.get_migration_status()
        click.echo(f"  Revision: {status['current_revision'] or 'none'}")
        if added:
            click.echo(f"  Seeded {added} configuration defaults")
        click.echo("✅ Database initialized!")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "init")
