"""
Runtime Policy Commands
------------------------

Read and change the switches stored in sys_configs.

Commands:
    - config get KEY
    - config set KEY VALUE
    - config list
"""
import click

from memo.core.logging_manager import handle_cli_error
from memo.core.exceptions import DatabaseError
from memo.database.managers.sys_config_manager import DEFAULTS
from . import get_db


@click.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Runtime policy switches."""
    pass


@config.command("get")
@click.argument("key")
@click.pass_context
def get_value(ctx, key):
    """Print the effective value of KEY."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            value = db.config.get_string(key)
        if value is None:
            click.echo(f"⚠️  Unknown key: {key}", err=True)
            ctx.exit(1)
        click.echo(value)

    except DatabaseError as e:
        handle_cli_error(ctx, e, "config_get", {"key": key})


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_value(ctx, key, value):
    """Set KEY to VALUE."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            db.config.set_value(key, value)
        click.echo(f"✅ {key} = {value}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "config_set", {"key": key})


@config.command("list")
@click.pass_context
def list_values(ctx):
    """Print every known switch with its effective value."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            for key in DEFAULTS:
                click.echo(f"{key} = {db.config.get_string(key)}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "config_list")
