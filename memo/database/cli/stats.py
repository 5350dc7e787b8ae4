"""
Statistics Commands
--------------------

Per-user dashboards and the mentions watermark.

Commands:
    - stats: Statistics snapshot of a user
    - activity: Memo activity of a user over a date window
    - mark-read: Mark a user's mentions as read
"""
import json

import click

from memo.core.logging_manager import handle_cli_error
from memo.core.exceptions import DatabaseError, ValidationError
from . import get_db


@click.command()
@click.argument("user_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def stats(ctx, user_id, as_json):
    """Display statistics of USER_ID."""
    try:
        db = get_db(ctx)
        snapshot = db.get_user_statistics(user_id)

        if as_json:
            click.echo(json.dumps(snapshot.as_dict(), indent=2))
            return

        click.echo(f"\n📊 Statistics for user {user_id}")
        click.echo("=" * 50)
        click.echo(f"  Memos:            {snapshot.total_memos}")
        click.echo(f"  Liked:            {snapshot.liked_count}")
        click.echo(f"  Mentioned:        {snapshot.mentioned_count}")
        click.echo(f"  Commented:        {snapshot.commented_count}")
        click.echo(f"  Unread mentions:  {snapshot.unread_mentioned_count}")
        watermark = snapshot.watermark.isoformat() if snapshot.watermark else "never"
        click.echo(f"  Mentions read at: {watermark}")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "stats", {"user_id": user_id})


@click.command()
@click.argument("user_id", type=int)
@click.option("--begin", type=click.DateTime(), help="Window start (default: 50 days ago)")
@click.option("--end", type=click.DateTime(), help="Window end (default: tomorrow)")
@click.pass_context
def activity(ctx, user_id, begin, end):
    """Display memo activity of USER_ID per day."""
    try:
        db = get_db(ctx)
        with db.session_scope() as session:
            report = db.query_analytics.get_memo_activity(session, user_id, begin, end)

        click.echo(f"\n📅 Activity for user {report['user_id']}")
        click.echo("=" * 50)
        click.echo(f"  Memos: {report['total_memos']}")
        click.echo(f"  Days:  {report['total_days']}")
        click.echo(f"  Tags:  {report['total_tags']}")
        if report["items"]:
            click.echo("")
            for item in report["items"]:
                click.echo(f"  {item['date']}  {item['total']}")
        else:
            click.echo("\n  No memos in this window")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "activity", {"user_id": user_id})


@click.command("mark-read")
@click.argument("user_id", type=int)
@click.option("--at", type=click.DateTime(), help="Read time in UTC (default: now)")
@click.pass_context
def mark_read(ctx, user_id, at):
    """Mark mentions of USER_ID as read."""
    try:
        db = get_db(ctx)
        if db.mark_mentions_read(user_id, at):
            click.echo(f"✅ Mentions of user {user_id} marked as read")
        else:
            click.echo(f"⚠️  Watermark of user {user_id} is already later; unchanged")

    except (DatabaseError, ValidationError) as e:
        handle_cli_error(ctx, e, "mark_read", {"user_id": user_id})
