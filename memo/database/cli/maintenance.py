"""
Maintenance Commands
---------------------

Counter consistency checks and repair.

Commands:
    - health: Report counter drift without changing anything
    - reconcile: Recompute counters from child rows
"""
import json

import click

from memo.core.logging_manager import handle_cli_error
from memo.core.exceptions import DatabaseError, HealthCheckError
from . import get_db


def _echo_drift(result):
    memo_drift = result["memo_counters"]["drifted"]
    tag_drift = result["tag_counts"]["drifted"]

    if not memo_drift and not tag_drift:
        click.echo("  No drift found")
        return

    for memo_id, columns in memo_drift.items():
        for column, (stored, actual) in columns.items():
            click.echo(f"  • memo {memo_id} {column}: {stored} -> {actual}")
    for owner_id, tags in tag_drift.items():
        for name, (stored, actual) in tags.items():
            click.echo(f"  • user {owner_id} tag '{name}': {stored} -> {actual}")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def health(ctx, as_json):
    """Run the counter health check."""
    try:
        db = get_db(ctx)
        with db.session_scope() as session:
            report = db.health_monitor.health_check(session)

        if as_json:
            click.echo(json.dumps(report, indent=2, default=str))
            return

        icon = "✅" if report["status"] == "healthy" else "⚠️ "
        click.echo(f"\n{icon} Status: {report['status']}")
        for issue in report["issues"]:
            click.echo(f"  • [{issue['severity']}] {issue['message']}")
        for recommendation in report["recommendations"]:
            click.echo(f"  💡 {recommendation}")

    except (HealthCheckError, DatabaseError) as e:
        handle_cli_error(ctx, e, "health")


@click.command()
@click.option("--fix", is_flag=True, help="Write corrected counts")
@click.pass_context
def reconcile(ctx, fix):
    """Recompute memo counters and tag counts."""
    try:
        db = get_db(ctx)
        with db.session_scope() as session:
            result = db.health_monitor.reconcile(session, fix=fix)

        click.echo("\n🔧 Reconciliation" + (" (fixed)" if fix else " (dry run)"))
        _echo_drift(result)

    except (HealthCheckError, DatabaseError) as e:
        handle_cli_error(ctx, e, "reconcile")
