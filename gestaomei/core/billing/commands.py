"""CLI command for expiring lapsed trials.

Usage:
    flask expire-trials          # meant to be run from cron
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext


@click.command("expire-trials")
@with_appcontext
def expire_trials_command():
    """Move every trial past its expiry to the expired status."""
    from gestaomei.core.billing.services import expire_trials
    from gestaomei.core.utils.clock import get_clock

    count = expire_trials(get_clock().now())
    click.echo(f"Expired {count} trial account(s)")


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(expire_trials_command)
