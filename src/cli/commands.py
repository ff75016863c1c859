import click
from flask import current_app
from flask.cli import with_appcontext

from src.services.errors import StorageError
from src.utils.time_utils import format_timestamp


def get_engine():
    return current_app.extensions["lifecycle_engine"]


def fail(message):
    click.echo(f"❌ {message}", err=True)
    click.get_current_context().exit(1)


@click.command("renew-subscriptions")
@click.option("--threshold-hours", type=float, default=None,
              help="Renew leases ending within this many hours (default: RENEWAL_THRESHOLD_HOURS).")
@click.option("--verbose", is_flag=True, help="Show every renewal result.")
@with_appcontext
def renew_subscriptions(threshold_hours, verbose):
    """Run one renewal scan, e.g. from cron."""
    threshold_days = threshold_hours / 24 if threshold_hours is not None else None
    try:
        summary = get_engine().renew_scan(threshold_days)
    except StorageError as e:
        fail(f"Renewal scan failed: {e.message}")

    click.echo(
        f"🔄 Checked: {summary.total_checked} | Candidates: {summary.renewal_candidates} | "
        f"Succeeded: {summary.renewals_succeeded} | Failed: {summary.renewals_failed}"
    )
    if not summary.results:
        click.echo("No subscriptions needed renewal.")
        return

    if verbose or summary.renewals_failed:
        for result in summary.results:
            if result.success:
                click.echo(f"  ✅ {result.channel_id} - Renewed (expires: {format_timestamp(result.new_expiry_time)})")
            else:
                click.echo(f"  ❌ {result.channel_id} - Failed: {result.message}")

    if summary.renewals_failed:
        click.get_current_context().exit(1)


@click.command("list-subscriptions")
@with_appcontext
def list_subscriptions():
    try:
        listing = get_engine().list_subscriptions()
    except StorageError as e:
        fail(f"Unable to load subscription state from storage: {e.message}")

    if not listing.subscriptions:
        click.echo("No subscriptions.")
        return

    for info in listing.subscriptions:
        click.echo(
            f"{info.channel_id}  {info.status.value:<7}  {format_timestamp(info.expires_at)}  "
            f"{info.days_until_expiry:6.2f}d"
        )
    click.echo(f"Total: {listing.total} | Active: {listing.active} | Expired: {listing.expired}")
