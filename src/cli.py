"""Operator CLI for accounts and consent retention."""

import asyncio
import logging
import sys
from datetime import UTC, datetime, timedelta

import click

from src.core.config import get_settings
from src.core.database import close_database, init_database, session_scope
from src.services.account_service import AccountService
from src.services.consent_service import ConsentService
from src.services.website_service import WebsiteService


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )
    # Quiet noisy loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


async def _with_database(run):  # noqa: ANN001, ANN202
    """Run a coroutine function with a database session, then dispose the engine."""
    init_database(get_settings())
    try:
        async with session_scope() as db:
            return await run(db)
    finally:
        await close_database()


@click.group()
def cli() -> None:
    """Cookie consent registry administration."""
    _setup_logging()


@cli.command("create-account")
@click.argument("name")
@click.option("--key-name", default="default", help="Label of the first API key")
def create_account(name: str, key_name: str) -> None:
    """Create an account and print its operator API key."""
    created = asyncio.run(
        _with_database(lambda db: AccountService(db).create_account(name, key_name))
    )
    click.echo(f"Account: {created.account_id}")
    click.echo(f"API key: {created.key}")
    click.echo("Store the key now; it cannot be shown again.")


@cli.command("purge-expired")
@click.option(
    "--now",
    "now",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%d"]),
    default=None,
    help="Reference time (defaults to the current time)",
)
@click.option("--batch-size", type=click.IntRange(min=1), default=None)
def purge_expired(now: datetime | None, batch_size: int | None) -> None:
    """Delete consents older than the retention period, in this process."""
    if now is not None and now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    result = asyncio.run(
        _with_database(
            lambda db: ConsentService(db).purge_expired(now=now, batch_size=batch_size)
        )
    )
    click.echo(
        f"Deleted {result.deleted_count} consent(s) given before "
        f"{result.cutoff.isoformat()}"
    )


@cli.command("schedule-purge")
@click.option(
    "--delay-hours",
    type=click.IntRange(min=0),
    default=0,
    help="Hours to wait before the first run",
)
@click.option(
    "--repeat/--once",
    default=True,
    help="Keep re-queuing every retention_purge_interval_hours",
)
def schedule_purge(delay_hours: int, repeat: bool) -> None:
    """Queue a retention purge on the RQ retention queue."""
    from src.workers.retention_worker import queue_retention_purge

    delay = timedelta(hours=delay_hours) if delay_hours else None
    job_id = queue_retention_purge(get_settings(), delay=delay, reschedule=repeat)
    click.echo(f"Queued retention purge job {job_id}")


@cli.command("due-scans")
def due_scans() -> None:
    """List websites whose cookie scan is due."""
    websites = asyncio.run(
        _with_database(lambda db: WebsiteService(db).list_needing_scan())
    )
    if not websites:
        click.echo("No scans due.")
        return
    for website in websites:
        planned = website.next_scan_at.isoformat() if website.next_scan_at else "never"
        click.echo(f"{website.id}  {website.domain:40s}  next scan: {planned}")


if __name__ == "__main__":
    cli()
