"""CLI commands for the shared AI generation quota."""

from __future__ import annotations

import asyncio
import datetime

import marginalia.lib.cli as click
from marginalia.core import di
from marginalia.throttle import AIQuota


@click.group("quota")
def quota():
    """Inspect the AI generation quota."""
    ...


@quota.command("status")
@di.inject
def quota_status(ai_quota: AIQuota = di.Provide["throttle.quota"]) -> None:
    """Print how much of the current quota window has been used."""
    status = asyncio.run(ai_quota.status())
    click.echo(f"{status.used}/{status.limit} used, {status.remaining} remaining")
    if status.reset_at is not None:
        remaining = status.reset_at - datetime.datetime.now(datetime.UTC)
        click.echo(f"window resets at {status.reset_at.isoformat(timespec='seconds')} (in {remaining})")
    else:
        click.echo("no window open")


@quota.command("reset")
@click.confirmation_option(prompt="discard the current quota window?")
@di.inject
def quota_reset(ai_quota: AIQuota = di.Provide["throttle.quota"]) -> None:
    asyncio.run(ai_quota.reset())
    click.echo("quota reset")
