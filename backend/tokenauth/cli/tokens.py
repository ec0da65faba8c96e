"""Flask CLI commands for refresh-token maintenance."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from tokenauth.core.container import get_auth_service, get_refresh_store

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-token maintenance commands."""


@tokens_cli.command("purge-expired")
@with_appcontext
def purge_expired() -> None:
    """Delete refresh tokens whose expiry has passed (revoked or not).

    Intended for a cron job or a Kubernetes ``CronJob``; safe to run
    concurrently with live traffic.
    """
    store = get_refresh_store()
    removed = store.purge_expired()
    LOGGER.info("tokens.purged count=%s", removed, extra={"event": "tokens.purged"})
    click.echo(f"Purged {removed} expired refresh token(s).")


@tokens_cli.command("revoke-subject")
@click.argument("subject_id")
@with_appcontext
def revoke_subject(subject_id: str) -> None:
    """Revoke every active refresh token of SUBJECT_ID (forced logout)."""
    revoked = get_auth_service().logout_all(subject_id)
    click.echo(f"Revoked {revoked} refresh token(s) for subject {subject_id}.")
