"""
LeanLia maintenance commands.

Commands:
  leanlia init-db              — create missing tables
  leanlia sweep-sessions       — delete expired sessions (cron / systemd timer)
  leanlia make-admin <user_id> — promote an existing user to admin
  leanlia issue-session <user_id> — print a bearer credential for a new session
"""

from __future__ import annotations

import sys

import click

import app.models  # noqa: F401
from app.core.errors import NotFoundError
from app.core.logging import configure_logging
from app.db import session as db_session
from app.db.base import Base


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def cli() -> None:
    """LeanLia database maintenance."""
    configure_logging()


@cli.command("init-db")
def init_db() -> None:
    """Create any missing tables."""
    Base.metadata.create_all(bind=db_session.engine)
    click.echo("Database schema is up to date.")


@cli.command("sweep-sessions")
def sweep_sessions() -> None:
    """Delete every session whose expiry is in the past."""
    from app.services.session_sweeper import run_sweep

    deleted = run_sweep(db_session.SessionLocal)
    click.echo(f"Removed {deleted} expired session(s).")


@cli.command("make-admin")
@click.argument("user_id")
def make_admin(user_id: str) -> None:
    """Promote USER_ID to the admin role."""
    from app.crud.audit_log import write_audit_entry
    from app.crud.user import set_user_role
    from app.models.user import Role

    db = db_session.SessionLocal()
    try:
        try:
            user = set_user_role(db, user_id=user_id, role=Role.admin)
        except NotFoundError as e:
            click.echo(str(e), err=True)
            sys.exit(1)
        write_audit_entry(
            db,
            action="user.role_changed",
            entity="user",
            entity_id=user.id,
            details={"role": Role.admin.value, "source": "cli"},
        )
    finally:
        db.close()
    click.echo(f"User {user_id} is now an admin.")


@cli.command("issue-session")
@click.argument("user_id")
@click.option(
    "--minutes",
    type=click.IntRange(min=1),
    default=None,
    help="Lifetime of the session (defaults to SESSION_EXPIRE_MINUTES).",
)
def issue_session(user_id: str, minutes: int | None) -> None:
    """Issue a session for USER_ID and print its bearer credential."""
    from datetime import timedelta

    from app.api.deps import format_bearer
    from app.core.config import settings
    from app.crud.audit_log import write_audit_entry
    from app.crud.session import create_session, generate_session_token
    from app.crud.user import get_user_by_id, record_sign_in
    from app.db.types import utcnow

    db = db_session.SessionLocal()
    try:
        user = get_user_by_id(db, user_id)
        if user is None:
            click.echo(f"User {user_id!r} not found", err=True)
            sys.exit(1)
        record_sign_in(db, user)
        now = utcnow()
        token = generate_session_token()
        s = create_session(
            db,
            user_id=user.id,
            token=token,
            expires_at=now + timedelta(minutes=minutes or settings.SESSION_EXPIRE_MINUTES),
            user_agent="leanlia-cli",
            now=now,
        )
        write_audit_entry(
            db,
            user_id=user.id,
            action="session.issued",
            entity="session",
            entity_id=s.id,
            details={"source": "cli"},
        )
        click.echo(format_bearer(s.id, token))
    finally:
        db.close()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
