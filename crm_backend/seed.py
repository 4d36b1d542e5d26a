"""
Create the first admin account.

Runs automatically at startup when SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD
are set, and as the ``crm-seed-admin`` command.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys

from crm_backend.auth import create_user_account
from crm_backend.config import get_settings
from crm_backend.db import ROLE_ADMIN, ConflictError, DbClient, SqlDbClient, UserRecord

logger = logging.getLogger(__name__)


def seed_admin(
    db: DbClient, *, email: str, password: str, name: str = "Administrator"
) -> tuple[UserRecord, bool]:
    """Create an admin with this email unless one already exists."""
    email = email.strip().lower()
    existing = db.get_user_by_email(email)
    if existing:
        logger.info("Seed admin %s already exists (id %s)", email, existing.id)
        return existing, False
    try:
        user = create_user_account(db, name, email, password, ROLE_ADMIN)
    except ConflictError:
        # Created concurrently by another process.
        return db.get_user_by_email(email), False
    return user, True


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create the CRM admin account")
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="SQLAlchemy URL (defaults to DATABASE_URL)",
    )
    parser.add_argument("--email", default=settings.seed_admin_email)
    parser.add_argument("--name", default=settings.seed_admin_name)
    parser.add_argument(
        "--password",
        default=settings.seed_admin_password,
        help="Prompted for when omitted",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    if not args.database_url:
        parser.error("a database URL is required (--database-url or DATABASE_URL)")
    if not args.email:
        parser.error("an email is required (--email or SEED_ADMIN_EMAIL)")
    password = args.password or getpass.getpass("Admin password: ")
    if not password:
        parser.error("a password is required")

    user, created = seed_admin(
        SqlDbClient(args.database_url), email=args.email, password=password, name=args.name
    )
    print(f"{'Created' if created else 'Found existing'} admin {user.email} (id {user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
