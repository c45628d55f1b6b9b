"""Local database seeder.

Creates test accounts and coaching clients at various statuses:

- admin@test.com       admin user
- testclient@test.com  coaching client, active
- enrolled@test.com    coaching client, enrolled (no intake yet)
- intake@test.com      coaching client, intake_complete
- plangen@test.com     coaching client, plan_generating

Every account uses the password ``test123``. Re-running updates statuses in
place instead of adding rows.
"""
from __future__ import annotations

import logging
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import select
from sqlalchemy.orm import Session

from core.db import session_scope
from core.models import CoachingClient, User
from core.services.enrollment import create_user, get_user_by_email

logger = logging.getLogger(__name__)

SEED_PASSWORD = "test123"

SEED_ACCOUNTS: list[dict] = [
    {"email": "admin@test.com", "first_name": "Admin", "last_name": "Zoe", "is_admin": True, "status": None},
    {
        "email": "testclient@test.com",
        "first_name": "Test",
        "last_name": "Client",
        "status": "active",
        "health_notes": "No significant health concerns. Cleared for exercise.",
    },
    {"email": "enrolled@test.com", "first_name": "Enrolled", "last_name": "Mama", "status": "enrolled"},
    {
        "email": "intake@test.com",
        "first_name": "Intake",
        "last_name": "Done",
        "status": "intake_complete",
        "health_notes": "Mild diastasis recti. No other concerns.",
    },
    {
        "email": "plangen@test.com",
        "first_name": "PlanGen",
        "last_name": "User",
        "status": "plan_generating",
        "health_notes": "C-section recovery. Cleared by OB at 6 weeks.",
    },
]


def run_migrations() -> None:
    cfg = Config("alembic.ini")
    command.upgrade(cfg, "head")


def upsert_user(s: Session, email: str, first_name: str, last_name: str, is_admin: bool = False) -> User:
    user = get_user_by_email(s, email)
    if user is not None:
        logger.info("seed_user_exists", extra={"email": email, "user_id": user.id})
        return user
    return create_user(s, email, first_name, last_name, SEED_PASSWORD, is_admin=is_admin)


def upsert_coaching_client(s: Session, user: User, status: str, health_notes: Optional[str] = None) -> CoachingClient:
    existing = s.execute(
        select(CoachingClient).where(CoachingClient.user_id == user.id).order_by(CoachingClient.id).limit(1)
    ).scalar_one_or_none()
    if existing is not None:
        existing.status = status
        return existing
    client = CoachingClient(
        user_id=user.id,
        status=status,
        coaching_type="pregnancy_coaching",
        health_notes=health_notes,
        plan_duration_weeks=4,
    )
    s.add(client)
    s.flush()
    return client


def seed_local_accounts() -> dict[str, int]:
    """Returns ``{email: user_id}`` for the seeded accounts."""
    seeded: dict[str, int] = {}
    with session_scope() as s:
        for account in SEED_ACCOUNTS:
            user = upsert_user(
                s,
                account["email"],
                account["first_name"],
                account["last_name"],
                is_admin=bool(account.get("is_admin")),
            )
            if account.get("status"):
                upsert_coaching_client(s, user, account["status"], account.get("health_notes"))
            seeded[user.email] = user.id
    return seeded


def main() -> None:
    run_migrations()
    seeded = seed_local_accounts()
    for email in seeded:
        print(f"{email} / {SEED_PASSWORD}")
    print("Seeding complete")


if __name__ == "__main__":
    main()
