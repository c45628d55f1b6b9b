from __future__ import annotations

import datetime as dt
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


OPEN_ENROLLMENT_CLAUSE = text("status NOT IN ('cancelled', 'completed')")


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(200), index=True)
    first_name: Mapped[str] = mapped_column(String(80))
    last_name: Mapped[str] = mapped_column(String(80))
    password: Mapped[str] = mapped_column(String(255))
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    terms_accepted: Mapped[bool] = mapped_column(Boolean, default=False)
    terms_accepted_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    disclaimer_accepted: Mapped[bool] = mapped_column(Boolean, default=False)
    disclaimer_accepted_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    last_login_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    login_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)


class CoachingClient(Base):
    __tablename__ = "coaching_clients"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    status: Mapped[str] = mapped_column(String(32), default="enrolled")
    coaching_type: Mapped[str] = mapped_column(String(40), default="pregnancy_coaching")
    payment_status: Mapped[str] = mapped_column(String(20), default="pending")
    start_date: Mapped[dt.datetime | None] = mapped_column(DateTime)
    end_date: Mapped[dt.datetime | None] = mapped_column(DateTime)
    plan_duration_weeks: Mapped[int] = mapped_column(Integer, default=4)
    health_notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)

    user: Mapped[User] = relationship()
    form_responses: Mapped[list["CoachingFormResponse"]] = relationship(
        back_populates="client", order_by="CoachingFormResponse.id"
    )

    __table_args__ = (
        Index(
            "uq_coaching_client_open",
            "user_id",
            unique=True,
            postgresql_where=OPEN_ENROLLMENT_CLAUSE,
            sqlite_where=OPEN_ENROLLMENT_CLAUSE,
        ),
    )


class CoachingFormResponse(Base):
    __tablename__ = "coaching_form_responses"
    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("coaching_clients.id"), index=True)
    form_type: Mapped[str] = mapped_column(String(60))
    responses: Mapped[dict[str, Any]] = mapped_column(JSON)
    submitted_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)

    client: Mapped[CoachingClient] = relationship(back_populates="form_responses")


class AuthSession(Base):
    __tablename__ = "auth_sessions"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)
    expires_at: Mapped[dt.datetime] = mapped_column(DateTime)
    revoked_at: Mapped[dt.datetime | None] = mapped_column(DateTime)


class AdminActionLog(Base):
    __tablename__ = "admin_action_logs"
    id: Mapped[int] = mapped_column(primary_key=True)
    actor_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), index=True)
    client_id: Mapped[int | None] = mapped_column(ForeignKey("coaching_clients.id"), index=True)
    action: Mapped[str] = mapped_column(String(120))
    payload: Mapped[dict[str, Any]] = mapped_column(JSON)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=utcnow)
