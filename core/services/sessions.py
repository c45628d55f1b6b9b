"""Login sessions.

A successful login stores an :class:`AuthSession` row and hands out a signed
bearer token naming it. Each request turns that token back into a
:class:`SessionContext`; anything that does not check out (bad signature,
TTL elapsed, logged out, expired server-side) yields the anonymous context.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from core.config import get_settings
from core.models import AuthSession, User, utcnow
from core.security import hash_password, password_needs_upgrade, verify_password
from core.services.enrollment import get_user, get_user_by_email, record_acceptance

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
TERMS_REQUIRED = "Please accept terms"


@dataclass(frozen=True)
class SessionContext:
    user_id: Optional[int] = None
    auth_token: Optional[str] = None
    session_id: Optional[int] = None

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


@dataclass
class LoginResult:
    success: bool
    user: Optional[User] = None
    token: Optional[str] = None
    error: Optional[str] = None


def is_authenticated(context: SessionContext) -> bool:
    return context.user_id is not None


def _epoch(value: dt.datetime) -> int:
    return int(value.replace(tzinfo=dt.timezone.utc).timestamp())


def issue_token(row: AuthSession) -> str:
    settings = get_settings()
    claims = {"sub": str(row.user_id), "sid": int(row.id), "exp": _epoch(row.expires_at)}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def login(
    s: Session,
    email: str,
    password: str,
    *,
    accept_terms: bool = False,
    accept_disclaimer: bool = False,
) -> LoginResult:
    user = get_user_by_email(s, email)
    if user is None or not verify_password(password, user.password):
        logger.info("login_failed", extra={"reason": "invalid_credentials"})
        return LoginResult(success=False, error=INVALID_CREDENTIALS)

    if password_needs_upgrade(user.password):
        user.password = hash_password(password)
        logger.info("password_hash_upgraded", extra={"user_id": user.id})

    if not user.terms_accepted and not accept_terms:
        logger.info("login_failed", extra={"reason": "terms_required", "user_id": user.id})
        return LoginResult(success=False, user=user, error=TERMS_REQUIRED)

    record_acceptance(user, terms=accept_terms, disclaimer=accept_disclaimer)
    now = utcnow()
    user.last_login_at = now
    user.login_count = (user.login_count or 0) + 1

    row = AuthSession(
        user_id=user.id,
        created_at=now,
        expires_at=now + dt.timedelta(minutes=get_settings().jwt_expire_minutes),
    )
    s.add(row)
    s.flush()
    logger.info("login_succeeded", extra={"user_id": user.id, "session_id": row.id})
    return LoginResult(success=True, user=user, token=issue_token(row))


def resolve_session(s: Session, token: Optional[str]) -> SessionContext:
    if not token:
        return SessionContext.anonymous()
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        user_id = int(claims["sub"])
        session_id = int(claims["sid"])
    except (JWTError, KeyError, TypeError, ValueError):
        return SessionContext.anonymous()

    row = s.get(AuthSession, session_id)
    if row is None or row.user_id != user_id or row.revoked_at is not None or row.expires_at <= utcnow():
        return SessionContext.anonymous()
    return SessionContext(user_id=user_id, auth_token=token, session_id=session_id)


def current_user(s: Session, context: SessionContext) -> Optional[User]:
    if context.user_id is None:
        return None
    return get_user(s, context.user_id)


def logout(s: Session, context: SessionContext) -> None:
    if context.session_id is None:
        return
    row = s.get(AuthSession, context.session_id)
    if row is not None and row.revoked_at is None:
        row.revoked_at = utcnow()
        logger.info("logout", extra={"user_id": context.user_id, "session_id": row.id})


def expire_session(s: Session, context: SessionContext) -> None:
    """Force the session past its TTL without logging out."""
    if context.session_id is None:
        return
    row = s.get(AuthSession, context.session_id)
    if row is not None:
        row.expires_at = utcnow() - dt.timedelta(seconds=1)
        logger.info("session_expired", extra={"user_id": context.user_id, "session_id": row.id})
