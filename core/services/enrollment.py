"""User and coaching-client storage.

Every function takes an open SQLAlchemy session as its first argument and
leaves commit/rollback to the caller (``session_scope`` or ``api.deps.get_db``).
Expected business failures are returned as :class:`EnrollmentResult` values,
never raised.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import get_settings
from core.models import AdminActionLog, CoachingClient, CoachingFormResponse, User, utcnow
from core.security import hash_password
from core.services.coaching_status import CoachingStatus, check_transition, is_open

logger = logging.getLogger(__name__)

DUPLICATE_ENROLLMENT_ERROR = "This user already has an active coaching enrollment."
CLIENT_NOT_FOUND_ERROR = "Coaching client not found"


@dataclass
class EnrollmentResult:
    success: bool
    client: Optional[CoachingClient] = None
    error: Optional[str] = None


@dataclass
class StatusUpdateResult:
    success: bool
    error: Optional[str] = None


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def placeholder_password(first_name: str) -> str:
    # Predictable on purpose: admins hand it to the client out of band.
    return f"Welcome{first_name}1"


def next_monday(now: dt.datetime) -> dt.datetime:
    """Midnight of the first Monday strictly after ``now``."""
    days_ahead = (7 - now.weekday()) % 7 or 7
    start = now + dt.timedelta(days=days_ahead)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


# -- Users --


def create_user(
    s: Session,
    email: str,
    first_name: str,
    last_name: str,
    password: str,
    *,
    terms_accepted: bool = True,
    disclaimer_accepted: bool = True,
    is_admin: bool = False,
) -> User:
    """Insert a user. Callers must check ``get_user_by_email`` first; duplicates are not rejected here."""
    now = utcnow()
    user = User(
        email=normalize_email(email),
        first_name=first_name,
        last_name=last_name,
        password=hash_password(password),
        is_admin=is_admin,
        terms_accepted=terms_accepted,
        terms_accepted_at=now if terms_accepted else None,
        disclaimer_accepted=disclaimer_accepted,
        disclaimer_accepted_at=now if disclaimer_accepted else None,
        login_count=0,
    )
    s.add(user)
    s.flush()
    logger.info("user_created", extra={"user_id": user.id, "is_admin": is_admin})
    return user


def record_acceptance(user: User, *, terms: bool = False, disclaimer: bool = False) -> bool:
    """Set the acceptance flags that are being granted now. Returns True if anything changed."""
    now = utcnow()
    changed = False
    if terms and not user.terms_accepted:
        user.terms_accepted = True
        user.terms_accepted_at = now
        changed = True
    if disclaimer and not user.disclaimer_accepted:
        user.disclaimer_accepted = True
        user.disclaimer_accepted_at = now
        changed = True
    return changed


def get_user(s: Session, user_id: int) -> Optional[User]:
    return s.get(User, user_id)


def get_user_by_email(s: Session, email: str) -> Optional[User]:
    return s.execute(
        select(User).where(User.email == normalize_email(email)).order_by(User.id).limit(1)
    ).scalar_one_or_none()


# -- Coaching clients --


def resolve_current_client(clients: Iterable[CoachingClient]) -> Optional[CoachingClient]:
    """Pick "the" enrollment among a user's history.

    Newest open enrollment wins; with none open, the newest row of any status;
    with no rows, ``None``.
    """
    ordered = sorted(clients, key=lambda c: (c.created_at, c.id or 0), reverse=True)
    for client in ordered:
        if is_open(client.status):
            return client
    return ordered[0] if ordered else None


def get_coaching_client_by_user_id(s: Session, user_id: int) -> Optional[CoachingClient]:
    rows = s.execute(select(CoachingClient).where(CoachingClient.user_id == user_id)).scalars().all()
    return resolve_current_client(rows)


def list_coaching_clients(s: Session, status: Optional[str] = None) -> list[CoachingClient]:
    q = select(CoachingClient)
    if status:
        q = q.where(CoachingClient.status == status)
    return list(s.execute(q.order_by(CoachingClient.created_at.desc(), CoachingClient.id.desc())).scalars().all())


def _audit(s: Session, action: str, client: CoachingClient, actor_user_id: Optional[int], payload: dict[str, Any]) -> None:
    s.add(AdminActionLog(actor_user_id=actor_user_id, client_id=client.id, action=action, payload=payload))
    s.flush()


def admin_enroll_client(
    s: Session,
    email: str,
    first_name: str,
    last_name: str,
    coaching_type: Optional[str] = None,
    *,
    now: Optional[dt.datetime] = None,
    actor_user_id: Optional[int] = None,
) -> EnrollmentResult:
    settings = get_settings()
    coaching_type = coaching_type or settings.default_coaching_type
    now = now or utcnow()

    user = get_user_by_email(s, email)
    if user is None:
        user = create_user(s, email, first_name, last_name, placeholder_password(first_name))
        logger.info("coaching_user_provisioned", extra={"user_id": user.id})

    existing = get_coaching_client_by_user_id(s, user.id)
    if existing is not None and is_open(existing.status):
        logger.info(
            "coaching_enrollment_rejected",
            extra={"user_id": user.id, "existing_client_id": existing.id, "existing_status": existing.status},
        )
        return EnrollmentResult(success=False, error=DUPLICATE_ENROLLMENT_ERROR)

    start = next_monday(now)
    weeks = settings.plan_duration_weeks
    client = CoachingClient(
        user_id=user.id,
        status=CoachingStatus.enrolled.value,
        coaching_type=coaching_type,
        payment_status="completed",
        start_date=start,
        end_date=start + dt.timedelta(days=7 * weeks),
        plan_duration_weeks=weeks,
        created_at=now,
    )
    try:
        with s.begin_nested():
            s.add(client)
            s.flush()
    except IntegrityError:
        # A concurrent enrollment won the race on uq_coaching_client_open.
        logger.warning("coaching_enrollment_conflict", extra={"user_id": user.id})
        return EnrollmentResult(success=False, error=DUPLICATE_ENROLLMENT_ERROR)

    _audit(s, "coaching_client_enrolled", client, actor_user_id, {"user_id": user.id, "coaching_type": coaching_type})
    logger.info("coaching_client_enrolled", extra={"client_id": client.id, "user_id": user.id, "coaching_type": coaching_type})
    return EnrollmentResult(success=True, client=client)


def set_client_status(
    s: Session,
    client_id: int,
    new_status: str,
    *,
    enforce_transitions: bool = False,
    actor_user_id: Optional[int] = None,
) -> StatusUpdateResult:
    """Overwrite a client's status.

    Any-to-any by default. With ``enforce_transitions`` the move must be an
    edge of ``ALLOWED_TRANSITIONS`` or ``InvalidStatusTransition`` is raised.
    Reopening a terminal row while the user already holds another open
    enrollment fails with ``DUPLICATE_ENROLLMENT_ERROR`` and changes nothing.
    """
    client = s.get(CoachingClient, client_id)
    if client is None:
        return StatusUpdateResult(success=False, error=CLIENT_NOT_FOUND_ERROR)
    previous = client.status
    if enforce_transitions:
        check_transition(previous, new_status)
    try:
        with s.begin_nested():
            client.status = new_status
            s.flush()
    except IntegrityError:
        logger.warning(
            "coaching_status_conflict",
            extra={"client_id": client_id, "from_status": previous, "to_status": new_status},
        )
        return StatusUpdateResult(success=False, error=DUPLICATE_ENROLLMENT_ERROR)
    _audit(s, "coaching_status_updated", client, actor_user_id, {"from": previous, "to": new_status})
    logger.info("coaching_status_updated", extra={"client_id": client_id, "from_status": previous, "to_status": new_status})
    return StatusUpdateResult(success=True)


def update_client_status(
    s: Session,
    client_id: int,
    new_status: str,
    *,
    enforce_transitions: bool = False,
    actor_user_id: Optional[int] = None,
) -> bool:
    return set_client_status(
        s, client_id, new_status, enforce_transitions=enforce_transitions, actor_user_id=actor_user_id
    ).success


def record_form_response(s: Session, client: CoachingClient, form_type: str, responses: Any) -> CoachingFormResponse:
    row = CoachingFormResponse(client_id=client.id, form_type=form_type, responses=responses)
    s.add(row)
    s.flush()
    return row


def list_form_responses(s: Session, client_id: int) -> list[CoachingFormResponse]:
    return list(
        s.execute(
            select(CoachingFormResponse).where(CoachingFormResponse.client_id == client_id).order_by(CoachingFormResponse.id)
        ).scalars().all()
    )
