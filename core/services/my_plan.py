"""The "get my plan" read and intake form submission.

``get_my_plan`` answers with a status code that keeps the two failure modes
apart: 401 means the caller has no usable session, 404 means the caller is
signed in but has never been enrolled.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.orm import Session

from core.models import CoachingClient, User
from core.services.enrollment import get_coaching_client_by_user_id, get_user, list_form_responses, record_form_response
from core.services.sessions import SessionContext

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Not authenticated"
NOT_ENROLLED = "No coaching enrollment found"
NO_ENROLLMENT = "No coaching enrollment"


@dataclass(frozen=True)
class PlanResponse:
    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def client(self) -> Optional[dict[str, Any]]:
        if not isinstance(self.body, dict):
            return None
        return self.body.get("client") or None


@dataclass
class FormSubmissionResult:
    success: bool
    error: Optional[str] = None


def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def client_summary(client: CoachingClient) -> dict[str, Any]:
    return {
        "id": client.id,
        "status": client.status,
        "startDate": _iso(client.start_date),
        "endDate": _iso(client.end_date),
        "planDurationWeeks": client.plan_duration_weeks,
        "coachingType": client.coaching_type,
    }


def _user_profile(user: User) -> dict[str, Any]:
    return {
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "termsAccepted": bool(user.terms_accepted),
        "disclaimerAccepted": bool(user.disclaimer_accepted),
    }


def _plan_body(s: Session, user: User, client: CoachingClient) -> dict[str, Any]:
    responses = list_form_responses(s, client.id)
    return {
        "client": client_summary(client),
        "workoutPlan": [],
        "nutritionPlan": [],
        "tips": [],
        "unreadMessages": 0,
        "formResponses": [
            {"id": r.id, "formType": r.form_type, "responses": r.responses, "submittedAt": _iso(r.submitted_at)}
            for r in responses
        ],
        "userProfile": _user_profile(user),
    }


def get_my_plan(s: Session, context: SessionContext) -> PlanResponse:
    if context.user_id is None:
        return PlanResponse(401, {"message": NOT_AUTHENTICATED})
    user = get_user(s, context.user_id)
    if user is None:
        logger.warning("my_plan_orphaned_session", extra={"user_id": context.user_id})
        return PlanResponse(401, {"message": NOT_AUTHENTICATED})
    client = get_coaching_client_by_user_id(s, user.id)
    if client is None:
        return PlanResponse(404, {"message": NOT_ENROLLED})
    return PlanResponse(200, _plan_body(s, user, client))


def submit_form_response(s: Session, context: SessionContext, form_type: str, responses: Any) -> FormSubmissionResult:
    if context.user_id is None:
        return FormSubmissionResult(success=False, error=NOT_AUTHENTICATED)
    client = get_coaching_client_by_user_id(s, context.user_id)
    if client is None:
        return FormSubmissionResult(success=False, error=NO_ENROLLMENT)
    record_form_response(s, client, form_type, responses)
    logger.info("coaching_form_submitted", extra={"client_id": client.id, "form_type": form_type})
    return FormSubmissionResult(success=True)
