import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse

from api.auth import get_session_context, require_admin
from api.deps import DbSession
from api.schemas import (
    AdminEnrollRequest,
    CoachingClientOut,
    EnrollmentResponse,
    FormResponseRequest,
    FormSubmissionResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from core.config import get_settings
from core.models import User
from core.services.coaching_status import InvalidStatusTransition
from core.services.enrollment import (
    DUPLICATE_ENROLLMENT_ERROR,
    admin_enroll_client,
    list_coaching_clients,
    set_client_status,
)
from core.services.my_plan import get_my_plan, submit_form_response
from core.services.sessions import SessionContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


@router.get("/my-plan", tags=["coaching"])
def my_plan(context: Annotated[SessionContext, Depends(get_session_context)], db: DbSession):
    result = get_my_plan(db, context)
    return JSONResponse(status_code=result.status, content=result.body)


@router.post("/coaching-clients/form-responses", response_model=FormSubmissionResponse, tags=["coaching"])
def post_form_response(
    body: FormResponseRequest,
    response: Response,
    context: Annotated[SessionContext, Depends(get_session_context)],
    db: DbSession,
):
    result = submit_form_response(db, context, body.form_type, body.responses)
    if not result.success:
        response.status_code = status.HTTP_401_UNAUTHORIZED if context.user_id is None else status.HTTP_404_NOT_FOUND
    return FormSubmissionResponse(success=result.success, error=result.error)


@router.get("/admin/coaching-clients", response_model=list[CoachingClientOut], tags=["admin"])
def admin_list_clients(
    admin: Annotated[User, Depends(require_admin)],
    db: DbSession,
    status_filter: Optional[str] = Query(None, alias="status"),
):
    return [CoachingClientOut.model_validate(c) for c in list_coaching_clients(db, status_filter)]


@router.post("/admin/coaching-clients", response_model=EnrollmentResponse, tags=["admin"])
def admin_enroll(body: AdminEnrollRequest, admin: Annotated[User, Depends(require_admin)], db: DbSession):
    result = admin_enroll_client(
        db,
        body.email,
        body.first_name,
        body.last_name,
        body.coaching_type,
        actor_user_id=admin.id,
    )
    if not result.success:
        return EnrollmentResponse(success=False, error=result.error)
    return EnrollmentResponse(success=True, client=CoachingClientOut.model_validate(result.client))


@router.patch("/admin/coaching-clients/{client_id}/status", response_model=StatusUpdateResponse, tags=["admin"])
def admin_update_status(
    client_id: int,
    body: StatusUpdateRequest,
    response: Response,
    admin: Annotated[User, Depends(require_admin)],
    db: DbSession,
):
    try:
        result = set_client_status(
            db,
            client_id,
            body.status.value,
            enforce_transitions=get_settings().enforce_status_transitions,
            actor_user_id=admin.id,
        )
    except InvalidStatusTransition as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "INVALID_STATUS_TRANSITION", "from": exc.current, "to": exc.requested},
        ) from exc
    if result.error == DUPLICATE_ENROLLMENT_ERROR:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "DUPLICATE_ENROLLMENT", "message": result.error},
        )
    if not result.success:
        response.status_code = status.HTTP_404_NOT_FOUND
    return StatusUpdateResponse(success=result.success)
