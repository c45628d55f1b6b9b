import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from api.auth import get_session_context, require_user
from api.deps import DbSession
from api.ratelimit import limiter, login_rate_limit
from api.schemas import (
    AcceptTermsRequest,
    AcceptTermsResponse,
    LoginRequest,
    LoginResponse,
    SessionResponse,
    SignupRequest,
    SimpleStatusResponse,
    UserOut,
)
from core.config import get_settings
from core.models import User
from core.services import sessions
from core.services.enrollment import create_user, get_user_by_email, record_acceptance
from core.services.my_plan import NOT_AUTHENTICATED
from core.services.sessions import SessionContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")

_LOGIN_ERROR_STATUS = {
    sessions.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    sessions.TERMS_REQUIRED: status.HTTP_403_FORBIDDEN,
}


@router.get("/health", response_model=SimpleStatusResponse, tags=["health"])
def health():
    return SimpleStatusResponse(status="ok")


@router.post("/login", response_model=LoginResponse, tags=["auth"])
@limiter.limit(login_rate_limit)
def login(request: Request, response: Response, body: LoginRequest, db: DbSession):
    result = sessions.login(
        db,
        body.email,
        body.password,
        accept_terms=body.terms_accepted,
        accept_disclaimer=body.disclaimer_accepted,
    )
    if not result.success:
        response.status_code = _LOGIN_ERROR_STATUS.get(result.error, status.HTTP_401_UNAUTHORIZED)
        return LoginResponse(success=False, error=result.error)
    return LoginResponse(success=True, user=UserOut.model_validate(result.user), token=result.token)


@router.post("/logout", response_model=LoginResponse, tags=["auth"])
def logout(context: Annotated[SessionContext, Depends(get_session_context)], db: DbSession):
    sessions.logout(db, context)
    return LoginResponse(success=True)


@router.get("/session", response_model=SessionResponse, tags=["auth"])
def current_session(context: Annotated[SessionContext, Depends(get_session_context)], db: DbSession):
    user = sessions.current_user(db, context)
    if user is None:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"message": NOT_AUTHENTICATED})
    return SessionResponse(user=UserOut.model_validate(user))


@router.post("/session/expire", response_model=LoginResponse, tags=["auth"])
def expire_current_session(context: Annotated[SessionContext, Depends(get_session_context)], db: DbSession):
    if not get_settings().allow_session_expiry_endpoint:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    sessions.expire_session(db, context)
    return LoginResponse(success=True)


@router.post("/signup", response_model=UserOut, status_code=201, tags=["auth"])
def signup(body: SignupRequest, db: DbSession):
    if get_user_by_email(db, body.email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail={"code": "EMAIL_IN_USE"})
    user = create_user(
        db,
        body.email,
        body.first_name,
        body.last_name,
        body.password,
        terms_accepted=body.terms_accepted,
        disclaimer_accepted=body.disclaimer_accepted,
    )
    return UserOut.model_validate(user)


@router.post("/accept-terms", response_model=AcceptTermsResponse, tags=["auth"])
def accept_terms(body: AcceptTermsRequest, user: Annotated[User, Depends(require_user)], db: DbSession):
    if record_acceptance(user, terms=body.terms_accepted, disclaimer=body.disclaimer_accepted):
        db.flush()
        logger.info("terms_accepted", extra={"user_id": user.id})
    return AcceptTermsResponse(success=True, user=UserOut.model_validate(user))
