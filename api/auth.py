from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from api.deps import get_db
from core.models import User
from core.services.sessions import SessionContext, current_user, resolve_session


bearer_scheme = HTTPBearer(auto_error=False)


def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> SessionContext:
    """Request-scoped session; anonymous when the bearer token is missing or no longer valid."""
    token = credentials.credentials if credentials is not None else None
    return resolve_session(db, token)


def require_user(
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
) -> User:
    user = current_user(db, context)
    if user is None:
        raise HTTPException(status_code=401, detail={"code": "AUTH_REQUIRED"})
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail={"code": "FORBIDDEN_ROLE", "required_roles": ["admin"]})
    return user
