"""Request-scoped database access for the route modules."""

from collections.abc import Iterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.db import session_scope


def get_db() -> Iterator[Session]:
    """One unit of work per request: committed when the route returns, rolled back when it raises."""
    with session_scope() as session:
        yield session


DbSession = Annotated[Session, Depends(get_db)]
