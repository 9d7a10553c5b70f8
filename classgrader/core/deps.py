# /classgrader/core/deps.py

"""
FastAPI dependencies shared by every router.

Authentication itself happens upstream; by the time a request reaches this
service the caller's professor ID travels in the `X-Professor-Id` header.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from .errors import (
    AI_FAILURE_MESSAGE, GENERIC_FAILURE_MESSAGE,
    AIServiceError, ClassNotFoundError, ClassgraderError, DuplicateStudentError,
    MasterlistRejectedError, PreconditionError, StoreError,
)


def to_http_exception(error: ClassgraderError) -> HTTPException:
    """Translates a service-layer error into the HTTP error the client sees."""
    if isinstance(error, MasterlistRejectedError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error.reason)
    if isinstance(error, PreconditionError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, ClassNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, DuplicateStudentError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, AIServiceError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=AI_FAILURE_MESSAGE)
    if isinstance(error, StoreError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=GENERIC_FAILURE_MESSAGE)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=GENERIC_FAILURE_MESSAGE)


def require_professor_id(professor_id: Optional[str]) -> str:
    """Raises a PreconditionError when no authenticated professor is present."""
    if professor_id is None or not professor_id.strip():
        raise PreconditionError("You are not logged in.")
    return professor_id.strip()


def get_current_professor_id(x_professor_id: Optional[str] = Header(default=None)) -> str:
    """Resolves the authenticated professor for the current request."""
    try:
        return require_professor_id(x_professor_id)
    except PreconditionError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
