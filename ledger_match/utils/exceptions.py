"""Common exception utilities for FastAPI routers."""

from typing import NoReturn

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from ledger_match.services.errors import (
    AlreadyLinkedError,
    ChildAlreadyLinkedError,
    LinkCapacityExceededError,
    MatchingError,
    NotFoundError,
    StoreError,
    ValidationError,
)

ERROR_STATUS_CODES: dict[type[MatchingError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AlreadyLinkedError: status.HTTP_409_CONFLICT,
    ChildAlreadyLinkedError: status.HTTP_409_CONFLICT,
    LinkCapacityExceededError: status.HTTP_409_CONFLICT,
    ValidationError: 422,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(exc: MatchingError) -> int:
    for error_type in type(exc).__mro__:
        code = ERROR_STATUS_CODES.get(error_type)
        if code is not None:
            return code
    return status.HTTP_400_BAD_REQUEST


def matching_error_response(exc: MatchingError) -> JSONResponse:
    """Render a service error as ``{"error": {kind, message, retryable}}``."""
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=status_code_for(exc),
        content={
            "error": {
                "kind": exc.kind,
                "message": exc.message,
                "retryable": exc.retryable,
            }
        },
        headers=headers,
    )


def raise_unauthorized(detail: str, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    ) from cause
