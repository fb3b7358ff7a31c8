"""Maps approval workflow errors onto HTTP responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from groupware.api.schemas.common import ErrorResponse
from groupware.core.approval import (
    ApprovalError,
    ConflictError,
    NotFoundError,
    OutOfOrderError,
    PermissionDeniedError,
    ValidationError,
)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    OutOfOrderError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
}


def status_for(exc: ApprovalError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


async def approval_error_handler(request: Request, exc: ApprovalError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content=ErrorResponse(error=exc.code, detail=exc.message).model_dump(),
    )
