import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from classroom.core.errors import (
    AuthorizationError,
    DuplicateSubmissionError,
    NotAssignedError,
    NotFoundError,
    NotFoundOrUnauthorizedError,
    ServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    NotFoundOrUnauthorizedError: status.HTTP_404_NOT_FOUND,
    NotAssignedError: status.HTTP_403_FORBIDDEN,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    DuplicateSubmissionError: status.HTTP_409_CONFLICT,
}


def status_for(exc: ServiceError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        "%s %s refused: %s (%s)",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc.message,
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
