"""Global exception handlers that map domain exceptions to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from catalog.errors import (
    DUPLICATE,
    EXECUTION_FAILED,
    NOT_FOUND,
    UNDO_FAILED,
    VALIDATION_FAILED,
    CommandError,
    DiscountCalculationError,
    DomainValidationError,
    NotFoundError,
)
from catalog.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

_COMMAND_STATUS = {
    NOT_FOUND: status.HTTP_404_NOT_FOUND,
    DUPLICATE: status.HTTP_409_CONFLICT,
    VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    EXECUTION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UNDO_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_response(status_code: int, detail: str, code: str) -> JSONResponse:
    """Return a standardized error response with detail and machine-readable code."""
    body = ErrorResponse(detail=detail, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        str(exc),
        VALIDATION_FAILED,
    )


def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(
        status.HTTP_404_NOT_FOUND,
        str(exc),
        NOT_FOUND,
    )


def command_error_handler(_request: Request, exc: CommandError) -> JSONResponse:
    status_code = _COMMAND_STATUS.get(exc.code, status.HTTP_422_UNPROCESSABLE_ENTITY)
    if status_code >= 500:
        # Internal detail stays in the log.
        logger.error("%s failed with %s: %s", exc.command_name, exc.code, exc.message)
        return _error_response(status_code, "The operation could not be completed", exc.code)
    return _error_response(status_code, exc.message, exc.code)


def discount_error_handler(
    _request: Request, exc: DiscountCalculationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc),
        exc.code,
    )


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(CommandError, command_error_handler)
    app.add_exception_handler(DiscountCalculationError, discount_error_handler)
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
