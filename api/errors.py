"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import (
    BatchTooLargeError,
    CsvFormatError,
    LeadAccessDeniedError,
    LeadConflictError,
    LeadNotFoundError,
    LeadValidationError,
    StaleLeadError,
    StorageFailureError,
)

logger = logging.getLogger(__name__)

# Domain exception -> (HTTP status, error code)
_LEAD_ERRORS = {
    LeadNotFoundError: (404, ErrorCodes.NOT_FOUND),
    LeadAccessDeniedError: (403, ErrorCodes.FORBIDDEN),
    StaleLeadError: (409, ErrorCodes.STALE_RECORD),
    LeadConflictError: (409, ErrorCodes.ALREADY_EXISTS),
    BatchTooLargeError: (413, ErrorCodes.BATCH_TOO_LARGE),
    CsvFormatError: (400, ErrorCodes.INVALID_CSV),
    StorageFailureError: (503, ErrorCodes.SERVICE_UNAVAILABLE),
}


def _json_error(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, details).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(LeadValidationError)
    async def lead_validation_handler(request: Request, exc: LeadValidationError):
        return _json_error(
            422,
            ErrorCodes.VALIDATION_ERROR,
            "Lead has invalid fields",
            [error.model_dump(mode="json", exclude_none=True) for error in exc.errors],
        )

    for exc_class, (status_code, code) in _LEAD_ERRORS.items():

        def make_handler(status_code=status_code, code=code):
            async def handler(request: Request, exc: Exception):
                return _json_error(status_code, code, str(exc))
            return handler

        app.add_exception_handler(exc_class, make_handler())

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _json_error(404, ErrorCodes.NOT_FOUND, message)
        return _json_error(400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _json_error(422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json_error(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
