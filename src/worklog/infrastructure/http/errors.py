"""JSON error envelope and exception handlers for the HTTP API."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from worklog.application.dto.auth_models import ErrorBody, ErrorResponse
from worklog.domain.auth.errors import InvalidInputError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Handled API failure rendered as `{"success": false, "error": {...}}`."""

    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


def error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body, exclude_none=True),
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register handlers mapping API and validation errors to the envelope."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        logger.info(
            "api_error method=%s path=%s status=%d code=%s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.code,
        )
        return error_response(
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            details=exc.details,
        )

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        logger.warning(
            "invalid_input method=%s path=%s error=%s",
            request.method,
            request.url.path,
            exc,
        )
        return error_response(
            status_code=400,
            code="VALIDATION_ERROR",
            message="Invalid input",
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return error_response(
            status_code=400,
            code="VALIDATION_ERROR",
            message="Invalid request body",
            details=[
                {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
                for error in exc.errors()
            ],
        )
