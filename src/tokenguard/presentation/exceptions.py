"""Global exception handlers: map TokenGuard exceptions to HTTP responses."""
from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tokenguard.shared.exceptions import (
    ConfigurationError,
    InputValidationError,
    TokenGuardError,
)
from tokenguard.shared.models import utc_now_iso

logger = structlog.get_logger(__name__)


def _error_response(
    request: Request,
    status: int,
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "details": details or [],
            "timestamp": utc_now_iso(),
        }
    }
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["error"]["request_id"] = request_id
    return JSONResponse(status_code=status, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(part) for part in error.get("loc", [])),
                "message": error.get("msg", ""),
            }
            for error in exc.errors()
        ]
        return _error_response(request, 422, "VALIDATION_ERROR", "Invalid request parameters", details)

    @app.exception_handler(InputValidationError)
    async def input_error_handler(request: Request, exc: InputValidationError) -> JSONResponse:
        details = [{"field": f, "message": "required"} for f in exc.context.get("missing", [])]
        return _error_response(request, 400, exc.error_code, exc.message, details)

    @app.exception_handler(ConfigurationError)
    async def config_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("configuration_error", error=exc.message, context=exc.context)
        return _error_response(request, 500, exc.error_code, "Service misconfigured")

    @app.exception_handler(TokenGuardError)
    async def tokenguard_error_handler(request: Request, exc: TokenGuardError) -> JSONResponse:
        logger.error("tokenguard_error", **exc.to_dict())
        return _error_response(request, 500, exc.error_code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", error=str(exc), type=type(exc).__name__)
        return _error_response(request, 500, "INTERNAL_ERROR", "An unexpected error occurred")
