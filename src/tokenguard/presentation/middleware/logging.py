"""Access logging middleware: one ``http_request`` event per request.

Routes may leave an audit summary on ``request.state.audit`` (the scan
router records chain, policy mode, decision and coverage; the verify router
records the verification outcome).  The summary is merged into the access
event so a single line tells what a scan or verification concluded.
"""
from __future__ import annotations

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger("tokenguard.access")


def access_fields(request: Request, status_code: int, duration_ms: float) -> dict[str, object]:
    """Fields of the ``http_request`` event for *request*."""
    fields: dict[str, object] = {
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "duration_ms": duration_ms,
    }
    request_id = getattr(request.state, "request_id", "")
    if request_id:
        fields["request_id"] = request_id
    audit = getattr(request.state, "audit", None)
    if isinstance(audit, dict):
        for key, value in audit.items():
            fields.setdefault(key, value)
    return fields


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emits the access event at error/warning/info depending on status."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],  # type: ignore[override]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        fields = access_fields(request, response.status_code, duration_ms)
        if response.status_code >= 500:
            logger.error("http_request", **fields)
        elif response.status_code >= 400:
            logger.warning("http_request", **fields)
        else:
            logger.info("http_request", **fields)
        return response
