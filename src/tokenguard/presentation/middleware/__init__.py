"""Starlette middleware for request correlation and access logging."""
from __future__ import annotations

from tokenguard.presentation.middleware.logging import LoggingMiddleware
from tokenguard.presentation.middleware.request_id import RequestIdMiddleware

__all__ = ["LoggingMiddleware", "RequestIdMiddleware"]
