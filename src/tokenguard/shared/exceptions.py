"""Exception hierarchy for TokenGuard.

Every exception carries a machine-readable ``error_code`` and an arbitrary
``context`` dict for structured logging.  The presentation layer maps these
exceptions to HTTP status codes via global exception handlers.

Provider failures and attestation mismatches never surface as errors on
the request path: adapters convert failures into "unavailable" evidence and
verification returns ``False``.
"""
from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class TokenGuardError(Exception):
    """Root exception for every TokenGuard failure.

    Attributes:
        message:    Human-readable description.
        error_code: Machine-readable code (e.g. ``"INPUT_VALIDATION_ERROR"``).
        context:    Arbitrary key-value context for structured logging.
    """

    def __init__(
        self,
        message: str = "TokenGuard error",
        error_code: str = "TOKENGUARD_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.context: dict[str, Any] = context or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the exception for API error responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Request / configuration exceptions
# ---------------------------------------------------------------------------

class InputValidationError(TokenGuardError):
    """Raised when a request is malformed (bad address, missing field)."""

    def __init__(self, message: str = "Invalid input", **kwargs: Any) -> None:
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "INPUT_VALIDATION_ERROR"),
            **kwargs,
        )


class ConfigurationError(TokenGuardError):
    """Raised when the service encounters an invalid or missing configuration."""

    def __init__(self, message: str = "Configuration error", **kwargs: Any) -> None:
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "CONFIGURATION_ERROR"),
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Provider exceptions
# ---------------------------------------------------------------------------

class ProviderUnavailableError(TokenGuardError):
    """Raised inside an adapter when its detector cannot deliver data.

    Never crosses the adapter boundary: ``fetch_raw`` converts it into an
    error raw result carrying the message and HTTP status.
    """

    def __init__(
        self,
        message: str = "Provider unavailable",
        *,
        provider_id: str = "",
        http_status: int = 0,
        **kwargs: Any,
    ) -> None:
        self.provider_id = provider_id
        self.http_status = http_status
        context = kwargs.pop("context", None) or {}
        context.setdefault("provider_id", provider_id)
        context.setdefault("http_status", http_status)
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", "PROVIDER_UNAVAILABLE"),
            context=context,
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "TokenGuardError",
    "InputValidationError",
    "ConfigurationError",
    "ProviderUnavailableError",
]
