"""Base Pydantic v2 models shared across all TokenGuard layers.

Every wire type serialises with camelCase aliases (``tokenAddress``,
``rawSha256``) so the JSON contract stays stable, while Python code keeps
snake_case attribute names.  Either spelling is accepted on input.
"""
from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable base model with camelCase JSON aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        """Return the JSON-compatible camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)


def utc_now_iso() -> str:
    """Return the current UTC time as ``2024-01-15T09:23:01.123Z``."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )
