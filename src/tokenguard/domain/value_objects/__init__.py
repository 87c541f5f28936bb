"""Value objects for the TokenGuard domain layer.

Re-exports all public value objects so consumers can write::

    from tokenguard.domain.value_objects import Severity
"""
from __future__ import annotations

from tokenguard.domain.value_objects.severity import Severity

__all__: list[str] = [
    "Severity",
]
