"""Severity value object for token risk evidence.

Defines the totally ordered Severity enum shared by evidence items, the
aggregator (max-severity merge) and the policy engine (severity buckets).
"""
from __future__ import annotations

import enum

# ---------------------------------------------------------------------------
# Numeric weights: higher number means more severe
# ---------------------------------------------------------------------------
_SEVERITY_WEIGHTS: dict[str, int] = {
    "high": 3,
    "medium": 2,
    "low": 1,
    "info": 0,
}


class Severity(str, enum.Enum):
    """Ordered severity levels for evidence items.

    The ordering is HIGH > MEDIUM > LOW > INFO.  Comparison operators are
    supported so that ``Severity.HIGH >= Severity.MEDIUM`` evaluates to
    ``True``.
    """

    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    # -- rich comparison via numeric weight ----------------------------------

    @property
    def weight(self) -> int:
        """Return the numeric weight for this severity level."""
        return _SEVERITY_WEIGHTS[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.weight < other.weight

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.weight <= other.weight

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.weight > other.weight

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.weight >= other.weight

    # -- convenience ---------------------------------------------------------

    @classmethod
    def max(cls, current: Severity, incoming: Severity) -> Severity:
        """Return the more severe of two levels; ties keep *current*."""
        return incoming if incoming > current else current

    @classmethod
    def from_percentage(cls, percent: float) -> Severity:
        """Band a tax percentage: >50 high, >10 medium, otherwise low."""
        if percent > 50:
            return cls.HIGH
        if percent > 10:
            return cls.MEDIUM
        return cls.LOW
