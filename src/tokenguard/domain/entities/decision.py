"""Policy decision entity produced by the policy engine."""
from __future__ import annotations

import enum

from pydantic import Field

from tokenguard.domain.entities.evidence import AggregatedEvidenceItem
from tokenguard.shared.models import WireModel


class PolicyMode(str, enum.Enum):
    """Named rule sets controlling which evidence triggers a warning."""

    STRICT = "strict"
    DEGEN = "degen"


class Decision(str, enum.Enum):
    """Terminal classification of one policy evaluation."""

    ALLOW = "allow"
    WARN = "warn"
    BLOCK = "block"


class PolicyDecision(WireModel):
    """Outcome of evaluating aggregated evidence under a policy mode.

    Attributes:
        mode: The rule set that was applied.
        decision: ``allow`` / ``warn`` / ``block``.
        reasons: The aggregated items that justified a non-allow decision,
            deduplicated by key (first occurrence wins).  Empty on allow.
        coverage_ratio: Share of enabled providers that returned usable
            evidence for this scan.
    """

    mode: PolicyMode
    decision: Decision
    reasons: list[AggregatedEvidenceItem] = Field(default_factory=list)
    coverage_ratio: float = Field(ge=0.0, default=0.0)

    @property
    def reason_keys(self) -> list[str]:
        return [r.key for r in self.reasons]
