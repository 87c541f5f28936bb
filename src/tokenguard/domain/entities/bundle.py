"""Human-readable evidence bundle: the view model that gets attested."""
from __future__ import annotations

from pydantic import Field

from tokenguard.domain.entities.evidence import Verdict
from tokenguard.shared.models import WireModel


class ProviderSummary(WireModel):
    """Per-provider display record."""

    provider_id: str
    provider_name: str
    verdict: Verdict
    summary: str
    flags: list[str] = Field(default_factory=list)
    timestamp: str
    available: bool


class EvidenceBundle(WireModel):
    """Category-grouped display strings plus provider summaries.

    Every category list is derivable solely from the aggregated evidence
    that was passed to the bundle builder.
    """

    token_address: str
    chain: str
    contract_risk: list[str] = Field(default_factory=list)
    liquidity_evidence: list[str] = Field(default_factory=list)
    deployer_reputation: list[str] = Field(default_factory=list)
    behavioral_signals: list[str] = Field(default_factory=list)
    providers: list[ProviderSummary] = Field(default_factory=list)
