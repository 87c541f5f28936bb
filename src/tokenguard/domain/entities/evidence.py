"""Evidence contract shared by every provider adapter and the core engines.

A provider adapter turns a detector-specific payload into
:class:`NormalizedProviderEvidence`, a list of :class:`EvidenceItem` keyed by
canonical, detector-independent identifiers.  The aggregator merges items
with the same ``key`` across providers into :class:`AggregatedEvidenceItem`
records carrying source attribution and support ratios.

All models are immutable and live for the duration of one scan request.
"""
from __future__ import annotations

import enum
from typing import Any, Literal

from pydantic import Field

from tokenguard.domain.value_objects.severity import Severity
from tokenguard.shared.models import WireModel
from tokenguard.shared.parse import as_float

# ---------------------------------------------------------------------------
# Reserved keys
# ---------------------------------------------------------------------------
PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
"""Sentinel flag marking a detector's non-response (coverage only)."""

Verdict = Literal["low", "medium", "high"]


class EvidenceCategory(str, enum.Enum):
    """Display bucket of an evidence item."""

    CONTRACT_RISK = "contractRisk"
    LIQUIDITY_EVIDENCE = "liquidityEvidence"
    DEPLOYER_REPUTATION = "deployerReputation"
    BEHAVIORAL_SIGNALS = "behavioralSignals"


class ScanInput(WireModel):
    """A validated scan target."""

    chain: str
    token_address: str


class EvidenceItem(WireModel):
    """One detector's atomic observation about a token.

    Attributes:
        category: Display bucket.  Providers must agree on the category for
            a given key; mismatches are not detected.
        key: Canonical consensus key (``HONEYPOT_DETECTED``,
            ``PROXY_UPGRADEABLE``...), the join key for cross-provider merges.
        severity: Totally ordered severity.
        title: Short human-readable statement.
        detail: Optional elaboration; a non-empty detail wins display
            precedence when merging.
        value: Optional numeric (or raw string) measurement, e.g. a tax
            percentage or a USD liquidity figure.
    """

    category: EvidenceCategory
    key: str = Field(min_length=1)
    severity: Severity
    title: str
    detail: str | None = None
    value: float | str | None = None

    def numeric_value(self, fallback: float = 0.0) -> float:
        """Return ``value`` as a float, or *fallback* when absent/non-numeric."""
        return as_float(self.value, fallback)  # type: ignore[return-value]


class EvidenceSource(WireModel):
    """Attribution of an aggregated item to one provider's raw response."""

    provider_id: str
    raw_sha256: str
    observed_at: str


class AggregatedEvidenceItem(EvidenceItem):
    """An evidence item merged across providers.

    Invariants (maintained by the aggregator):
        * ``support_count == len(sources)``
        * provider ids within ``sources`` are unique, ordered by first sighting
        * ``0 < support_ratio <= 1`` for aggregated output
    """

    sources: list[EvidenceSource] = Field(default_factory=list)
    support_count: int = Field(ge=0, default=0)
    support_ratio: float = Field(ge=0.0, le=1.0, default=0.0)


class NormalizedProviderEvidence(WireModel):
    """One provider's full normalized output for one scan."""

    provider_id: str
    provider_name: str
    verdict: Verdict
    summary: str
    flags: list[str] = Field(default_factory=list)
    timestamp: str
    evidence: list[EvidenceItem] = Field(default_factory=list)
    raw_sha256: str = ""

    @property
    def is_available(self) -> bool:
        """True when the provider answered with usable evidence."""
        return PROVIDER_UNAVAILABLE not in self.flags and len(self.evidence) > 0


class RawRequest(WireModel):
    url: str = ""
    method: Literal["GET", "POST"] = "GET"


class RawProviderResult(WireModel):
    """A provider's raw response plus its content hash.

    ``raw`` is the decoded payload (``None`` on failure); ``error`` carries
    the transport/classification failure message.  Only the
    :class:`RawMetadata` projection leaves the process.
    """

    provider_id: str
    provider_name: str
    fetched_at: str
    request: RawRequest = Field(default_factory=RawRequest)
    http_status: int = 0
    raw: Any = None
    raw_sha256: str = ""
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None or self.raw is None

    def to_metadata(self) -> RawMetadata:
        return RawMetadata(
            provider_id=self.provider_id,
            provider_name=self.provider_name,
            fetched_at=self.fetched_at,
            http_status=self.http_status,
            raw_sha256=self.raw_sha256,
        )


class RawMetadata(WireModel):
    """Minimal per-provider audit record included in the signed envelope."""

    provider_id: str
    provider_name: str
    fetched_at: str
    http_status: int
    raw_sha256: str
