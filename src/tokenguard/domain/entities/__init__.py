"""Domain entities for TokenGuard.

Re-exports the evidence contract, policy, bundle and attestation types so
consumers can write::

    from tokenguard.domain.entities import EvidenceItem, PolicyDecision
"""
from __future__ import annotations

from tokenguard.domain.entities.attestation import Attestation, BundleVerification
from tokenguard.domain.entities.bundle import EvidenceBundle, ProviderSummary
from tokenguard.domain.entities.decision import Decision, PolicyDecision, PolicyMode
from tokenguard.domain.entities.evidence import (
    PROVIDER_UNAVAILABLE,
    AggregatedEvidenceItem,
    EvidenceCategory,
    EvidenceItem,
    EvidenceSource,
    NormalizedProviderEvidence,
    RawMetadata,
    RawProviderResult,
    RawRequest,
    ScanInput,
    Verdict,
)

__all__: list[str] = [
    "PROVIDER_UNAVAILABLE",
    "AggregatedEvidenceItem",
    "Attestation",
    "BundleVerification",
    "Decision",
    "EvidenceBundle",
    "EvidenceCategory",
    "EvidenceItem",
    "EvidenceSource",
    "NormalizedProviderEvidence",
    "PolicyDecision",
    "PolicyMode",
    "ProviderSummary",
    "RawMetadata",
    "RawProviderResult",
    "RawRequest",
    "ScanInput",
    "Verdict",
]
