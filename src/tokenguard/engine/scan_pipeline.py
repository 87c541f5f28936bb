"""Scan pipeline: provider fan-out and response assembly.

:meth:`ScanPipeline.collect` runs every adapter that supports the requested
chain concurrently.  Each adapter call is isolated: a timeout or an
unexpected exception becomes an error raw result plus that adapter's own
``normalize()`` output, so one failing detector never fails the scan.

:meth:`ScanPipeline.run` then aggregates, evaluates policy, builds and
attests the bundle, and extracts GoPlus forensics.  Everything after
collection is synchronous and pure apart from logging.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Sequence, Union

import structlog
from pydantic import Field

from tokenguard.domain.entities.attestation import Attestation
from tokenguard.domain.entities.bundle import EvidenceBundle
from tokenguard.domain.entities.decision import PolicyDecision, PolicyMode
from tokenguard.domain.entities.evidence import (
    AggregatedEvidenceItem,
    NormalizedProviderEvidence,
    RawMetadata,
    RawProviderResult,
    ScanInput,
)
from tokenguard.engine.aggregator import aggregate
from tokenguard.engine.bundle_builder import build_bundle
from tokenguard.engine.policy import PolicyEngine
from tokenguard.evidence.attestor import Attestor
from tokenguard.forensics.goplus import GoPlusForensics, extract_goplus_forensics
from tokenguard.providers.base import DEFAULT_TIMEOUT_SECONDS, BaseProviderAdapter
from tokenguard.shared.models import WireModel, utc_now_iso

logger = structlog.get_logger(__name__)

SCHEMA_VERSION = "0.3"


# ---------------------------------------------------------------------------
# Provider outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProviderAvailable:
    raw: RawProviderResult
    normalized: NormalizedProviderEvidence

    @property
    def provider_id(self) -> str:
        return self.raw.provider_id


@dataclass(frozen=True)
class ProviderUnavailable:
    raw: RawProviderResult
    normalized: NormalizedProviderEvidence
    reason: str

    @property
    def provider_id(self) -> str:
        return self.raw.provider_id


ProviderOutcome = Union[ProviderAvailable, ProviderUnavailable]


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class ScanForensics(WireModel):
    goplus: GoPlusForensics | None = None


class ScanMetadata(WireModel):
    schema_version: str
    fetched_at: str
    providers_attempted: list[str] = Field(default_factory=list)
    providers_succeeded: list[str] = Field(default_factory=list)


class ScanResponse(WireModel):
    bundle: EvidenceBundle
    evidence: list[AggregatedEvidenceItem]
    raw: list[RawMetadata]
    policy: PolicyDecision
    attestation: Attestation
    forensics: ScanForensics | None = None
    metadata: ScanMetadata


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class ScanPipeline:
    """Runs one token scan end to end.

    The pipeline holds no per-request state; one instance serves every
    request for the lifetime of the app.
    """

    def __init__(
        self,
        adapters: Sequence[BaseProviderAdapter],
        attestor: Attestor,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        schema_version: str = SCHEMA_VERSION,
        policy_engine: PolicyEngine | None = None,
    ) -> None:
        self._adapters = list(adapters)
        self._attestor = attestor
        self._timeout = timeout
        self._schema_version = schema_version
        self._policy = policy_engine or PolicyEngine()

    @property
    def adapters(self) -> list[BaseProviderAdapter]:
        return list(self._adapters)

    def adapters_for(self, chain: str) -> list[BaseProviderAdapter]:
        return [a for a in self._adapters if a.supports(chain)]

    # -- collection ------------------------------------------------------------

    async def collect(self, scan_input: ScanInput) -> list[ProviderOutcome]:
        """Fan out to every supporting adapter; outcomes keep adapter order."""
        adapters = self.adapters_for(scan_input.chain)
        outcomes = await asyncio.gather(
            *(self._run_adapter(adapter, scan_input) for adapter in adapters)
        )
        return list(outcomes)

    async def _run_adapter(
        self,
        adapter: BaseProviderAdapter,
        scan_input: ScanInput,
    ) -> ProviderOutcome:
        try:
            raw = await asyncio.wait_for(adapter.fetch_raw(scan_input), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "provider_deadline_exceeded",
                provider_id=adapter.provider_id,
                timeout=self._timeout,
            )
            raw = adapter.error_result(
                _safe_url(adapter, scan_input),
                f"{adapter.name} API timeout after {int(self._timeout * 1000)}ms",
            )
        except Exception as exc:
            logger.exception("provider_fetch_crashed", provider_id=adapter.provider_id)
            raw = adapter.error_result(_safe_url(adapter, scan_input), str(exc) or type(exc).__name__)

        try:
            normalized = adapter.normalize(raw, scan_input)
        except Exception as exc:
            logger.exception("provider_normalize_crashed", provider_id=adapter.provider_id)
            normalized = adapter.unavailable(raw, f"Normalization failed: {exc}")

        if normalized.is_available:
            return ProviderAvailable(raw=raw, normalized=normalized)
        return ProviderUnavailable(raw=raw, normalized=normalized, reason=normalized.summary)

    # -- full scan ---------------------------------------------------------------

    async def run(
        self,
        scan_input: ScanInput,
        mode: PolicyMode = PolicyMode.STRICT,
    ) -> ScanResponse:
        """Collect, aggregate, decide, build, attest."""
        fetched_at = utc_now_iso()
        logger.info(
            "scan_started",
            token_address=scan_input.token_address,
            chain=scan_input.chain,
            mode=PolicyMode(mode).value,
        )

        outcomes = await self.collect(scan_input)
        total_enabled = len(outcomes)
        raw_results = [o.raw for o in outcomes]
        normalized = [o.normalized for o in outcomes]

        aggregated = aggregate(normalized, total_enabled)
        bundle = build_bundle(
            scan_input.token_address,
            scan_input.chain,
            normalized,
            aggregated,
            total_enabled,
        )
        policy = self._policy.evaluate(aggregated, normalized, total_enabled, mode)

        raw_metadata = [r.to_metadata() for r in raw_results]
        attestation = self._attestor.attest(bundle, raw_metadata, signed_at=fetched_at)

        forensics = None
        goplus_raw = next((r for r in raw_results if r.provider_id == "goplus"), None)
        if goplus_raw is not None:
            goplus = extract_goplus_forensics(goplus_raw, scan_input.token_address)
            if goplus is not None:
                forensics = ScanForensics(goplus=goplus)

        succeeded = [o.provider_id for o in outcomes if isinstance(o, ProviderAvailable)]
        logger.info(
            "scan_completed",
            token_address=scan_input.token_address,
            providers_succeeded=len(succeeded),
            providers_attempted=total_enabled,
            decision=policy.decision.value,
        )
        return ScanResponse(
            bundle=bundle,
            evidence=aggregated,
            raw=raw_metadata,
            policy=policy,
            attestation=attestation,
            forensics=forensics,
            metadata=ScanMetadata(
                schema_version=self._schema_version,
                fetched_at=fetched_at,
                providers_attempted=[o.provider_id for o in outcomes],
                providers_succeeded=succeeded,
            ),
        )


def _safe_url(adapter: BaseProviderAdapter, scan_input: ScanInput) -> str:
    try:
        return adapter.request_url(scan_input)
    except Exception:
        return ""
