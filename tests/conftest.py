"""Shared fixtures for TokenGuard tests."""
from __future__ import annotations

from typing import Any, Callable

import pytest

from tokenguard.config import Settings
from tokenguard.domain.entities.evidence import (
    AggregatedEvidenceItem,
    EvidenceCategory,
    EvidenceItem,
    EvidenceSource,
    NormalizedProviderEvidence,
    ScanInput,
)
from tokenguard.evidence.attestor import Attestor

TOKEN = "0x1111111111111111111111111111111111111111"
OBSERVED_AT = "2024-01-15T09:23:01.123Z"


@pytest.fixture
def scan_input() -> ScanInput:
    return ScanInput(chain="ethereum", token_address=TOKEN)


@pytest.fixture
def make_item() -> Callable[..., EvidenceItem]:
    def _make(
        key: str,
        severity: str = "medium",
        category: EvidenceCategory = EvidenceCategory.CONTRACT_RISK,
        title: str | None = None,
        detail: str | None = None,
        value: Any = None,
    ) -> EvidenceItem:
        return EvidenceItem(
            category=category,
            key=key,
            severity=severity,
            title=title or key.replace("_", " ").lower(),
            detail=detail,
            value=value,
        )
    return _make


@pytest.fixture
def make_provider() -> Callable[..., NormalizedProviderEvidence]:
    def _make(
        provider_id: str,
        items: list[EvidenceItem],
        *,
        flags: list[str] | None = None,
        verdict: str = "low",
    ) -> NormalizedProviderEvidence:
        return NormalizedProviderEvidence(
            provider_id=provider_id,
            provider_name=provider_id.title(),
            verdict=verdict,
            summary=f"{provider_id} summary",
            flags=flags or [],
            timestamp=OBSERVED_AT,
            evidence=items,
            raw_sha256=f"sha-{provider_id}",
        )
    return _make


@pytest.fixture
def make_aggregated() -> Callable[..., AggregatedEvidenceItem]:
    def _make(
        key: str,
        severity: str = "medium",
        category: EvidenceCategory = EvidenceCategory.CONTRACT_RISK,
        title: str | None = None,
        detail: str | None = None,
        value: Any = None,
        providers: tuple[str, ...] = ("goplus",),
        total: int = 2,
    ) -> AggregatedEvidenceItem:
        sources = [
            EvidenceSource(provider_id=p, raw_sha256=f"sha-{p}", observed_at=OBSERVED_AT)
            for p in providers
        ]
        return AggregatedEvidenceItem(
            category=category,
            key=key,
            severity=severity,
            title=title or key.replace("_", " ").lower(),
            detail=detail,
            value=value,
            sources=sources,
            support_count=len(sources),
            support_ratio=min(1.0, len(sources) / total),
        )
    return _make


@pytest.fixture
def attestor() -> Attestor:
    return Attestor("test-signing-secret", "test-key-1")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        signing_key="test-signing-secret",
        signing_key_id="test-key-1",
        enabled_providers=["goplus", "honeypot", "proxy_slot"],
        ethereum_rpc_url="https://rpc.test.invalid",
        provider_timeout_seconds=2.0,
    )
