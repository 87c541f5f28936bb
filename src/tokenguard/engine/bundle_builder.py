"""Bundle builder: renders aggregated evidence into display strings.

Deterministic and side-effect free: every category list is derived solely
from the aggregated evidence passed in, using fixed per-key templates.
"""
from __future__ import annotations

from typing import Sequence

from tokenguard.domain.entities.bundle import EvidenceBundle, ProviderSummary
from tokenguard.domain.entities.evidence import (
    AggregatedEvidenceItem,
    EvidenceCategory,
    NormalizedProviderEvidence,
)
from tokenguard.engine.policy import tax_value
from tokenguard.shared.parse import format_number


class _CategoryIndex:
    """Key lookup restricted to one category, preserving aggregator order."""

    def __init__(
        self,
        evidence: Sequence[AggregatedEvidenceItem],
        category: EvidenceCategory,
    ) -> None:
        self.items = [e for e in evidence if e.category == category]
        self._by_key = {e.key: e for e in self.items}

    def get(self, key: str) -> AggregatedEvidenceItem | None:
        return self._by_key.get(key)


def _contract_risk(
    index: _CategoryIndex,
    total_providers_enabled: int,
) -> list[str]:
    lines: list[str] = []

    if index.get("HONEYPOT_DETECTED"):
        lines.append("🚨 Honeypot detected - tokens cannot be sold")
    else:
        lines.append(
            "✅ Likely Not a Pixiu Token - No malicious code has been detected in this token."
        )

    if index.get("SELL_LIMIT_PRESENT"):
        lines.append(
            "⚠️ Sell limit present (cannot sell 100% at once) - "
            "Contract enforces max sell / max tx limit"
        )
    else:
        lines.append("✅ Full Sell-Off Possible - The token can be sold entirely.")

    if index.get("TRUST_LISTED"):
        lines.append(
            "✅ Trusted Token - The token is well-known and backed by reputable institutions."
        )

    proxy = index.get("PROXY_UPGRADEABLE")
    if proxy:
        lines.append(
            "⚠️ Proxy Contract Present - This contract uses an upgradeable proxy. "
            f"({proxy.support_count}/{total_providers_enabled} providers)"
        )

    if index.get("NOT_OPEN_SOURCE"):
        lines.append("⚠️ Non-Open-Source Contract - Code cannot be verified.")
    else:
        lines.append(
            "✅ Open-Source Contract - The token contract is open-source, allowing code review."
        )

    buy_tax = index.get("HIGH_BUY_TAX")
    sell_tax = index.get("HIGH_SELL_TAX")
    buy_value = tax_value(buy_tax) if buy_tax else 0.0
    sell_value = tax_value(sell_tax) if sell_tax else 0.0
    lines.append("📊 Tax Rates:")
    lines.append(f"   Buy Tax: {format_number(buy_value)}%")
    lines.append(f"   Sell Tax: {format_number(sell_value)}%")

    max_tax = max(buy_value, sell_value)
    if max_tax > 50:
        lines.append("⚠️ Warning: Tax rates above 50% may prevent trading.")
    elif max_tax > 10:
        lines.append("⚠️ Note: Tax rates above 10% are considered high.")
    else:
        lines.append("✅ Tax rates are within acceptable range.")

    if index.get("HAS_BLACKLIST"):
        lines.append(
            "⚠️ Blacklist Function Detected - Owner can block specific addresses from trading."
        )
    if index.get("IS_MINTABLE"):
        lines.append("⚠️ Token is Mintable - Supply can be increased by the owner.")

    lines.append("✅ No Gas Abuse Detected - No evidence indicates gas abuse in this contract.")
    return lines


def _liquidity(index: _CategoryIndex) -> list[str]:
    lines: list[str] = []

    total = index.get("TOTAL_LIQUIDITY_USD")
    if total:
        lines.append(f"💰 {total.title}")
        if total.detail:
            lines.append(f"   {total.detail}")

    locked = index.get("LP_LOCKED_PRESENT")
    unlocked = index.get("LP_UNLOCKED")
    if locked:
        lines.append(f"🔒 {locked.title}")
    elif unlocked:
        lines.append(f"⚠️ {unlocked.title} - All liquidity positions are unlocked")
    return lines


def _deployer(index: _CategoryIndex) -> list[str]:
    lines: list[str] = []

    creator = index.get("CREATOR_ADDRESS")
    if creator:
        lines.append(f"👤 {creator.title}")

    if index.get("PAST_HONEYPOT_CREATOR"):
        lines.append("🚨 High Risk: Creator has deployed honeypot tokens before")
    elif index.items:
        lines.append("✅ No previous honeypot tokens detected from this creator")
    return lines


def _behavioral(index: _CategoryIndex) -> list[str]:
    lines: list[str] = []

    holders = index.get("HOLDER_COUNT")
    if holders:
        lines.append(f"👥 {holders.title}")

    cex = index.get("CEX_LISTED")
    if cex:
        lines.append(f"🏦 {cex.title}")
        lines.append("   ✅ Token is listed on major centralized exchanges")
    else:
        lines.append("⚠️ Not listed on major CEX - Trading only on DEX")

    suspicious = index.get("SUSPICIOUS_TAX")
    if suspicious:
        lines.append(f"⚠️ {suspicious.title}")
    return lines


def summarize_provider(provider: NormalizedProviderEvidence) -> ProviderSummary:
    return ProviderSummary(
        provider_id=provider.provider_id,
        provider_name=provider.provider_name,
        verdict=provider.verdict,
        summary=provider.summary,
        flags=list(provider.flags),
        timestamp=provider.timestamp,
        available=provider.is_available,
    )


def build_bundle(
    token_address: str,
    chain: str,
    per_provider_evidence: Sequence[NormalizedProviderEvidence],
    aggregated: Sequence[AggregatedEvidenceItem],
    total_providers_enabled: int,
) -> EvidenceBundle:
    """Project aggregated evidence into the attested display bundle."""
    return EvidenceBundle(
        token_address=token_address,
        chain=chain,
        contract_risk=_contract_risk(
            _CategoryIndex(aggregated, EvidenceCategory.CONTRACT_RISK),
            total_providers_enabled,
        ),
        liquidity_evidence=_liquidity(
            _CategoryIndex(aggregated, EvidenceCategory.LIQUIDITY_EVIDENCE)
        ),
        deployer_reputation=_deployer(
            _CategoryIndex(aggregated, EvidenceCategory.DEPLOYER_REPUTATION)
        ),
        behavioral_signals=_behavioral(
            _CategoryIndex(aggregated, EvidenceCategory.BEHAVIORAL_SIGNALS)
        ),
        providers=[summarize_provider(p) for p in per_provider_evidence],
    )
