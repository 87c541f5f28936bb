"""Policy engine: turns aggregated evidence into an allow/warn/block decision.

Evaluation is a strictly ordered rule sequence, not a state machine:

1. **Block** (both modes): any item keyed in :data:`BLOCK_KEYS` blocks and
   short-circuits everything else.
2. **Coverage**: the share of enabled providers that answered with usable
   evidence.
3. **Warn accumulation**, mode-specific (see :meth:`PolicyEngine._strict`
   and :meth:`PolicyEngine._degen`).
4. **Dedupe** by key, first occurrence wins; non-empty means warn.

The engine is total over well-formed aggregated evidence and never raises.
Unknown modes must be rejected by the caller.
"""
from __future__ import annotations

from typing import Sequence

import structlog

from tokenguard.domain.entities.decision import Decision, PolicyDecision, PolicyMode
from tokenguard.domain.entities.evidence import (
    AggregatedEvidenceItem,
    EvidenceCategory,
    NormalizedProviderEvidence,
)
from tokenguard.domain.value_objects.severity import Severity
from tokenguard.shared.parse import as_float

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Rule constants
# ---------------------------------------------------------------------------

BLOCK_KEYS: frozenset[str] = frozenset({"HONEYPOT_DETECTED"})

STRICT_SENSITIVE_KEYS: frozenset[str] = frozenset({
    "SELL_LIMIT_PRESENT",
    "PROXY_UPGRADEABLE",
    "LP_UNLOCKED",
    "HIGH_SELL_TAX",
    "HIGH_BUY_TAX",
    "TOP_HOLDERS_CONCENTRATED",
})

TRUST_KEYS: frozenset[str] = frozenset({"TRUST_LISTED", "CEX_LISTED"})
TAX_KEYS: frozenset[str] = frozenset({"HIGH_BUY_TAX", "HIGH_SELL_TAX"})

LOW_COVERAGE_KEY = "LOW_COVERAGE"

# Degen-mode thresholds.  Kept independent of the strict-mode severity bands.
DEGEN_TAX_THRESHOLD = 30
DEGEN_HOLDER_CONCENTRATION_THRESHOLD = 70
HUGE_LIQUIDITY_USD = 10_000_000


class PolicyEngine:
    """Evaluates aggregated evidence under a strict or degen rule set.

    Usage::

        engine = PolicyEngine()
        decision = engine.evaluate(aggregated, per_provider, 2, PolicyMode.STRICT)
    """

    def evaluate(
        self,
        evidence: Sequence[AggregatedEvidenceItem],
        per_provider_evidence: Sequence[NormalizedProviderEvidence],
        total_providers_enabled: int,
        mode: PolicyMode = PolicyMode.STRICT,
    ) -> PolicyDecision:
        """Classify *evidence* as allow, warn or block.

        Args:
            evidence: Aggregator output.
            per_provider_evidence: Every provider's normalized output,
                including unavailable ones, for coverage accounting.
            total_providers_enabled: Number of adapters that were asked to
                scan (the caller guarantees at least one).
            mode: Rule set to apply.

        Returns:
            A :class:`PolicyDecision` whose reasons justify the decision.
        """
        mode = PolicyMode(mode)
        available = sum(1 for p in per_provider_evidence if p.is_available)
        coverage_ratio = (
            available / total_providers_enabled if total_providers_enabled >= 1 else 0.0
        )

        block_items = [e for e in evidence if e.key in BLOCK_KEYS]
        if block_items:
            logger.info(
                "policy_blocked",
                mode=mode.value,
                keys=[e.key for e in block_items],
            )
            return PolicyDecision(
                mode=mode,
                decision=Decision.BLOCK,
                reasons=block_items,
                coverage_ratio=coverage_ratio,
            )

        if mode is PolicyMode.STRICT:
            warn_items = self._strict(
                evidence, available, total_providers_enabled, coverage_ratio
            )
        else:
            warn_items = self._degen(evidence)

        reasons = _dedupe_by_key(warn_items)
        decision = Decision.WARN if reasons else Decision.ALLOW

        logger.info(
            "policy_evaluated",
            mode=mode.value,
            decision=decision.value,
            reasons=[r.key for r in reasons],
            coverage_ratio=round(coverage_ratio, 4),
        )
        return PolicyDecision(
            mode=mode,
            decision=decision,
            reasons=reasons,
            coverage_ratio=coverage_ratio,
        )

    # -- mode rule sets -----------------------------------------------------

    def _strict(
        self,
        evidence: Sequence[AggregatedEvidenceItem],
        available: int,
        total_providers_enabled: int,
        coverage_ratio: float,
    ) -> list[AggregatedEvidenceItem]:
        """Conservative rules: medium items, sensitive keys, low coverage."""
        warn_items = [e for e in evidence if e.severity is Severity.MEDIUM]
        warn_items.extend(
            e
            for e in evidence
            if e.key in STRICT_SENSITIVE_KEYS and e.severity is not Severity.INFO
        )
        if coverage_ratio < 1.0:
            warn_items.append(_low_coverage_item(available, total_providers_enabled))
        return warn_items

    def _degen(
        self,
        evidence: Sequence[AggregatedEvidenceItem],
    ) -> list[AggregatedEvidenceItem]:
        """Risk-tolerant rules: high items plus explicit numeric thresholds."""
        by_key = {e.key: e for e in evidence}
        is_trusted = any(key in by_key for key in TRUST_KEYS)
        liquidity = by_key.get("TOTAL_LIQUIDITY_USD")
        has_huge_liquidity = (
            liquidity is not None and liquidity.numeric_value() > HUGE_LIQUIDITY_USD
        )

        warn_items = [
            e for e in evidence
            if e.severity is Severity.HIGH and e.key not in BLOCK_KEYS
        ]

        lp_unlocked = by_key.get("LP_UNLOCKED")
        proxy = by_key.get("PROXY_UPGRADEABLE")
        if is_trusted:
            # Trusted tokens: medium proxy and unlocked LP are downgraded by omission.
            if proxy is not None or lp_unlocked is not None:
                logger.debug(
                    "degen_trusted_downgrade",
                    proxy=proxy is not None,
                    lp_unlocked=lp_unlocked is not None,
                    huge_liquidity=has_huge_liquidity,
                )
        else:
            if lp_unlocked is not None:
                warn_items.append(lp_unlocked)

        warn_items.extend(
            e for e in evidence
            if e.key in TAX_KEYS and tax_value(e) > DEGEN_TAX_THRESHOLD
        )

        concentration = by_key.get("TOP_HOLDERS_CONCENTRATED")
        if (
            concentration is not None
            and concentration.numeric_value() > DEGEN_HOLDER_CONCENTRATION_THRESHOLD
        ):
            warn_items.append(concentration)

        if not is_trusted and proxy is not None and proxy.severity is Severity.HIGH:
            warn_items.append(proxy)

        return warn_items


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def tax_value(item: AggregatedEvidenceItem) -> float:
    """Tax percentage from ``value``, else digits parsed from the title."""
    if item.value not in (None, "", 0):
        return item.numeric_value()
    digits = "".join(ch for ch in item.title if ch.isdigit() or ch == ".")
    return as_float(digits, 0.0)  # type: ignore[return-value]


def _low_coverage_item(available: int, total: int) -> AggregatedEvidenceItem:
    return AggregatedEvidenceItem(
        category=EvidenceCategory.CONTRACT_RISK,
        key=LOW_COVERAGE_KEY,
        severity=Severity.MEDIUM,
        title=f"Only {available}/{total} providers responded",
        detail="Some providers are unavailable - reduced confidence",
        sources=[],
        support_count=0,
        support_ratio=0.0,
    )


def _dedupe_by_key(
    items: Sequence[AggregatedEvidenceItem],
) -> list[AggregatedEvidenceItem]:
    seen: dict[str, AggregatedEvidenceItem] = {}
    for item in items:
        seen.setdefault(item.key, item)
    return list(seen.values())


def evaluate_policy(
    evidence: Sequence[AggregatedEvidenceItem],
    per_provider_evidence: Sequence[NormalizedProviderEvidence],
    total_providers_enabled: int,
    mode: PolicyMode = PolicyMode.STRICT,
) -> PolicyDecision:
    """Module-level shortcut for :meth:`PolicyEngine.evaluate`."""
    return PolicyEngine().evaluate(
        evidence, per_provider_evidence, total_providers_enabled, mode
    )
