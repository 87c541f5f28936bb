"""Unit tests for the strict/degen policy engine."""
from __future__ import annotations

import pytest

from tokenguard.domain.entities.decision import Decision, PolicyMode
from tokenguard.domain.entities.evidence import PROVIDER_UNAVAILABLE, EvidenceCategory
from tokenguard.engine.aggregator import aggregate
from tokenguard.engine.policy import LOW_COVERAGE_KEY, PolicyEngine, evaluate_policy, tax_value


@pytest.fixture
def engine() -> PolicyEngine:
    return PolicyEngine()


@pytest.fixture
def full_coverage(make_item, make_provider):
    return [
        make_provider("goplus", [make_item("NOT_HONEYPOT", "info")]),
        make_provider("honeypot", [make_item("NOT_HONEYPOT", "info")]),
    ]


class TestBlock:
    @pytest.mark.parametrize("mode", list(PolicyMode))
    def test_honeypot_blocks_in_both_modes(self, engine, make_aggregated, full_coverage, mode):
        evidence = [
            make_aggregated("TRUST_LISTED", "info"),
            make_aggregated("HONEYPOT_DETECTED", "high"),
            make_aggregated("IS_MINTABLE", "medium"),
        ]
        decision = engine.evaluate(evidence, full_coverage, 2, mode)
        assert decision.decision is Decision.BLOCK
        assert decision.reason_keys == ["HONEYPOT_DETECTED"]
        assert decision.mode is mode


class TestStrict:
    def test_allow_when_clean(self, engine, make_aggregated, full_coverage):
        decision = engine.evaluate([make_aggregated("NOT_HONEYPOT", "info")], full_coverage, 2)
        assert decision.decision is Decision.ALLOW
        assert decision.reasons == []
        assert decision.coverage_ratio == 1.0

    def test_medium_items_warn(self, engine, make_aggregated, full_coverage):
        decision = engine.evaluate([make_aggregated("IS_MINTABLE", "medium")], full_coverage, 2)
        assert decision.decision is Decision.WARN
        assert decision.reason_keys == ["IS_MINTABLE"]

    def test_sensitive_low_item_warns(self, engine, make_aggregated, full_coverage):
        decision = engine.evaluate([make_aggregated("HIGH_BUY_TAX", "low")], full_coverage, 2)
        assert decision.reason_keys == ["HIGH_BUY_TAX"]

    def test_sensitive_info_item_ignored(self, engine, make_aggregated, full_coverage):
        decision = engine.evaluate([make_aggregated("PROXY_UPGRADEABLE", "info")], full_coverage, 2)
        assert decision.decision is Decision.ALLOW

    def test_reasons_deduplicated(self, engine, make_aggregated, full_coverage):
        decision = engine.evaluate([make_aggregated("LP_UNLOCKED", "medium")], full_coverage, 2)
        assert decision.reason_keys == ["LP_UNLOCKED"]

    def test_low_coverage(self, engine, make_aggregated, make_item, make_provider):
        per_provider = [
            make_provider("goplus", [make_item("NOT_HONEYPOT", "info")]),
            make_provider("honeypot", [], flags=[PROVIDER_UNAVAILABLE]),
        ]
        decision = engine.evaluate([make_aggregated("NOT_HONEYPOT", "info")], per_provider, 2)
        assert decision.decision is Decision.WARN
        assert decision.reason_keys == [LOW_COVERAGE_KEY]
        assert decision.reasons[0].title == "Only 1/2 providers responded"
        assert decision.coverage_ratio == 0.5


class TestDegen:
    def test_trusted_medium_proxy_omitted(self, engine, make_aggregated, full_coverage):
        evidence = [
            make_aggregated("PROXY_UPGRADEABLE", "medium"),
            make_aggregated("TRUST_LISTED", "info"),
        ]
        degen = engine.evaluate(evidence, full_coverage, 2, PolicyMode.DEGEN)
        strict = engine.evaluate(evidence, full_coverage, 2, PolicyMode.STRICT)
        assert "PROXY_UPGRADEABLE" not in degen.reason_keys
        assert degen.decision is Decision.ALLOW
        assert "PROXY_UPGRADEABLE" in strict.reason_keys

    def test_cex_listing_counts_as_trust(self, engine, make_aggregated, full_coverage):
        evidence = [
            make_aggregated("PROXY_UPGRADEABLE", "medium"),
            make_aggregated("LP_UNLOCKED", "medium", category=EvidenceCategory.LIQUIDITY_EVIDENCE),
            make_aggregated("CEX_LISTED", "info", category=EvidenceCategory.BEHAVIORAL_SIGNALS),
        ]
        decision = engine.evaluate(evidence, full_coverage, 2, PolicyMode.DEGEN)
        assert decision.decision is Decision.ALLOW

    def test_untrusted_lp_unlocked_warns(self, engine, make_aggregated, full_coverage):
        evidence = [
            make_aggregated("LP_UNLOCKED", "medium", category=EvidenceCategory.LIQUIDITY_EVIDENCE),
            make_aggregated("PROXY_UPGRADEABLE", "medium"),
        ]
        decision = engine.evaluate(evidence, full_coverage, 2, PolicyMode.DEGEN)
        assert decision.reason_keys == ["LP_UNLOCKED"]

    def test_untrusted_high_proxy_warns(self, engine, make_aggregated, full_coverage):
        decision = engine.evaluate(
            [make_aggregated("PROXY_UPGRADEABLE", "high")], full_coverage, 2, PolicyMode.DEGEN
        )
        assert decision.reason_keys == ["PROXY_UPGRADEABLE"]

    def test_high_items_warn(self, engine, make_aggregated, full_coverage):
        decision = engine.evaluate(
            [make_aggregated("HAS_BLACKLIST", "high"), make_aggregated("IS_MINTABLE", "medium")],
            full_coverage,
            2,
            PolicyMode.DEGEN,
        )
        assert decision.reason_keys == ["HAS_BLACKLIST"]

    @pytest.mark.parametrize(
        ("title", "value", "warns"),
        [
            ("Sell tax: 31%", None, True),
            ("Sell tax: 30%", None, False),
            ("Sell tax", 45.0, True),
            ("Sell tax: 90%", 12.0, False),
        ],
    )
    def test_tax_threshold(self, engine, make_aggregated, full_coverage, title, value, warns):
        item = make_aggregated("HIGH_SELL_TAX", "medium", title=title, value=value)
        decision = engine.evaluate([item], full_coverage, 2, PolicyMode.DEGEN)
        assert ("HIGH_SELL_TAX" in decision.reason_keys) is warns

    @pytest.mark.parametrize(("value", "warns"), [(71, True), (70, False), (None, False)])
    def test_holder_concentration_threshold(self, engine, make_aggregated, full_coverage, value, warns):
        item = make_aggregated(
            "TOP_HOLDERS_CONCENTRATED", "medium",
            category=EvidenceCategory.BEHAVIORAL_SIGNALS, value=value,
        )
        decision = engine.evaluate([item], full_coverage, 2, PolicyMode.DEGEN)
        assert (decision.decision is Decision.WARN) is warns

    def test_degen_ignores_coverage(self, engine, make_provider):
        per_provider = [
            make_provider("goplus", [], flags=[PROVIDER_UNAVAILABLE]),
            make_provider("honeypot", [], flags=[PROVIDER_UNAVAILABLE]),
        ]
        decision = engine.evaluate([], per_provider, 2, PolicyMode.DEGEN)
        assert decision.decision is Decision.ALLOW
        assert decision.coverage_ratio == 0.0


class TestScenarios:
    def test_sell_tax_fifteen_percent(self, make_item, make_provider):
        per_provider = [
            make_provider("a", [make_item("HIGH_SELL_TAX", "medium", title="Sell tax: 15%")]),
            make_provider("b", [make_item("HIGH_SELL_TAX", "low", title="Sell tax: 15%")]),
        ]
        evidence = aggregate(per_provider, 2)

        strict = evaluate_policy(evidence, per_provider, 2, PolicyMode.STRICT)
        degen = evaluate_policy(evidence, per_provider, 2, PolicyMode.DEGEN)

        assert strict.decision is Decision.WARN
        assert strict.reason_keys == ["HIGH_SELL_TAX"]
        assert degen.decision is Decision.ALLOW

    def test_zero_providers_respond(self, make_provider):
        per_provider = [
            make_provider("goplus", [], flags=[PROVIDER_UNAVAILABLE]),
            make_provider("honeypot", [], flags=[PROVIDER_UNAVAILABLE]),
        ]
        evidence = aggregate(per_provider, 2)

        strict = evaluate_policy(evidence, per_provider, 2, "strict")
        degen = evaluate_policy(evidence, per_provider, 2, "degen")

        assert evidence == []
        assert strict.decision is Decision.WARN
        assert strict.reason_keys == [LOW_COVERAGE_KEY]
        assert strict.coverage_ratio == 0.0
        assert degen.decision is Decision.ALLOW


class TestTaxValue:
    def test_prefers_numeric_value(self, make_aggregated):
        assert tax_value(make_aggregated("HIGH_BUY_TAX", value=12.5, title="Buy tax: 99%")) == 12.5

    def test_falls_back_to_title_digits(self, make_aggregated):
        assert tax_value(make_aggregated("HIGH_BUY_TAX", title="Buy tax: 12.5%")) == 12.5

    def test_zero_value_uses_title(self, make_aggregated):
        assert tax_value(make_aggregated("HIGH_BUY_TAX", value=0, title="Buy tax: 4%")) == 4.0
