"""Unit tests for the GoPlus forensics projection."""
from __future__ import annotations

import pytest

from tokenguard.forensics.goplus import extract_goplus_forensics
from tokenguard.providers.base import create_error_result, create_raw_result
from tokenguard.providers.goplus import is_lp_locked

TOKEN = "0x1111111111111111111111111111111111111111"


def _raw(record, provider_id="goplus"):
    return create_raw_result(
        provider_id, "GoPlus", "https://api.gopluslabs.io", "GET", 200,
        {"code": 1, "result": {TOKEN: record}},
    )


@pytest.fixture
def record() -> dict:
    return {
        "token_name": "Example",
        "token_symbol": "EXM",
        "decimals": "18",
        "total_supply": "1000000",
        "holder_count": "42",
        "holders": [
            {"address": "0xaaa", "balance": "600", "percent": "0.6"},
            {"address": "0xbbb", "balance": "100", "percent": "0.1"},
        ],
        "creator_address": "0xccc",
        "creator_percent": "0.05",
        "dex": [
            {"name": "UniswapV2", "pair": "0xp1", "liquidity": "250000"},
            {"name": "UniswapV3", "pair": "0xp2", "liquidity": "1750000"},
        ],
        "lp_holders": [
            {"address": "0xdead", "percent": "0.75", "is_locked": 1},
            {"address": "0xeee", "percent": "0.25", "is_locked": 0},
        ],
    }


class TestExtractGoPlusForensics:
    def test_projection(self, record):
        forensics = extract_goplus_forensics(_raw(record), TOKEN)
        assert forensics is not None
        assert forensics.token.symbol == "EXM"
        assert forensics.token.decimals == 18
        assert forensics.token.holder_count == 42
        assert forensics.holders.top10_percent == pytest.approx(0.7)
        assert forensics.creator_owner.creator_address == "0xccc"
        assert forensics.creator_owner.owner_address is None

    def test_pools_sorted_in_millions(self, record):
        pools = extract_goplus_forensics(_raw(record), TOKEN).dex_pools
        assert pools.total_liquidity_usd == pytest.approx(2.0)
        assert pools.pool_count == 2
        assert [p.pair_address for p in pools.top_pools] == ["0xp2", "0xp1"]
        assert pools.top_pools[0].liquidity_usd == pytest.approx(1.75)

    def test_locked_ratio_weighted_by_percent(self, record):
        locks = extract_goplus_forensics(_raw(record), TOKEN).lp_locks
        assert locks.lp_holder_count == 2
        assert locks.locked_ratio == pytest.approx(75.0)
        assert [lp.is_locked for lp in locks.top_lp_holders] == [True, False]

    def test_locked_ratio_by_count_without_percent(self, record):
        record["lp_holders"] = [{"is_locked": "1"}, {"is_locked": "0"}, {"is_locked": "0"}, {"is_locked": "1"}]
        locks = extract_goplus_forensics(_raw(record), TOKEN).lp_locks
        assert locks.locked_ratio == pytest.approx(50.0)

    def test_wire_shape(self, record):
        wire = extract_goplus_forensics(_raw(record), TOKEN).to_wire()
        assert set(wire) == {"token", "holders", "creatorOwner", "dexPools", "lpLocks"}
        assert "top10Percent" in wire["holders"]

    def test_not_goplus(self, record):
        assert extract_goplus_forensics(_raw(record, provider_id="honeypot"), TOKEN) is None

    def test_failed_result(self):
        raw = create_error_result("goplus", "GoPlus", "https://api.gopluslabs.io", "GET", "boom")
        assert extract_goplus_forensics(raw, TOKEN) is None

    def test_missing_token(self):
        raw = create_raw_result("goplus", "GoPlus", "u", "GET", 200, {"code": 1, "result": {}})
        assert extract_goplus_forensics(raw, TOKEN) is None


@pytest.mark.parametrize(
    ("holder", "locked"),
    [
        ({"is_locked": 1}, True),
        ({"is_locked": "1"}, True),
        ({"is_locked": 0}, False),
        ({"is_locked": "0"}, False),
        ({}, False),
        ("0xdead", False),
        (None, False),
    ],
)
def test_lp_lock_flag_shared_with_goplus_adapter(holder, locked):
    assert is_lp_locked(holder) is locked
