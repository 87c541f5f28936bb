"""GoPlus forensics: structured token, holder and liquidity detail.

Unlike the evidence items produced by the GoPlus adapter, forensics are not
aggregated, policed or attested.  They are a display-only projection of the
same raw payload.  Liquidity figures are reported in millions of USD.
"""
from __future__ import annotations

from typing import Any

from pydantic import Field

from tokenguard.domain.entities.evidence import RawProviderResult
from tokenguard.providers.goplus import is_lp_locked, token_record
from tokenguard.shared.models import WireModel
from tokenguard.shared.parse import as_float, as_integer, as_list, as_string

TOP_HOLDERS = 10
TOP_POOLS = 5
TOP_LP_HOLDERS = 10


class TokenInfo(WireModel):
    address: str
    name: str | None = None
    symbol: str | None = None
    decimals: int | None = None
    total_supply: str | None = None
    holder_count: int | None = None


class Holder(WireModel):
    address: str = ""
    balance: str | None = None
    percent: float | None = None


class HolderDistribution(WireModel):
    top_holders: list[Holder] = Field(default_factory=list)
    top10_percent: float | None = None


class CreatorOwner(WireModel):
    creator_address: str | None = None
    creator_balance: str | None = None
    creator_percent: float | None = None
    owner_address: str | None = None
    owner_balance: str | None = None
    owner_percent: float | None = None


class DexPool(WireModel):
    dex_name: str | None = None
    pair_address: str | None = None
    liquidity_usd: float | None = None


class DexPools(WireModel):
    total_liquidity_usd: float | None = None
    pool_count: int | None = None
    top_pools: list[DexPool] = Field(default_factory=list)


class LpHolder(WireModel):
    address: str = ""
    percent: float | None = None
    is_locked: bool = False
    lock_info: Any = None


class LpLocks(WireModel):
    lp_holder_count: int | None = None
    locked_ratio: float = 0.0
    top_lp_holders: list[LpHolder] = Field(default_factory=list)


class GoPlusForensics(WireModel):
    token: TokenInfo
    holders: HolderDistribution
    creator_owner: CreatorOwner
    dex_pools: DexPools
    lp_locks: LpLocks


def _token(data: dict[str, Any], token_address: str) -> TokenInfo:
    return TokenInfo(
        address=token_address,
        name=as_string(data.get("token_name")),
        symbol=as_string(data.get("token_symbol")),
        decimals=as_integer(data.get("decimals")) if data.get("decimals") else None,
        total_supply=as_string(data.get("total_supply")),
        holder_count=as_integer(data.get("holder_count")) if data.get("holder_count") else None,
    )


def _holders(data: dict[str, Any]) -> HolderDistribution:
    raw_holders = data.get("holders")
    if not isinstance(raw_holders, list):
        return HolderDistribution()

    top = [
        Holder(
            address=as_string(h.get("address")) or "",
            balance=as_string(h.get("balance")),
            percent=as_float(h.get("percent")) if h.get("percent") else None,
        )
        for h in raw_holders[:TOP_HOLDERS]
        if isinstance(h, dict)
    ]
    percent_sum = sum(h.percent or 0.0 for h in top)
    if percent_sum > 0:
        top10 = percent_sum
    elif data.get("top10_holder_percent"):
        top10 = as_float(data.get("top10_holder_percent"))
    else:
        top10 = None
    return HolderDistribution(top_holders=top, top10_percent=top10)


def _creator_owner(data: dict[str, Any]) -> CreatorOwner:
    fields: dict[str, Any] = {}
    for role in ("creator", "owner"):
        address = data.get(f"{role}_address")
        if not address:
            continue
        fields[f"{role}_address"] = as_string(address)
        if data.get(f"{role}_balance"):
            fields[f"{role}_balance"] = as_string(data.get(f"{role}_balance"))
        if data.get(f"{role}_percent"):
            fields[f"{role}_percent"] = as_float(data.get(f"{role}_percent"))
    return CreatorOwner(**fields)


def _dex_pools(data: dict[str, Any]) -> DexPools:
    raw_pools = data.get("dex")
    if not isinstance(raw_pools, list):
        return DexPools()

    pools = [p for p in raw_pools if isinstance(p, dict)]

    def liquidity(pool: dict[str, Any]) -> float:
        return as_float(pool.get("liquidity"), 0.0) or 0.0

    total = sum(liquidity(p) for p in pools)
    top = [
        DexPool(
            dex_name=as_string(p.get("dex_name") or p.get("name")),
            pair_address=as_string(p.get("pair")),
            liquidity_usd=liquidity(p) / 1e6 if p.get("liquidity") else None,
        )
        for p in sorted(pools, key=liquidity, reverse=True)[:TOP_POOLS]
    ]
    return DexPools(
        total_liquidity_usd=total / 1e6 if total > 0 else None,
        pool_count=len(raw_pools),
        top_pools=top,
    )


def _lp_locks(data: dict[str, Any]) -> LpLocks:
    raw_lp = data.get("lp_holders")
    if not isinstance(raw_lp, list):
        if data.get("lp_holder_count"):
            return LpLocks(lp_holder_count=as_integer(data.get("lp_holder_count")))
        return LpLocks()

    entries = [lp for lp in raw_lp if isinstance(lp, dict)]
    total_percent = 0.0
    locked_percent = 0.0
    top: list[LpHolder] = []
    for lp in entries[:TOP_LP_HOLDERS]:
        percent = as_float(lp.get("percent"), 0.0) if lp.get("percent") else 0.0
        locked = is_lp_locked(lp)
        total_percent += percent
        if locked:
            locked_percent += percent
        top.append(LpHolder(
            address=as_string(lp.get("address")) or "",
            percent=percent if percent > 0 else None,
            is_locked=locked,
            lock_info=lp.get("lock_info") or lp.get("lock_time") or None,
        ))

    if total_percent > 0:
        ratio = locked_percent / total_percent * 100
    elif entries:
        ratio = sum(1 for lp in entries if is_lp_locked(lp)) / len(entries) * 100
    else:
        ratio = 0.0

    return LpLocks(lp_holder_count=len(raw_lp), locked_ratio=ratio, top_lp_holders=top)


def extract_goplus_forensics(
    raw: RawProviderResult,
    token_address: str,
) -> GoPlusForensics | None:
    """Project a GoPlus raw result into :class:`GoPlusForensics`.

    Returns ``None`` for failed results, results from other providers,
    invalid envelopes and tokens missing from the payload.
    """
    if raw.failed or raw.provider_id != "goplus":
        return None
    data = token_record(raw.raw, token_address)
    if data is None:
        return None

    return GoPlusForensics(
        token=_token(data, token_address),
        holders=_holders(data),
        creator_owner=_creator_owner(data),
        dex_pools=_dex_pools(data),
        lp_locks=_lp_locks(data),
    )
