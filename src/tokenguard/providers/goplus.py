"""GoPlus token-security adapter.

Calls ``/api/v1/token_security/{chainId}`` and maps the per-token record
onto contract-risk, liquidity, deployer and behavioural evidence.  GoPlus
encodes booleans as ``"0"``/``"1"`` strings and numbers as strings.
"""
from __future__ import annotations

from typing import Any

import httpx
import structlog

from tokenguard.domain.entities.evidence import (
    EvidenceCategory,
    EvidenceItem,
    NormalizedProviderEvidence,
    RawProviderResult,
    ScanInput,
    Verdict,
)
from tokenguard.providers.base import (
    BaseProviderAdapter,
    get_chain_id,
    raise_for_status,
    tax_severity_and_detail,
)
from tokenguard.shared.exceptions import ProviderUnavailableError
from tokenguard.shared.parse import as_float, as_integer, as_list, format_number

logger = structlog.get_logger(__name__)

GOPLUS_API_BASE = "https://api.gopluslabs.io/api/v1"


def token_record(payload: Any, token_address: str) -> dict[str, Any] | None:
    """Return the per-token record of a GoPlus payload, or ``None``.

    ``None`` covers both an invalid envelope (``code != 1``) and a token
    missing from ``result``; callers that need to tell them apart check
    :func:`is_valid_payload` first.
    """
    if not is_valid_payload(payload):
        return None
    result = payload["result"]
    record = result.get(token_address.lower()) or result.get(token_address)
    return record if isinstance(record, dict) else None


def is_valid_payload(payload: Any) -> bool:
    """True for a ``code == 1`` envelope carrying a ``result`` mapping."""
    return (
        isinstance(payload, dict)
        and payload.get("code") == 1
        and isinstance(payload.get("result"), dict)
    )


def _is_set(value: Any) -> bool:
    return value == "1" or value == 1


def is_lp_locked(lp_holder: Any) -> bool:
    return isinstance(lp_holder, dict) and _is_set(lp_holder.get("is_locked"))


class GoPlusAdapter(BaseProviderAdapter):
    """Adapter for the GoPlus Security token API."""

    provider_id = "goplus"
    name = "GoPlus"

    def request_url(self, scan_input: ScanInput) -> str:
        chain_id = get_chain_id(scan_input.chain)
        return (
            f"{GOPLUS_API_BASE}/token_security/{chain_id}"
            f"?contract_addresses={scan_input.token_address}"
        )

    async def _fetch(self, scan_input: ScanInput, url: str) -> RawProviderResult:
        headers = {"Cache-Control": "no-cache"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(url, headers=headers)
        raise_for_status(self.provider_id, resp)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderUnavailableError(
                "JSON parse failed (unexpected provider payload)",
                provider_id=self.provider_id,
                http_status=resp.status_code,
            ) from exc
        return self.raw_result(url, resp.status_code, data)

    def _normalize(
        self,
        raw: RawProviderResult,
        scan_input: ScanInput,
    ) -> NormalizedProviderEvidence:
        payload = raw.raw
        if not is_valid_payload(payload):
            return self.unavailable(raw, "Invalid response from GoPlus")

        data = token_record(payload, scan_input.token_address)
        if data is None:
            return self.evidence(
                raw,
                verdict="low",
                summary="Token not found in GoPlus database",
                flags=[],
                items=[],
            )

        items: list[EvidenceItem] = []
        flags: list[str] = []
        self._contract_risk(data, items, flags)
        self._liquidity(data, items)
        self._deployer(data, items, flags)
        self._behavioral(data, items)

        buy_tax = as_float(data.get("buy_tax"), 0.0) or 0.0
        sell_tax = as_float(data.get("sell_tax"), 0.0) or 0.0

        verdict: Verdict = "low"
        if _is_set(data.get("is_honeypot")) or _is_set(data.get("is_blacklisted")):
            verdict = "high"
        elif flags or buy_tax > 10 or sell_tax > 10 or _is_set(data.get("cannot_sell_all")):
            verdict = "medium"

        if _is_set(data.get("trust_list")):
            summary = "Trusted Token - Well-known and backed by reputable institutions"
        elif not flags:
            summary = "No major risks detected - Token appears safe"
        else:
            summary = f"{len(flags)} risk flag{'s' if len(flags) != 1 else ''} detected"

        logger.debug(
            "goplus_normalized",
            token_address=scan_input.token_address,
            items=len(items),
            verdict=verdict,
        )
        return self.evidence(raw, verdict=verdict, summary=summary, flags=flags, items=items)

    # -- evidence sections ---------------------------------------------------

    @staticmethod
    def _contract_risk(
        data: dict[str, Any],
        items: list[EvidenceItem],
        flags: list[str],
    ) -> None:
        risk = EvidenceCategory.CONTRACT_RISK

        if _is_set(data.get("is_honeypot")):
            items.append(EvidenceItem(
                category=risk, key="HONEYPOT_DETECTED", severity="high",
                title="Honeypot detected", detail="Tokens cannot be sold",
            ))
            flags.append("⚠️ Honeypot detected")

        if _is_set(data.get("cannot_sell_all")):
            items.append(EvidenceItem(
                category=risk, key="SELL_LIMIT_PRESENT", severity="medium",
                title="Full sell-off not possible (sell limit)",
                detail=(
                    "Contract enforces max sell / max tx limit. "
                    "This is NOT necessarily a honeypot."
                ),
            ))
            flags.append("⚠️ Sell limit present")

        if _is_set(data.get("is_blacklisted")):
            items.append(EvidenceItem(
                category=risk, key="HAS_BLACKLIST", severity="high",
                title="Blacklist function detected", detail="Owner can block addresses",
            ))
            flags.append("⚠️ Blacklist function")

        if _is_set(data.get("is_proxy")):
            items.append(EvidenceItem(
                category=risk, key="PROXY_UPGRADEABLE", severity="medium",
                title="Proxy contract (upgradeable)", detail="Owner can change contract logic",
            ))
            flags.append("Proxy contract")

        if _is_set(data.get("is_mintable")):
            items.append(EvidenceItem(
                category=risk, key="IS_MINTABLE", severity="medium",
                title="Token is mintable", detail="Supply can be increased",
            ))
            flags.append("Mintable token")

        for field, key, label in (
            ("buy_tax", "HIGH_BUY_TAX", "Buy tax"),
            ("sell_tax", "HIGH_SELL_TAX", "Sell tax"),
        ):
            tax = as_float(data.get(field), 0.0) or 0.0
            if tax <= 0:
                continue
            severity, detail = tax_severity_and_detail(tax)
            title = f"{label}: {format_number(tax)}%"
            items.append(EvidenceItem(
                category=risk, key=key, severity=severity,
                title=title, detail=detail, value=tax,
            ))
            flags.append(title)

        if data.get("is_open_source") == "0":
            items.append(EvidenceItem(
                category=risk, key="NOT_OPEN_SOURCE", severity="medium",
                title="Contract not open source", detail="Code cannot be verified",
            ))
            flags.append("Not open source")

        if _is_set(data.get("trust_list")):
            items.append(EvidenceItem(
                category=risk, key="TRUST_LISTED", severity="info",
                title="Trusted token", detail="Listed on GoPlus trust list",
            ))

    @staticmethod
    def _liquidity(data: dict[str, Any], items: list[EvidenceItem]) -> None:
        dex = as_list(data.get("dex"))
        if not dex:
            return
        liquidity = EvidenceCategory.LIQUIDITY_EVIDENCE

        total = sum(
            as_float(pool.get("liquidity"), 0.0) or 0.0
            for pool in dex
            if isinstance(pool, dict)
        )
        if total > 0:
            items.append(EvidenceItem(
                category=liquidity, key="TOTAL_LIQUIDITY_USD", severity="info",
                title=f"Total liquidity: ${total / 1e6:.2f}M",
                detail=f"{len(dex)} DEX pools",
                value=total,
            ))

        lp_holders = as_list(data.get("lp_holders"))
        locked = [lp for lp in lp_holders if is_lp_locked(lp)]
        if locked:
            items.append(EvidenceItem(
                category=liquidity, key="LP_LOCKED_PRESENT", severity="info",
                title=f"{len(locked)} LP positions locked", detail="Liquidity is locked",
            ))
        elif lp_holders:
            items.append(EvidenceItem(
                category=liquidity, key="LP_UNLOCKED", severity="medium",
                title="No locked LP detected", detail="All liquidity positions are unlocked",
            ))

    @staticmethod
    def _deployer(
        data: dict[str, Any],
        items: list[EvidenceItem],
        flags: list[str],
    ) -> None:
        deployer = EvidenceCategory.DEPLOYER_REPUTATION
        creator = data.get("creator_address")
        if isinstance(creator, str) and creator:
            items.append(EvidenceItem(
                category=deployer, key="CREATOR_ADDRESS", severity="info",
                title=f"Creator: {creator[:6]}...{creator[-4:]}", detail=creator,
            ))

        if _is_set(data.get("honeypot_with_same_creator")):
            items.append(EvidenceItem(
                category=deployer, key="PAST_HONEYPOT_CREATOR", severity="high",
                title="Creator has deployed honeypot tokens before",
                detail="High risk deployer",
            ))
            flags.append("🚨 Past honeypot creator")

    @staticmethod
    def _behavioral(data: dict[str, Any], items: list[EvidenceItem]) -> None:
        behavioral = EvidenceCategory.BEHAVIORAL_SIGNALS
        if data.get("holder_count"):
            count = as_integer(data.get("holder_count"), 0) or 0
            items.append(EvidenceItem(
                category=behavioral, key="HOLDER_COUNT", severity="info",
                title=f"{count:,} token holders",
            ))

        cex = data.get("is_in_cex")
        if isinstance(cex, dict) and _is_set(cex.get("listed")):
            names = [
                entry.get("name")
                for entry in as_list(cex.get("cex_list"))
                if isinstance(entry, dict) and entry.get("name")
            ]
            items.append(EvidenceItem(
                category=behavioral, key="CEX_LISTED", severity="info",
                title=f"Listed on CEX: {', '.join(names) or 'Unknown'}",
            ))
