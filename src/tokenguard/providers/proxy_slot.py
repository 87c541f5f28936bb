"""First-party EIP-1967 proxy detector.

Reads the implementation storage slot of the token contract with a single
``eth_getStorageAt`` JSON-RPC call.  A non-zero slot means the token sits
behind an upgradeable proxy.  An empty slot is still reported (as ``info``)
so that a successful read counts toward provider coverage.
"""
from __future__ import annotations

from typing import Any

import httpx

from tokenguard.domain.entities.evidence import (
    EvidenceCategory,
    EvidenceItem,
    NormalizedProviderEvidence,
    RawProviderResult,
    ScanInput,
)
from tokenguard.providers.base import DEFAULT_TIMEOUT_SECONDS, BaseProviderAdapter, raise_for_status
from tokenguard.shared.exceptions import ProviderUnavailableError

DEFAULT_RPC_URL = "https://eth.llamarpc.com"

# keccak256("eip1967.proxy.implementation") - 1
EIP1967_IMPLEMENTATION_SLOT = (
    "0x360894a13ba1a3210667c828492db98dca3e2076cc3735a920a3ca505d382bbc"
)


def is_empty_slot(value: Any) -> bool:
    if not isinstance(value, str) or not value.startswith("0x"):
        return True
    return int(value, 16) == 0 if len(value) > 2 else True


class ProxySlotAdapter(BaseProviderAdapter):
    """Detects EIP-1967 upgradeable proxies on Ethereum."""

    provider_id = "proxy_slot"
    name = "First-Party Proxy Check"
    method = "POST"

    def __init__(
        self,
        *,
        rpc_url: str = DEFAULT_RPC_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        api_key: str | None = None,
    ) -> None:
        super().__init__(timeout=timeout, api_key=api_key, chains=("ethereum",))
        self.rpc_url = rpc_url

    def request_url(self, scan_input: ScanInput) -> str:
        return self.rpc_url

    async def _fetch(self, scan_input: ScanInput, url: str) -> RawProviderResult:
        body = {
            "jsonrpc": "2.0",
            "method": "eth_getStorageAt",
            "params": [scan_input.token_address, EIP1967_IMPLEMENTATION_SLOT, "latest"],
            "id": 1,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(url, json=body)
        raise_for_status(self.provider_id, resp)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderUnavailableError(
                "JSON parse failed (unexpected RPC payload)",
                provider_id=self.provider_id,
                http_status=resp.status_code,
            ) from exc

        if not isinstance(data, dict) or "error" in data or "result" not in data:
            rpc_error = data.get("error") if isinstance(data, dict) else None
            message = rpc_error.get("message") if isinstance(rpc_error, dict) else None
            raise ProviderUnavailableError(
                f"RPC error: {message or 'missing result'}",
                provider_id=self.provider_id,
                http_status=resp.status_code,
            )
        return self.raw_result(url, resp.status_code, data)

    def _normalize(
        self,
        raw: RawProviderResult,
        scan_input: ScanInput,
    ) -> NormalizedProviderEvidence:
        slot = raw.raw.get("result") if isinstance(raw.raw, dict) else None
        if not isinstance(slot, str):
            return self.unavailable(raw, "RPC returned no storage value")

        risk = EvidenceCategory.CONTRACT_RISK
        try:
            empty = is_empty_slot(slot)
        except ValueError:
            return self.unavailable(raw, f"Malformed storage value: {slot[:18]}")

        if empty:
            item = EvidenceItem(
                category=risk, key="PROXY_SLOT_EMPTY", severity="info",
                title="No EIP-1967 implementation slot set",
                detail="Contract does not use an EIP-1967 proxy",
            )
            return self.evidence(
                raw, verdict="low", summary=item.title, flags=[], items=[item]
            )

        item = EvidenceItem(
            category=risk, key="PROXY_UPGRADEABLE", severity="medium",
            title="Proxy contract detected (first-party)",
            detail=f"Implementation address: {slot[:10]}... (EIP-1967 storage slot)",
            value=slot,
        )
        return self.evidence(
            raw, verdict="medium", summary=item.title, flags=[item.key], items=[item]
        )
