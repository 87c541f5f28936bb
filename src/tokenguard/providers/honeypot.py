"""Honeypot.is simulation adapter.

Honeypot.is sits behind a WAF that can answer with HTML.  The body is
therefore read as text and classified by status and content type before
any JSON decoding:

* non-2xx with a JSON body -> kept as a raw result (normalised as
  unavailable because the status is not 200);
* non-2xx without JSON, or 2xx without a JSON content type -> error result;
* 2xx JSON that fails to decode -> error result.
"""
from __future__ import annotations

import json
from typing import Any
from urllib.parse import urlencode

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
    tax_severity_and_detail,
)
from tokenguard.shared.exceptions import ProviderUnavailableError
from tokenguard.shared.parse import as_float, ensure_lowercase_address, format_number

logger = structlog.get_logger(__name__)

HONEYPOT_API_BASE = "https://api.honeypot.is"


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


class HoneypotAdapter(BaseProviderAdapter):
    """Adapter for the Honeypot.is ``/v2/IsHoneypot`` simulation endpoint."""

    provider_id = "honeypot"
    name = "Honeypot.is"

    def request_url(self, scan_input: ScanInput) -> str:
        try:
            address = ensure_lowercase_address(scan_input.token_address)
        except ValueError:
            return ""
        query = urlencode({"address": address, "chainID": get_chain_id(scan_input.chain)})
        return f"{HONEYPOT_API_BASE}/v2/IsHoneypot?{query}"

    async def _fetch(self, scan_input: ScanInput, url: str) -> RawProviderResult:
        if not url:
            raise ProviderUnavailableError(
                "Invalid token address (local validation failed)",
                provider_id=self.provider_id,
                http_status=400,
            )

        headers = {"accept": "application/json", "user-agent": "Mozilla/5.0"}
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            resp = await client.get(url, headers=headers)

        status = resp.status_code
        content_type = resp.headers.get("content-type", "")
        body = resp.text
        is_json = "application/json" in content_type
        logger.debug(
            "honeypot_response",
            http_status=status,
            content_type=content_type,
            body_prefix=body[:120],
        )

        if not resp.is_success:
            if not is_json:
                raise ProviderUnavailableError(
                    f"Non-JSON error ({status}; {content_type or 'no content-type'})",
                    provider_id=self.provider_id,
                    http_status=status,
                )
            try:
                return self.raw_result(url, status, json.loads(body))
            except ValueError as exc:
                raise ProviderUnavailableError(
                    f"Provider returned {status} with invalid JSON",
                    provider_id=self.provider_id,
                    http_status=status,
                ) from exc

        if not is_json:
            raise ProviderUnavailableError(
                f"Non-JSON response ({content_type or 'no content-type'})",
                provider_id=self.provider_id,
                http_status=status,
            )
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise ProviderUnavailableError(
                "JSON parse failed (unexpected provider payload)",
                provider_id=self.provider_id,
                http_status=status,
            ) from exc
        return self.raw_result(url, status, data)

    def normalize(
        self,
        raw: RawProviderResult,
        scan_input: ScanInput,
    ) -> NormalizedProviderEvidence:
        payload = raw.raw
        payload_error = payload.get("error") if isinstance(payload, dict) else None
        invalid_payload = isinstance(payload, dict) and bool(
            payload_error or payload.get("rawText")
        )
        if raw.failed or raw.http_status != 200 or invalid_payload:
            message = (
                raw.error
                or (f"Invalid response: {payload_error}" if payload_error else "")
                or f"HTTP {raw.http_status or 'error'}: Provider unavailable"
            )
            return self.unavailable(raw, message)
        return self._normalize(raw, scan_input)

    def _normalize(
        self,
        raw: RawProviderResult,
        scan_input: ScanInput,
    ) -> NormalizedProviderEvidence:
        payload: dict[str, Any] = raw.raw if isinstance(raw.raw, dict) else {}
        honeypot_result = _mapping(payload.get("honeypotResult"))
        simulation = _mapping(payload.get("simulationResult"))
        contract_code = _mapping(payload.get("contractCode"))

        is_honeypot = honeypot_result.get("isHoneypot") is True
        buy_tax = as_float(simulation.get("buyTax"), 0.0) or 0.0
        sell_tax = as_float(simulation.get("sellTax"), 0.0) or 0.0
        is_proxy = bool(contract_code.get("isProxy"))

        risk = EvidenceCategory.CONTRACT_RISK
        items: list[EvidenceItem] = []
        flags: list[str] = []

        if is_honeypot:
            items.append(EvidenceItem(
                category=risk, key="HONEYPOT_DETECTED", severity="high",
                title="Honeypot detected",
                detail="Tokens cannot be sold - this is a honeypot token",
            ))
            flags.append("🚨 Honeypot detected")
        else:
            items.append(EvidenceItem(
                category=risk, key="NOT_HONEYPOT", severity="info",
                title="Not a honeypot",
                detail="Honeypot.is simulation indicates tokens can be sold",
            ))

        if is_proxy:
            items.append(EvidenceItem(
                category=risk, key="PROXY_UPGRADEABLE", severity="medium",
                title="Proxy contract detected",
                detail="Contract uses an upgradeable proxy pattern",
            ))
            flags.append("⚠️ Proxy contract")

        for tax, key, label, extreme in (
            (sell_tax, "HIGH_SELL_TAX", "Sell tax", "Extremely high tax - may prevent selling"),
            (buy_tax, "HIGH_BUY_TAX", "Buy tax", "Extremely high tax"),
        ):
            if tax <= 0:
                continue
            severity, detail = tax_severity_and_detail(tax, extreme)
            title = f"{label}: {format_number(tax)}%"
            items.append(EvidenceItem(
                category=risk, key=key, severity=severity,
                title=title, detail=detail, value=tax,
            ))
            flags.append(title)

        buy_label, sell_label = format_number(buy_tax), format_number(sell_tax)
        high_tax = buy_tax > 10 or sell_tax > 10
        if high_tax:
            items.append(EvidenceItem(
                category=EvidenceCategory.BEHAVIORAL_SIGNALS,
                key="SUSPICIOUS_TAX",
                severity="medium",
                title="Suspicious tax rates",
                detail=f"Buy: {buy_label}%, Sell: {sell_label}%",
            ))

        verdict: Verdict = "low"
        if is_honeypot or sell_tax > 50 or buy_tax > 50:
            verdict = "high"
        elif high_tax or flags:
            verdict = "medium"

        if is_honeypot:
            summary = "Honeypot detected - tokens cannot be sold"
        elif high_tax:
            summary = f"High tax rates detected (Buy: {buy_label}%, Sell: {sell_label}%)"
        elif is_proxy:
            summary = "Proxy contract detected"
        elif not flags:
            summary = "Token appears sellable with low tax rates"
        else:
            summary = f"{len(flags)} issue{'s' if len(flags) != 1 else ''} detected"

        return self.evidence(raw, verdict=verdict, summary=summary, flags=flags, items=items)
