"""Key-gated providers that are registered but not integrated.

Each stub reports itself unavailable on every scan.  Its summary says
whether a partner API key is configured, so operators can tell a missing
key apart from a disabled integration.
"""
from __future__ import annotations

from tokenguard.domain.entities.evidence import (
    NormalizedProviderEvidence,
    RawProviderResult,
    ScanInput,
)
from tokenguard.providers.base import BaseProviderAdapter

MISSING_API_KEY = "missing_api_key"
INTEGRATION_DISABLED = "Provider integration requires partner API key; disabled in MVP."


class StubProviderAdapter(BaseProviderAdapter):
    """Adapter that never calls out and always reports unavailable."""

    def request_url(self, scan_input: ScanInput) -> str:
        return f"https://api.{self.provider_id}.com"

    async def _fetch(self, scan_input: ScanInput, url: str) -> RawProviderResult:
        error = INTEGRATION_DISABLED if self.api_key else MISSING_API_KEY
        return self.error_result(url, error)

    def failure_summary(self, raw: RawProviderResult) -> str:
        if raw.error == MISSING_API_KEY:
            return INTEGRATION_DISABLED
        return "Provider not available in MVP"

    def _normalize(
        self,
        raw: RawProviderResult,
        scan_input: ScanInput,
    ) -> NormalizedProviderEvidence:
        return self.unavailable(raw, self.failure_summary(raw))


def _stub(provider_id: str, name: str) -> type[StubProviderAdapter]:
    class_name = "".join(part.capitalize() for part in provider_id.split("_")) + "Stub"
    return type(
        class_name,
        (StubProviderAdapter,),
        {"provider_id": provider_id, "name": name},
    )


TokenSnifferStub = _stub("tokensniffer", "Token Sniffer")
CyberscopeStub = _stub("cyberscope", "Cyberscope")
DefiStub = _stub("defi", "De.Fi")
SolidityScanStub = _stub("solidityscan", "SolidityScan")
DexAnalyzerStub = _stub("dexanalyzer", "DexAnalyzer")
QuillCheckStub = _stub("quillcheck", "QuillCheck")
AegisStub = _stub("aegis", "Aegisweb3")
BlockSafuStub = _stub("blocksafu", "BlockSafu")
ContractWolfStub = _stub("contractwolf", "ContractWolf")
StaySafuStub = _stub("staysafu", "StaySAFU")

STUB_ADAPTERS: tuple[type[StubProviderAdapter], ...] = (
    TokenSnifferStub,
    CyberscopeStub,
    DefiStub,
    SolidityScanStub,
    DexAnalyzerStub,
    QuillCheckStub,
    AegisStub,
    BlockSafuStub,
    ContractWolfStub,
    StaySafuStub,
)
