"""``POST /api/scan``: run every provider and return the attested bundle."""
from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import field_validator

from tokenguard.domain.entities.decision import PolicyMode
from tokenguard.domain.entities.evidence import ScanInput
from tokenguard.shared.models import WireModel
from tokenguard.shared.parse import is_evm_address

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["scan"])

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class ScanRequest(WireModel):
    """Scan request body.

    ``chain`` falls back to the configured default when absent or
    unsupported; an unknown ``policyMode`` is rejected.
    """

    token_address: str
    chain: str | None = None
    policy_mode: PolicyMode = PolicyMode.STRICT

    @field_validator("token_address")
    @classmethod
    def _valid_address(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("tokenAddress is required")
        if not is_evm_address(value):
            raise ValueError(
                "tokenAddress must be a valid EVM address "
                "(0x followed by 40 hex characters)"
            )
        return value


@router.post("/scan", summary="Scan a token across all enabled providers")
async def scan_token(body: ScanRequest, request: Request) -> JSONResponse:
    settings = request.app.state.settings
    pipeline = request.app.state.pipeline

    chain = settings.resolve_chain(body.chain)
    if body.chain and chain != body.chain:
        logger.info("chain_defaulted", requested=body.chain, chain=chain)

    result = await pipeline.run(
        ScanInput(chain=chain, token_address=body.token_address),
        body.policy_mode,
    )
    request.state.audit = {
        "chain": chain,
        "policy_mode": body.policy_mode.value,
        "decision": result.policy.decision.value,
        "coverage_ratio": round(result.policy.coverage_ratio, 4),
    }
    return JSONResponse(
        content=result.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=NO_STORE_HEADERS,
    )
