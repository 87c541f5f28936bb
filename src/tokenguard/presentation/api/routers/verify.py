"""``/api/verify``: stateless attestation checks.

``GET`` checks a signature alone.  ``POST`` additionally recomputes the
digest of the presented bundle and raw metadata, exactly as received.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from tokenguard.domain.entities.attestation import Attestation
from tokenguard.shared.exceptions import InputValidationError
from tokenguard.shared.models import WireModel, utc_now_iso

router = APIRouter(prefix="/api", tags=["verify"])

REQUIRED_QUERY = ("bundleSha256", "signature", "publicKeyId", "signedAt")


class VerifyRequest(BaseModel):
    bundle: dict[str, Any]
    raw: list[dict[str, Any]]
    attestation: Attestation


class SignatureCheck(WireModel):
    valid: bool
    bundle_sha256: str
    verified_at: str


class BundleCheck(WireModel):
    valid: bool
    bundle_sha256: str
    hash_matches: bool
    signature_valid: bool
    verified_at: str


@router.get("/verify", summary="Verify an attestation signature")
async def verify_signature(request: Request) -> dict[str, Any]:
    params = request.query_params
    missing = [name for name in REQUIRED_QUERY if not params.get(name)]
    if missing:
        raise InputValidationError(
            f"Missing required parameters: {', '.join(REQUIRED_QUERY)}",
            context={"missing": missing},
        )

    valid = request.app.state.attestor.verify_signature(
        params["bundleSha256"],
        params["signature"],
        params["publicKeyId"],
        params["signedAt"],
    )
    request.state.audit = {"signature_valid": valid}
    return SignatureCheck(
        valid=valid,
        bundle_sha256=params["bundleSha256"],
        verified_at=utc_now_iso(),
    ).to_wire()


@router.post("/verify", summary="Verify a bundle against its attestation")
async def verify_bundle(body: VerifyRequest, request: Request) -> dict[str, Any]:
    result = request.app.state.attestor.verify_bundle(body.bundle, body.raw, body.attestation)
    request.state.audit = {
        "hash_matches": result.hash_matches,
        "signature_valid": result.signature_valid,
    }
    return BundleCheck(
        valid=result.valid,
        bundle_sha256=result.bundle_sha256,
        hash_matches=result.hash_matches,
        signature_valid=result.signature_valid,
        verified_at=utc_now_iso(),
    ).to_wire()
