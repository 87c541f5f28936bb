"""Deterministic content hashing for provider payloads and signed envelopes.

Every digest is SHA-256 over the *canonical* JSON form of a value: object
keys sorted recursively, arrays kept in order, compact separators and
UTF-8 output.  Two structurally equal values therefore always hash the same,
regardless of key insertion order.

Pydantic models are dumped in their camelCase wire form before hashing so
that a digest computed server-side can be recomputed by any client holding
the JSON response.
"""
from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable

import structlog
from pydantic import BaseModel

from tokenguard.domain.entities.bundle import EvidenceBundle
from tokenguard.domain.entities.evidence import RawMetadata

logger = structlog.get_logger(__name__)


def _to_plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


def canonicalize(value: Any) -> Any:
    """Return a copy of *value* with every mapping's keys sorted recursively."""
    value = _to_plain(value)
    if isinstance(value, dict):
        return {key: canonicalize(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    return value


def canonical_json(value: Any) -> str:
    """Serialise *value* to compact canonical JSON."""
    return json.dumps(
        canonicalize(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def hash_payload(value: Any) -> str:
    """Lowercase hex SHA-256 of the canonical JSON of *value*."""
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


def envelope(
    bundle: EvidenceBundle | dict[str, Any],
    raw_metadata: Iterable[RawMetadata | dict[str, Any]],
) -> dict[str, Any]:
    """Build the ``{bundle, rawMetadata}`` object that gets attested."""
    return {
        "bundle": _to_plain(bundle),
        "rawMetadata": [_to_plain(item) for item in raw_metadata],
    }


def hash_bundle(
    bundle: EvidenceBundle | dict[str, Any],
    raw_metadata: Iterable[RawMetadata | dict[str, Any]],
) -> str:
    """Digest of the bundle plus its raw metadata list.

    Raw metadata order is significant: it is part of the hashed content.
    """
    digest = hash_payload(envelope(bundle, raw_metadata))
    logger.debug("bundle_hashed", digest_prefix=digest[:16])
    return digest
