"""Evidence layer: canonical hashing and bundle attestation."""
from __future__ import annotations

from tokenguard.evidence.attestor import Attestor
from tokenguard.evidence.hasher import canonical_json, canonicalize, hash_bundle, hash_payload

__all__ = ["Attestor", "canonical_json", "canonicalize", "hash_bundle", "hash_payload"]
