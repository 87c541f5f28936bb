"""Attestation records binding a bundle and its raw metadata to a signature."""
from __future__ import annotations

from tokenguard.shared.models import WireModel


class Attestation(WireModel):
    """Signed digest of ``{bundle, rawMetadata}``.

    Attributes:
        bundle_sha256: Lowercase hex SHA-256 of the canonical envelope.
        signature: Opaque base64 signature over ``bundle_sha256`` and
            ``signed_at``.
        public_key_id: Identifier of the key that produced ``signature``.
        signed_at: ISO-8601 UTC issuance time (part of the signed message).
    """

    bundle_sha256: str
    signature: str
    public_key_id: str
    signed_at: str


class BundleVerification(WireModel):
    """Result of re-deriving an attestation from a caller-supplied payload.

    ``hash_matches`` and ``signature_valid`` are computed independently, so a
    tampered payload with an untouched attestation reports a valid signature
    and a mismatching hash.
    """

    bundle_sha256: str
    hash_matches: bool
    signature_valid: bool

    @property
    def valid(self) -> bool:
        return self.hash_matches and self.signature_valid
