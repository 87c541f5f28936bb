"""Bundle attestation: keyed-digest signing and verification.

The signature is ``base64(hex(HMAC-SHA256(secret, f"{digest}:{signed_at}")))``.
``signed_at`` is an input to :meth:`Attestor.sign`, so the exact timestamp
that went into the signature is the one returned to the client and later
presented for verification.

Verification never raises: malformed signatures, unknown key ids and
tampered payloads all evaluate to ``False``.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
from typing import Any, Iterable

import structlog

from tokenguard.domain.entities.attestation import Attestation, BundleVerification
from tokenguard.domain.entities.bundle import EvidenceBundle
from tokenguard.domain.entities.evidence import RawMetadata
from tokenguard.evidence import hasher
from tokenguard.shared.exceptions import ConfigurationError
from tokenguard.shared.models import utc_now_iso

logger = structlog.get_logger(__name__)

DEFAULT_KEY_ID = "mvp-key-1"


class Attestor:
    """Hashes, signs and verifies evidence bundles with one active key.

    Usage::

        attestor = Attestor(secret="change-me")
        attestation = attestor.attest(bundle, raw_metadata)
        assert attestor.verify_bundle(bundle, raw_metadata, attestation).valid
    """

    def __init__(self, secret: str, key_id: str = DEFAULT_KEY_ID) -> None:
        if not secret:
            raise ConfigurationError(
                "Signing key must not be empty",
                context={"key_id": key_id},
            )
        if not key_id:
            raise ConfigurationError("Signing key id must not be empty")
        self._secret = secret.encode("utf-8")
        self._key_id = key_id
        logger.info("attestor_initialised", key_id=key_id)

    @property
    def key_id(self) -> str:
        return self._key_id

    # -- hashing -------------------------------------------------------------

    def hash_bundle(
        self,
        bundle: EvidenceBundle | dict[str, Any],
        raw_metadata: Iterable[RawMetadata | dict[str, Any]],
    ) -> str:
        return hasher.hash_bundle(bundle, raw_metadata)

    # -- signing -------------------------------------------------------------

    def _expected_signature(self, bundle_sha256: str, signed_at: str) -> str:
        message = f"{bundle_sha256}:{signed_at}".encode("utf-8")
        digest = hmac.new(self._secret, message, hashlib.sha256).hexdigest()
        return base64.b64encode(digest.encode("ascii")).decode("ascii")

    def sign(self, bundle_sha256: str, signed_at: str) -> tuple[str, str]:
        """Return ``(signature, public_key_id)`` for *bundle_sha256*."""
        return self._expected_signature(bundle_sha256, signed_at), self._key_id

    def attest(
        self,
        bundle: EvidenceBundle,
        raw_metadata: Iterable[RawMetadata],
        signed_at: str | None = None,
    ) -> Attestation:
        """Hash and sign *bundle* with *raw_metadata* in one step."""
        signed_at = signed_at or utc_now_iso()
        digest = self.hash_bundle(bundle, list(raw_metadata))
        signature, key_id = self.sign(digest, signed_at)
        logger.info(
            "bundle_attested",
            digest_prefix=digest[:16],
            key_id=key_id,
            signed_at=signed_at,
        )
        return Attestation(
            bundle_sha256=digest,
            signature=signature,
            public_key_id=key_id,
            signed_at=signed_at,
        )

    # -- verification ---------------------------------------------------------

    def verify_signature(
        self,
        bundle_sha256: str,
        signature: str,
        public_key_id: str,
        signed_at: str,
    ) -> bool:
        """Check *signature* over ``bundle_sha256`` and ``signed_at``.

        The comparison is constant-time; a key id other than the active one
        is rejected.
        """
        if public_key_id != self._key_id:
            logger.debug("signature_key_mismatch", public_key_id=public_key_id)
            return False
        try:
            base64.b64decode(signature.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError, ValueError):
            logger.debug("signature_malformed")
            return False
        expected = self._expected_signature(bundle_sha256, signed_at)
        return hmac.compare_digest(expected, signature)

    def verify_bundle(
        self,
        bundle: EvidenceBundle | dict[str, Any],
        raw_metadata: Iterable[RawMetadata | dict[str, Any]],
        attestation: Attestation,
    ) -> BundleVerification:
        """Recompute the digest of a presented payload and check both halves.

        ``hash_matches`` compares the recomputed digest with the attested
        one; ``signature_valid`` checks the attestation against its own
        digest.  The two are independent.  A payload that cannot be
        canonicalised (non-finite numbers, non-JSON values) never matches and
        reports an empty ``bundle_sha256``.
        """
        try:
            recomputed = self.hash_bundle(bundle, raw_metadata)
        except (TypeError, ValueError) as exc:
            logger.info("bundle_unhashable", error=str(exc))
            recomputed = ""
        hash_matches = bool(recomputed) and hmac.compare_digest(
            recomputed.encode("utf-8"), attestation.bundle_sha256.encode("utf-8")
        )
        signature_valid = self.verify_signature(
            attestation.bundle_sha256,
            attestation.signature,
            attestation.public_key_id,
            attestation.signed_at,
        )
        logger.info(
            "bundle_verified",
            hash_matches=hash_matches,
            signature_valid=signature_valid,
        )
        return BundleVerification(
            bundle_sha256=recomputed,
            hash_matches=hash_matches,
            signature_valid=signature_valid,
        )
