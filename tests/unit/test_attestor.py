"""Unit tests for canonical hashing and bundle attestation."""
from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from tokenguard.domain.entities.bundle import EvidenceBundle, ProviderSummary
from tokenguard.domain.entities.evidence import RawMetadata
from tokenguard.evidence.attestor import Attestor
from tokenguard.evidence.hasher import canonical_json, canonicalize, hash_bundle, hash_payload
from tokenguard.shared.exceptions import ConfigurationError

SIGNED_AT = "2024-01-15T09:23:01.123Z"


@pytest.fixture
def bundle() -> EvidenceBundle:
    return EvidenceBundle(
        token_address="0x1111111111111111111111111111111111111111",
        chain="ethereum",
        contract_risk=["✅ Likely Not a Pixiu Token"],
        liquidity_evidence=["💰 Total liquidity: $1.00M"],
        providers=[
            ProviderSummary(
                provider_id="goplus",
                provider_name="GoPlus",
                verdict="low",
                summary="ok",
                timestamp=SIGNED_AT,
                available=True,
            )
        ],
    )


@pytest.fixture
def raw_metadata() -> list[RawMetadata]:
    return [
        RawMetadata(
            provider_id="goplus",
            provider_name="GoPlus",
            fetched_at=SIGNED_AT,
            http_status=200,
            raw_sha256="ab" * 32,
        )
    ]


class TestCanonicalization:
    def test_nested_keys_sorted(self):
        assert canonical_json({"b": 1, "a": {"d": [3, {"z": 1, "y": 2}], "c": None}}) == (
            '{"a":{"c":null,"d":[3,{"y":2,"z":1}]},"b":1}'
        )

    def test_insertion_order_independent(self):
        assert hash_payload({"x": 1, "y": [1, 2]}) == hash_payload({"y": [1, 2], "x": 1})

    def test_array_order_significant(self):
        assert hash_payload([1, 2]) != hash_payload([2, 1])

    def test_models_use_wire_names(self, raw_metadata):
        assert list(canonicalize(raw_metadata[0])) == [
            "fetchedAt", "httpStatus", "providerId", "providerName", "rawSha256",
        ]

    def test_model_and_dict_hash_equal(self, bundle, raw_metadata):
        as_dicts = hash_bundle(bundle.to_wire(), [r.to_wire() for r in raw_metadata])
        assert hash_bundle(bundle, raw_metadata) == as_dicts

    def test_unicode_not_escaped(self):
        assert canonical_json({"s": "✅"}) == '{"s":"✅"}'


class TestAttestor:
    def test_empty_secret_rejected(self):
        with pytest.raises(ConfigurationError):
            Attestor("")

    def test_signature_format(self, attestor):
        digest = "cd" * 32
        signature, key_id = attestor.sign(digest, SIGNED_AT)
        expected = hmac.new(
            b"test-signing-secret", f"{digest}:{SIGNED_AT}".encode(), hashlib.sha256
        ).hexdigest()
        assert base64.b64decode(signature).decode() == expected
        assert key_id == "test-key-1"

    def test_round_trip(self, attestor, bundle, raw_metadata):
        attestation = attestor.attest(bundle, raw_metadata, signed_at=SIGNED_AT)
        assert attestation.signed_at == SIGNED_AT
        assert attestation.bundle_sha256 == hash_bundle(bundle, raw_metadata)
        assert attestor.verify_signature(
            attestation.bundle_sha256,
            attestation.signature,
            attestation.public_key_id,
            attestation.signed_at,
        )
        assert attestor.verify_bundle(bundle, raw_metadata, attestation).valid

    def test_wrong_key_id(self, attestor):
        signature, _ = attestor.sign("ab" * 32, SIGNED_AT)
        assert not attestor.verify_signature("ab" * 32, signature, "mvp-key-1", SIGNED_AT)

    def test_different_signed_at(self, attestor):
        signature, key_id = attestor.sign("ab" * 32, SIGNED_AT)
        assert not attestor.verify_signature("ab" * 32, signature, key_id, "2024-01-15T09:23:02.000Z")

    def test_different_secret(self, attestor):
        signature, key_id = Attestor("other-secret", "test-key-1").sign("ab" * 32, SIGNED_AT)
        assert not attestor.verify_signature("ab" * 32, signature, key_id, SIGNED_AT)

    @pytest.mark.parametrize("signature", ["", "not base64!!", "✅"])
    def test_malformed_signature_is_false(self, attestor, signature):
        assert attestor.verify_signature("ab" * 32, signature, "test-key-1", SIGNED_AT) is False

    def test_unhashable_payload_does_not_raise(self, attestor, bundle, raw_metadata):
        attestation = attestor.attest(bundle, raw_metadata, signed_at=SIGNED_AT)
        tampered = dict(bundle.to_wire(), score=float("nan"))
        result = attestor.verify_bundle(tampered, [r.to_wire() for r in raw_metadata], attestation)
        assert result.hash_matches is False
        assert result.signature_valid is True
        assert result.bundle_sha256 == ""

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda b, r: (dict(b, chain="bsc"), r),
            lambda b, r: (dict(b, contractRisk=["🚨 Honeypot detected"]), r),
            lambda b, r: (b, [dict(r[0], httpStatus=500)]),
            lambda b, r: (b, [dict(r[0], rawSha256="00" * 32)]),
        ],
    )
    def test_tamper_detected_independently(self, attestor, bundle, raw_metadata, mutate):
        attestation = attestor.attest(bundle, raw_metadata, signed_at=SIGNED_AT)
        tampered_bundle, tampered_raw = mutate(
            bundle.to_wire(), [r.to_wire() for r in raw_metadata]
        )
        result = attestor.verify_bundle(tampered_bundle, tampered_raw, attestation)
        assert result.hash_matches is False
        assert result.signature_valid is True
        assert result.valid is False
        assert result.bundle_sha256 != attestation.bundle_sha256
