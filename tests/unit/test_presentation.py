"""Unit tests for the access log fields and the error envelope handlers."""
from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from tokenguard.presentation.exceptions import register_exception_handlers
from tokenguard.presentation.middleware.logging import access_fields
from tokenguard.shared.exceptions import ConfigurationError, InputValidationError


def _request(state: dict[str, Any]) -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/api/scan",
        "query_string": b"",
        "headers": [],
        "state": state,
    })


class TestAccessFields:
    def test_scan_audit_merged(self):
        request = _request({
            "request_id": "req-1",
            "audit": {"chain": "ethereum", "policy_mode": "strict", "decision": "warn"},
        })
        fields = access_fields(request, 200, 1.5)
        assert fields == {
            "method": "POST",
            "path": "/api/scan",
            "status_code": 200,
            "duration_ms": 1.5,
            "request_id": "req-1",
            "chain": "ethereum",
            "policy_mode": "strict",
            "decision": "warn",
        }

    def test_audit_cannot_override_request_fields(self):
        fields = access_fields(_request({"audit": {"status_code": 999}}), 404, 0.1)
        assert fields["status_code"] == 404

    def test_without_audit_or_request_id(self):
        fields = access_fields(_request({}), 400, 0.2)
        assert set(fields) == {"method", "path", "status_code", "duration_ms"}


@pytest.fixture
def error_client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/misconfigured")
    async def misconfigured() -> None:
        raise ConfigurationError("signing key missing", context={"error": "unset", "field": "signing_key"})

    @app.get("/missing")
    async def missing() -> None:
        raise InputValidationError("Missing required parameters", context={"missing": ["signature"]})

    return TestClient(app)


class TestErrorEnvelope:
    def test_configuration_error_with_error_in_context(self, error_client):
        resp = error_client.get("/misconfigured")
        assert resp.status_code == 500
        error = resp.json()["error"]
        assert error["code"] == "CONFIGURATION_ERROR"
        assert error["message"] == "Service misconfigured"
        assert error["details"] == []

    def test_input_error_lists_missing_fields(self, error_client):
        resp = error_client.get("/missing")
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "INPUT_VALIDATION_ERROR"
        assert error["details"] == [{"field": "signature", "message": "required"}]
        assert "request_id" not in error
