"""Unit tests for environment-driven settings."""
from __future__ import annotations

import pytest

from tokenguard.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("TOKENGUARD_ENABLED_PROVIDERS", "TOKENGUARD_LOG_LEVEL", "TOKENGUARD_DEFAULT_CHAIN"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)
        assert settings.enabled_providers == ["goplus", "honeypot", "proxy_slot"]
        assert settings.signing_key_id == "mvp-key-1"
        assert settings.provider_timeout_seconds == 6.0
        assert not settings.is_production

    def test_reads_prefixed_env(self, clean_env):
        clean_env.setenv("TOKENGUARD_ENABLED_PROVIDERS", '["goplus", "defi"]')
        clean_env.setenv("TOKENGUARD_LOG_LEVEL", "DEBUG")
        settings = Settings(_env_file=None)
        assert settings.enabled_providers == ["goplus", "defi"]
        assert settings.log_level == "debug"

    def test_timeout_must_be_positive(self, clean_env):
        with pytest.raises(ValueError):
            Settings(_env_file=None, provider_timeout_seconds=0)

    @pytest.mark.parametrize(
        "requested,resolved",
        [("bsc", "bsc"), ("solana", "ethereum"), (None, "ethereum"), ("", "ethereum")],
    )
    def test_resolve_chain(self, clean_env, requested, resolved):
        assert Settings(_env_file=None).resolve_chain(requested) == resolved
