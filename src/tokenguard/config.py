"""Centralized configuration for the TokenGuard service."""
from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenguard.providers.base import DEFAULT_TIMEOUT_SECONDS, SUPPORTED_CHAINS
from tokenguard.providers.proxy_slot import DEFAULT_RPC_URL


class Settings(BaseSettings):
    """Service configuration loaded from ``TOKENGUARD_*`` environment variables.

    List and dict fields are read as JSON, e.g.
    ``TOKENGUARD_ENABLED_PROVIDERS='["goplus", "honeypot"]'``.
    """

    environment: str = "development"
    log_level: str = "info"
    json_logs: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Attestation
    signing_key: str = "mvp-signing-key-change-in-production"
    signing_key_id: str = "mvp-key-1"
    schema_version: str = "0.3"

    # Providers
    enabled_providers: list[str] = Field(
        default_factory=lambda: ["goplus", "honeypot", "proxy_slot"]
    )
    provider_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    default_chain: str = "ethereum"
    supported_chains: list[str] = Field(default_factory=lambda: list(SUPPORTED_CHAINS))
    goplus_api_key: str | None = None
    ethereum_rpc_url: str = DEFAULT_RPC_URL
    provider_api_keys: dict[str, str] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        env_prefix="TOKENGUARD_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _lower_level(cls, value: str) -> str:
        return value.lower()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def resolve_chain(self, chain: str | None) -> str:
        """Return *chain* if supported, else :attr:`default_chain`."""
        if chain and chain in self.supported_chains:
            return chain
        return self.default_chain


def get_settings() -> Settings:
    return Settings()
