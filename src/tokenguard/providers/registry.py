"""Closed registry of provider adapters.

Adapters are addressed by ``provider_id``; :func:`build_adapters` turns the
configured id list into instances, in the configured order.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import structlog

from tokenguard.providers.base import BaseProviderAdapter
from tokenguard.providers.goplus import GoPlusAdapter
from tokenguard.providers.honeypot import HoneypotAdapter
from tokenguard.providers.proxy_slot import ProxySlotAdapter
from tokenguard.providers.stubs import STUB_ADAPTERS
from tokenguard.shared.exceptions import ConfigurationError

if TYPE_CHECKING:
    from tokenguard.config import Settings

logger = structlog.get_logger(__name__)

AdapterFactory = Callable[["Settings"], BaseProviderAdapter]


def _goplus(settings: Settings) -> BaseProviderAdapter:
    return GoPlusAdapter(
        timeout=settings.provider_timeout_seconds,
        api_key=settings.goplus_api_key,
        chains=tuple(settings.supported_chains),
    )


def _honeypot(settings: Settings) -> BaseProviderAdapter:
    return HoneypotAdapter(
        timeout=settings.provider_timeout_seconds,
        chains=tuple(settings.supported_chains),
    )


def _proxy_slot(settings: Settings) -> BaseProviderAdapter:
    return ProxySlotAdapter(
        rpc_url=settings.ethereum_rpc_url,
        timeout=settings.provider_timeout_seconds,
    )


def _stub_factory(adapter_cls: type[BaseProviderAdapter]) -> AdapterFactory:
    def factory(settings: Settings) -> BaseProviderAdapter:
        return adapter_cls(
            timeout=settings.provider_timeout_seconds,
            api_key=settings.provider_api_keys.get(adapter_cls.provider_id),
            chains=tuple(settings.supported_chains),
        )
    return factory


PROVIDER_FACTORIES: dict[str, AdapterFactory] = {
    "goplus": _goplus,
    "honeypot": _honeypot,
    "proxy_slot": _proxy_slot,
    **{cls.provider_id: _stub_factory(cls) for cls in STUB_ADAPTERS},
}


def available_provider_ids() -> list[str]:
    return list(PROVIDER_FACTORIES)


def build_adapters(settings: Settings) -> list[BaseProviderAdapter]:
    """Instantiate the adapters named in ``settings.enabled_providers``.

    Raises:
        ConfigurationError: If an id is unknown or the list is empty.
    """
    unknown = [pid for pid in settings.enabled_providers if pid not in PROVIDER_FACTORIES]
    if unknown:
        raise ConfigurationError(
            f"Unknown provider id(s): {', '.join(unknown)}",
            context={"unknown": unknown, "available": available_provider_ids()},
        )
    if not settings.enabled_providers:
        raise ConfigurationError("At least one provider must be enabled")

    seen: set[str] = set()
    adapters: list[BaseProviderAdapter] = []
    for provider_id in settings.enabled_providers:
        if provider_id in seen:
            continue
        seen.add(provider_id)
        adapters.append(PROVIDER_FACTORIES[provider_id](settings))

    logger.info("providers_registered", providers=[a.provider_id for a in adapters])
    return adapters
