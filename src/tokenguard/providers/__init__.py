"""Provider adapters: one per external (or first-party) risk detector."""
from __future__ import annotations

from tokenguard.providers.base import (
    CHAIN_ID_MAP,
    SUPPORTED_CHAINS,
    BaseProviderAdapter,
    create_error_result,
    create_raw_result,
    get_chain_id,
)
from tokenguard.providers.goplus import GoPlusAdapter
from tokenguard.providers.honeypot import HoneypotAdapter
from tokenguard.providers.proxy_slot import ProxySlotAdapter
from tokenguard.providers.registry import build_adapters

__all__ = [
    "CHAIN_ID_MAP",
    "SUPPORTED_CHAINS",
    "BaseProviderAdapter",
    "GoPlusAdapter",
    "HoneypotAdapter",
    "ProxySlotAdapter",
    "build_adapters",
    "create_error_result",
    "create_raw_result",
    "get_chain_id",
]
