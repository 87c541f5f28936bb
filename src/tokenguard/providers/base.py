"""Base adapter interface for all risk-evidence providers.

Every provider adapter implements this contract to take part in a scan.
The pipeline fans out to every adapter that :meth:`supports` the requested
chain, then hands each raw result to the same adapter's :meth:`normalize`.

Two guarantees hold for every adapter:

* :meth:`BaseProviderAdapter.fetch_raw` never raises.  Transport errors,
  HTTP failures and provider-specific rejections all come back as an error
  :class:`RawProviderResult`.
* :meth:`BaseProviderAdapter.normalize` is pure.  A failed raw result maps
  to empty evidence flagged ``PROVIDER_UNAVAILABLE``.
"""
from __future__ import annotations

import abc
from typing import Any, ClassVar, Literal

import httpx
import structlog

from tokenguard.domain.entities.evidence import (
    PROVIDER_UNAVAILABLE,
    EvidenceItem,
    NormalizedProviderEvidence,
    RawProviderResult,
    RawRequest,
    ScanInput,
    Verdict,
)
from tokenguard.domain.value_objects.severity import Severity
from tokenguard.evidence.hasher import hash_payload
from tokenguard.shared.exceptions import ProviderUnavailableError
from tokenguard.shared.models import utc_now_iso

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 6.0
MAX_FLAGS = 8

CHAIN_ID_MAP: dict[str, str] = {
    "ethereum": "1",
    "bsc": "56",
    "polygon": "137",
    "arbitrum": "42161",
    "optimism": "10",
}

SUPPORTED_CHAINS: tuple[str, ...] = tuple(CHAIN_ID_MAP)


def get_chain_id(chain: str) -> str:
    """Numeric chain id for *chain*; unknown chains map to Ethereum (``"1"``)."""
    return CHAIN_ID_MAP.get(chain, "1")


# ---------------------------------------------------------------------------
# Raw result helpers
# ---------------------------------------------------------------------------

def create_raw_result(
    provider_id: str,
    provider_name: str,
    url: str,
    method: Literal["GET", "POST"],
    http_status: int,
    raw: Any,
    error: str | None = None,
) -> RawProviderResult:
    """Wrap a provider payload with its content hash.

    The hash is always computed: over the payload when there is one, else
    over ``{"error": ..., "httpStatus": ...}`` so failures are auditable too.
    """
    if raw is not None:
        raw_sha256 = hash_payload(raw)
    else:
        raw_sha256 = hash_payload({"error": error, "httpStatus": http_status})
    return RawProviderResult(
        provider_id=provider_id,
        provider_name=provider_name,
        fetched_at=utc_now_iso(),
        request=RawRequest(url=url, method=method),
        http_status=http_status,
        raw=raw,
        raw_sha256=raw_sha256,
        error=error,
    )


def create_error_result(
    provider_id: str,
    provider_name: str,
    url: str,
    method: Literal["GET", "POST"],
    error: str,
    http_status: int = 0,
) -> RawProviderResult:
    return create_raw_result(
        provider_id, provider_name, url, method, http_status, None, error
    )


# ---------------------------------------------------------------------------
# Adapter contract
# ---------------------------------------------------------------------------

class BaseProviderAdapter(abc.ABC):
    """Abstract base class for provider adapters.

    Subclasses set :attr:`provider_id` / :attr:`name` and implement
    :meth:`request_url`, :meth:`_fetch` and :meth:`_normalize`.
    """

    provider_id: ClassVar[str]
    name: ClassVar[str]
    method: ClassVar[Literal["GET", "POST"]] = "GET"

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        api_key: str | None = None,
        chains: tuple[str, ...] = SUPPORTED_CHAINS,
    ) -> None:
        self.timeout = timeout
        self.api_key = api_key or None
        self._chains = frozenset(chains)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_id={self.provider_id!r})"

    def supports(self, chain: str) -> bool:
        return chain in self._chains

    # -- fetching ------------------------------------------------------------

    @abc.abstractmethod
    def request_url(self, scan_input: ScanInput) -> str:
        """URL the adapter will call for *scan_input*."""

    @abc.abstractmethod
    async def _fetch(self, scan_input: ScanInput, url: str) -> RawProviderResult:
        """Perform the provider call.

        May raise :class:`ProviderUnavailableError` or :class:`httpx.HTTPError`;
        :meth:`fetch_raw` converts both into an error result.
        """

    async def fetch_raw(self, scan_input: ScanInput) -> RawProviderResult:
        """Fetch the provider's raw payload for *scan_input*. Never raises."""
        url = ""
        try:
            url = self.request_url(scan_input)
            result = await self._fetch(scan_input, url)
        except ProviderUnavailableError as exc:
            logger.warning(
                "provider_unavailable",
                provider_id=self.provider_id,
                error=exc.message,
                http_status=exc.http_status,
            )
            return self.error_result(url, exc.message, exc.http_status)
        except httpx.TimeoutException:
            message = f"{self.name} API timeout after {int(self.timeout * 1000)}ms"
            logger.warning("provider_timeout", provider_id=self.provider_id, timeout=self.timeout)
            return self.error_result(url, message)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "provider_transport_error",
                provider_id=self.provider_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return self.error_result(url, str(exc) or type(exc).__name__)

        logger.debug(
            "provider_fetched",
            provider_id=self.provider_id,
            http_status=result.http_status,
            failed=result.failed,
        )
        return result

    def raw_result(self, url: str, http_status: int, raw: Any) -> RawProviderResult:
        """Wrap a decoded payload; payloads that cannot be hashed are rejected.

        Raises:
            ProviderUnavailableError: If *raw* holds non-finite numbers
                (``NaN``, ``Infinity``), which canonical JSON cannot encode.
        """
        try:
            return create_raw_result(
                self.provider_id, self.name, url, self.method, http_status, raw
            )
        except ValueError as exc:
            raise ProviderUnavailableError(
                "JSON parse failed (non-finite number in provider payload)",
                provider_id=self.provider_id,
                http_status=http_status,
            ) from exc

    def error_result(self, url: str, error: str, http_status: int = 0) -> RawProviderResult:
        return create_error_result(
            self.provider_id, self.name, url, self.method, error, http_status
        )

    # -- normalisation -------------------------------------------------------

    def normalize(
        self,
        raw: RawProviderResult,
        scan_input: ScanInput,
    ) -> NormalizedProviderEvidence:
        """Map *raw* onto the evidence contract."""
        if raw.failed:
            return self.unavailable(raw, self.failure_summary(raw))
        return self._normalize(raw, scan_input)

    def failure_summary(self, raw: RawProviderResult) -> str:
        return raw.error or "No data available"

    @abc.abstractmethod
    def _normalize(
        self,
        raw: RawProviderResult,
        scan_input: ScanInput,
    ) -> NormalizedProviderEvidence:
        """Normalise a successful raw result."""

    def unavailable(
        self,
        raw: RawProviderResult,
        summary: str,
        verdict: Verdict = "medium",
    ) -> NormalizedProviderEvidence:
        """Empty evidence flagged ``PROVIDER_UNAVAILABLE``."""
        return NormalizedProviderEvidence(
            provider_id=self.provider_id,
            provider_name=self.name,
            verdict=verdict,
            summary=summary,
            flags=[PROVIDER_UNAVAILABLE],
            timestamp=raw.fetched_at,
            evidence=[],
            raw_sha256=raw.raw_sha256,
        )

    def evidence(
        self,
        raw: RawProviderResult,
        *,
        verdict: Verdict,
        summary: str,
        flags: list[str],
        items: list[EvidenceItem],
    ) -> NormalizedProviderEvidence:
        return NormalizedProviderEvidence(
            provider_id=self.provider_id,
            provider_name=self.name,
            verdict=verdict,
            summary=summary,
            flags=flags[:MAX_FLAGS],
            timestamp=raw.fetched_at,
            evidence=items,
            raw_sha256=raw.raw_sha256,
        )


def tax_severity_and_detail(
    tax: float,
    extreme_detail: str = "Extremely high tax",
) -> tuple[Severity, str]:
    """Severity band and detail text shared by the tax-reporting adapters."""
    severity = Severity.from_percentage(tax)
    detail = {
        Severity.HIGH: extreme_detail,
        Severity.MEDIUM: "High tax",
    }.get(severity, "Low tax")
    return severity, detail


def raise_for_status(provider_id: str, response: httpx.Response) -> None:
    """Raise :class:`ProviderUnavailableError` for non-2xx responses."""
    if response.is_success:
        return
    raise ProviderUnavailableError(
        f"HTTP {response.status_code}: {response.reason_phrase}",
        provider_id=provider_id,
        http_status=response.status_code,
    )
