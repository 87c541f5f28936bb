"""Consensus aggregation of normalized provider evidence.

Merges every provider's evidence items into one record per consensus
``key`` with source attribution and support ratios.  The merge is keyed by
``key`` alone (not ``category:key``): two providers emitting the same key
are asserted to describe the same fact, so the category of the first
sighting is kept.

The aggregator is a pure function over already-collected adapter output.
"""
from __future__ import annotations

from typing import Iterable

import structlog

from tokenguard.domain.entities.evidence import (
    PROVIDER_UNAVAILABLE,
    AggregatedEvidenceItem,
    EvidenceItem,
    EvidenceSource,
    NormalizedProviderEvidence,
)
from tokenguard.domain.value_objects.severity import Severity

logger = structlog.get_logger(__name__)


def support_ratio(support_count: int, total_providers_enabled: int) -> float:
    """Return ``support_count / total_providers_enabled`` capped at 1.0.

    No division happens when the caller passes a non-positive total; the
    ratio is reported as 0.0 instead.
    """
    if total_providers_enabled < 1:
        return 0.0
    return min(1.0, support_count / total_providers_enabled)


def aggregate(
    evidence_sets: Iterable[NormalizedProviderEvidence],
    total_providers_enabled: int,
) -> list[AggregatedEvidenceItem]:
    """Merge per-provider evidence into deduplicated consensus items.

    Providers are visited in order, then their items in order.  On the first
    sighting of a key a record is seeded with one source.  On later
    sightings:

    * the provider is appended to ``sources`` unless already present;
    * ``severity`` becomes the max of existing and incoming (ties keep the
      existing value);
    * ``title``/``detail`` are replaced only when the incoming item carries
      a non-empty ``detail``;
    * ``support_count``/``support_ratio`` are recomputed.

    Items keyed ``PROVIDER_UNAVAILABLE`` are skipped; coverage is accounted
    for separately by the policy engine.

    Returns:
        Aggregated items in first-seen key order.
    """
    merged: dict[str, AggregatedEvidenceItem] = {}

    for provider in evidence_sets:
        source = EvidenceSource(
            provider_id=provider.provider_id,
            raw_sha256=provider.raw_sha256,
            observed_at=provider.timestamp,
        )
        for item in provider.evidence:
            if item.key == PROVIDER_UNAVAILABLE:
                continue

            existing = merged.get(item.key)
            if existing is None:
                merged[item.key] = _seed(item, source, total_providers_enabled)
            else:
                merged[item.key] = _merge(existing, item, source, total_providers_enabled)

    result = list(merged.values())
    logger.debug(
        "evidence_aggregated",
        providers=total_providers_enabled,
        items=len(result),
    )
    return result


def _seed(
    item: EvidenceItem,
    source: EvidenceSource,
    total_providers_enabled: int,
) -> AggregatedEvidenceItem:
    return AggregatedEvidenceItem(
        **item.model_dump(),
        sources=[source],
        support_count=1,
        support_ratio=support_ratio(1, total_providers_enabled),
    )


def _merge(
    existing: AggregatedEvidenceItem,
    incoming: EvidenceItem,
    source: EvidenceSource,
    total_providers_enabled: int,
) -> AggregatedEvidenceItem:
    sources = list(existing.sources)
    if all(s.provider_id != source.provider_id for s in sources):
        sources.append(source)

    if incoming.category != existing.category:
        logger.debug(
            "evidence_category_mismatch",
            key=existing.key,
            kept=existing.category.value,
            ignored=incoming.category.value,
            provider_id=source.provider_id,
        )

    update: dict[str, object] = {
        "severity": Severity.max(existing.severity, incoming.severity),
        "sources": sources,
        "support_count": len(sources),
        "support_ratio": support_ratio(len(sources), total_providers_enabled),
    }
    if incoming.detail:
        update["title"] = incoming.title
        update["detail"] = incoming.detail

    return existing.model_copy(update=update)
