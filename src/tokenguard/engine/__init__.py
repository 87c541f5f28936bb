"""Core engines: aggregation, policy, bundle rendering and the scan pipeline."""
from __future__ import annotations

from tokenguard.engine.aggregator import aggregate, support_ratio
from tokenguard.engine.bundle_builder import build_bundle
from tokenguard.engine.policy import PolicyEngine, evaluate_policy

__all__ = ["PolicyEngine", "aggregate", "build_bundle", "evaluate_policy", "support_ratio"]
