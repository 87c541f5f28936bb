"""Detector-specific forensic views returned alongside the scan bundle."""
from __future__ import annotations
