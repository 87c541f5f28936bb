"""Shared kernel: base models, parsing helpers and the exception hierarchy."""
from __future__ import annotations
