"""Infrastructure adapters (logging)."""
from __future__ import annotations
