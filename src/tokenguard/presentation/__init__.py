"""HTTP presentation layer (FastAPI)."""
from __future__ import annotations
