"""TokenGuard domain layer: entities and value objects."""
from __future__ import annotations
