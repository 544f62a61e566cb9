# vmap/core/errors.py
from __future__ import annotations

from typing import Optional


class VMapError(Exception):
    """Base class for engine errors."""


class InvalidEntityError(VMapError):
    """A region/POI/path failed validation; the store logs and drops it."""

    def __init__(self, kind: str, entity_id: Optional[str], reason: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"invalid {kind} {entity_id!r}: {reason}")
