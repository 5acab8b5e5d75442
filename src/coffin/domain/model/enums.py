"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class FlagKind(StrEnum):
    """Value domain of the deletion marker."""

    TIMESTAMP = "timestamp"
    BOOLEAN = "boolean"


class NodeKind(StrEnum):
    """Shape of a value found in a record tree."""

    SCALAR = "scalar"
    OPAQUE = "opaque"
    COMPOSITE = "composite"
    COLLECTION = "collection"
