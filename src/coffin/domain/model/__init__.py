"""Record tree model shared by the cascade core and the adapters."""

from __future__ import annotations

from .associations import AssociationSpec, AssociationTree
from .enums import FlagKind, NodeKind
from .node import (
    ID_FIELD,
    OPAQUE_LEAF_TYPES,
    Identifier,
    Record,
    Value,
    classify,
    is_traversable,
)

__all__ = [
    "ID_FIELD",
    "OPAQUE_LEAF_TYPES",
    "AssociationSpec",
    "AssociationTree",
    "FlagKind",
    "Identifier",
    "NodeKind",
    "Record",
    "Value",
    "classify",
    "is_traversable",
]
