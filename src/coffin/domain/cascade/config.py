"""Normalized cascade configuration consumed by the core."""

from __future__ import annotations

from dataclasses import dataclass, field

from coffin.domain.model import AssociationTree, FlagKind

from .protection import ProtectionPolicy

DEFAULT_FLAG = "deleted"


@dataclass(frozen=True, slots=True, kw_only=True)
class CascadeConfig:
    """Immutable for the lifetime of one save operation."""

    flag: str = DEFAULT_FLAG
    flag_kind: FlagKind
    associations: AssociationTree = field(default_factory=AssociationTree)
    protected: frozenset[str] = field(default_factory=frozenset[str])

    @property
    def protection(self) -> ProtectionPolicy:
        return ProtectionPolicy(self.protected)
