"""Association edges exempt from flag stamping."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ProtectionPolicy:
    """Per-edge lookup; protection is never inherited by descendant edges."""

    protected: frozenset[str] = field(default_factory=frozenset[str])

    def is_protected(self, edge: str) -> bool:
        return edge in self.protected
