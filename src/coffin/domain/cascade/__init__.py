"""Cascading soft delete over record trees.

Flow for one save:
1) load the persistent version of the aggregate
2) diff it against the contextual version, tombstoning dropped children
3) merge the resulting patch into the contextual version in place
"""

from __future__ import annotations

from .compare import generate_patch
from .config import DEFAULT_FLAG, CascadeConfig
from .identity import find_matching_index
from .merge import apply_patch
from .protection import ProtectionPolicy
from .service import CascadeSoftDelete
from .stamping import (
    FLAG_DATETIME_FORMAT,
    Clock,
    FixedClock,
    SystemClock,
    Tombstoner,
    flag_value,
)

__all__ = [
    "DEFAULT_FLAG",
    "FLAG_DATETIME_FORMAT",
    "CascadeConfig",
    "CascadeSoftDelete",
    "Clock",
    "FixedClock",
    "ProtectionPolicy",
    "SystemClock",
    "Tombstoner",
    "apply_patch",
    "find_matching_index",
    "flag_value",
    "generate_patch",
]
