"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    AggregateLoader,
    AggregateRepository,
    BeforeSaveListener,
    FlagTypeIntrospector,
    SupportsBeforeSave,
)
from .unit_of_work import (
    AggregateRepositoryCollection,
    AggregateUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AggregateLoader",
    "AggregateRepository",
    "AggregateRepositoryCollection",
    "AggregateUnitOfWork",
    "BeforeSaveListener",
    "FlagTypeIntrospector",
    "RepositoryCollection",
    "SupportsBeforeSave",
    "UnitOfWork",
]
