"""SQLAlchemy adapter package for Coffin."""

from __future__ import annotations

from .introspection import SqlAlchemyFlagTypeIntrospector
from .repositories import (
    AggregateNotFoundError,
    InvalidTimestampError,
    SqlAlchemyAggregateRepository,
)
from .schema import (
    AggregateSchema,
    Association,
    AssociationKind,
    TableSchema,
    belongs_to,
    has_many,
    has_one,
)
from .unit_of_work import (
    SqlAlchemyAggregateRepositories,
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    configured_schema,
    is_started,
    register_cascade,
    shutdown,
    startup,
)

__all__ = [
    "AggregateNotFoundError",
    "AggregateSchema",
    "Association",
    "AssociationKind",
    "InvalidTimestampError",
    "SqlAlchemyAggregateRepositories",
    "SqlAlchemyAggregateRepository",
    "SqlAlchemyFlagTypeIntrospector",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "TableSchema",
    "belongs_to",
    "configured_engine",
    "configured_schema",
    "has_many",
    "has_one",
    "is_started",
    "register_cascade",
    "shutdown",
    "startup",
]
