"""Ports for loading and writing record aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable

    from coffin.domain.model import AssociationTree, FlagKind, Identifier, Record

type BeforeSaveListener = Callable[[Record], None]


@runtime_checkable
class AggregateLoader(Protocol):
    """Point-read of a persisted aggregate, populated down to ``associations``."""

    def exists(self, identifier: Identifier) -> bool: ...

    def load(self, identifier: Identifier, associations: AssociationTree) -> Record: ...


@runtime_checkable
class FlagTypeIntrospector(Protocol):
    """Schema lookup classifying the deletion flag column."""

    def flag_kind(self, field: str) -> FlagKind: ...


@runtime_checkable
class SupportsBeforeSave(Protocol):
    def add_before_save_listener(self, listener: BeforeSaveListener) -> None: ...


@runtime_checkable
class AggregateRepository(AggregateLoader, SupportsBeforeSave, Protocol):
    """Persistence contract for one aggregate root table."""

    def save(self, record: Record) -> Record: ...
