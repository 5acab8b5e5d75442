"""Aggregate schema: tables and the associations that link them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from coffin.config.errors import ConfigurationError
from coffin.domain.model import ID_FIELD

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from sqlalchemy import MetaData, Table

log = logging.getLogger(__name__)


class AssociationKind(StrEnum):
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO = "belongs_to"


@dataclass(frozen=True, slots=True)
class Association:
    """Edge from a source table to a target table.

    ``foreign_key`` lives on the target for ``HAS_ONE``/``HAS_MANY`` and on the
    source for ``BELONGS_TO``.
    """

    name: str
    target: str
    kind: AssociationKind
    foreign_key: str

    @property
    def is_collection(self) -> bool:
        return self.kind is AssociationKind.HAS_MANY


def has_many(name: str, target: str, *, foreign_key: str) -> Association:
    return Association(name, target, AssociationKind.HAS_MANY, foreign_key)


def has_one(name: str, target: str, *, foreign_key: str) -> Association:
    return Association(name, target, AssociationKind.HAS_ONE, foreign_key)


def belongs_to(name: str, target: str, *, foreign_key: str) -> Association:
    return Association(name, target, AssociationKind.BELONGS_TO, foreign_key)


@dataclass(frozen=True, slots=True)
class TableSchema:
    table: Table
    associations: Mapping[str, Association] = field(default_factory=dict["str", "Association"])

    @property
    def name(self) -> str:
        return self.table.name

    def association(self, name: str) -> Association:
        try:
            return self.associations[name]
        except KeyError:
            raise ConfigurationError(
                f"Table {self.name!r} has no association named {name!r}"
            ) from None


class AggregateSchema:
    """Registry of the tables an aggregate repository can read and write."""

    def __init__(self, metadata: MetaData) -> None:
        self.metadata = metadata
        self._tables: dict[str, TableSchema] = {}

    def register(self, table: Table, *associations: Association) -> TableSchema:
        primary_key = [column.key for column in table.primary_key.columns]
        if primary_key != [ID_FIELD]:
            raise ConfigurationError(
                f"Table {table.name!r} must have a single {ID_FIELD!r} primary key column"
            )
        table_schema = TableSchema(
            table, {association.name: association for association in associations}
        )
        self._tables[table.name] = table_schema
        log.debug(
            "Registered table %s with associations %s",
            table.name,
            sorted(table_schema.associations),
        )
        return table_schema

    def validate(self) -> None:
        """Check that every association points at a registered table and column."""

        for table_schema in self._tables.values():
            for association in table_schema.associations.values():
                target = self[association.target]
                owner = (
                    table_schema if association.kind is AssociationKind.BELONGS_TO else target
                )
                if association.foreign_key not in owner.table.columns:
                    raise ConfigurationError(
                        f"Association {table_schema.name}.{association.name} refers to missing "
                        f"column {owner.name}.{association.foreign_key}"
                    )

    def __getitem__(self, name: str) -> TableSchema:
        try:
            return self._tables[name]
        except KeyError:
            raise ConfigurationError(f"Table {name!r} is not registered") from None

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __iter__(self) -> Iterator[TableSchema]:
        return iter(self._tables.values())
