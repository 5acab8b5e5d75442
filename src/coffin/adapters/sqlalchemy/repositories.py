"""Aggregate repository backed by SQLAlchemy Core tables."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import Date, DateTime, insert, select, update

from coffin.domain.cascade import FLAG_DATETIME_FORMAT
from coffin.domain.model import ID_FIELD, AssociationTree, NodeKind, Record, classify

from .introspection import SqlAlchemyFlagTypeIntrospector, underlying_type
from .schema import AssociationKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Column, RowMapping
    from sqlalchemy.orm import Session

    from coffin.domain.model import Identifier, Value
    from coffin.domain.ports import BeforeSaveListener

    from .schema import AggregateSchema, TableSchema

log = logging.getLogger(__name__)


class AggregateNotFoundError(LookupError):
    """Raised when the root row of an aggregate does not exist."""


class InvalidTimestampError(ValueError):
    """Raised when text bound for a temporal column is not in the flag format."""


class SqlAlchemyAggregateRepository:
    """Reads and writes record trees rooted at one table.

    ``save`` runs every before-save listener on the record first, then writes the
    root row and the rows of its registered associations. Rows are inserted or
    updated, never deleted.
    """

    def __init__(self, session: Session, schema: AggregateSchema, table_name: str) -> None:
        self.session = session
        self._schema = schema
        self._root = schema[table_name]
        self._listeners: list[BeforeSaveListener] = []

    @property
    def table_name(self) -> str:
        return self._root.name

    def flag_introspector(self) -> SqlAlchemyFlagTypeIntrospector:
        return SqlAlchemyFlagTypeIntrospector(self._root.table)

    def add_before_save_listener(self, listener: BeforeSaveListener) -> None:
        self._listeners.append(listener)

    def exists(self, identifier: Identifier) -> bool:
        return self._fetch_by_id(self._root, identifier) is not None

    def load(self, identifier: Identifier, associations: AssociationTree) -> Record:
        row = self._fetch_by_id(self._root, identifier)
        if row is None:
            raise AggregateNotFoundError(f"No {self._root.name} record with id {identifier!r}")
        log.debug("Loading %s id=%r with %s", self._root.name, identifier, associations.paths())
        return self._hydrate(self._root, row, associations)

    def get(self, identifier: Identifier, *paths: str) -> Record:
        return self.load(identifier, AssociationTree.from_paths(*paths))

    def save(self, record: Record) -> Record:
        for listener in self._listeners:
            listener(record)
        self._write(self._root, record, {})
        return record

    # Reading -------------------------------------------------------------------

    def _fetch_by_id(self, table_schema: TableSchema, identifier: object) -> RowMapping | None:
        table = table_schema.table
        stmt = select(table).where(table.c[ID_FIELD] == identifier)
        return self.session.execute(stmt).mappings().first()

    def _hydrate(
        self,
        table_schema: TableSchema,
        row: RowMapping,
        associations: AssociationTree,
    ) -> Record:
        record = Record({column.key: row[column.key] for column in table_schema.table.columns})
        for name in associations.names():
            association = table_schema.association(name)
            target = self._schema[association.target]
            nested = associations.child(name)
            match association.kind:
                case AssociationKind.HAS_MANY:
                    rows = self._fetch_children(target, association.foreign_key, record.id)
                    record[name] = [self._hydrate(target, child, nested) for child in rows]
                case AssociationKind.HAS_ONE:
                    rows = self._fetch_children(target, association.foreign_key, record.id)
                    record[name] = self._hydrate(target, rows[0], nested) if rows else None
                case AssociationKind.BELONGS_TO:
                    key = record.get(association.foreign_key)
                    parent = self._fetch_by_id(target, key) if key is not None else None
                    record[name] = (
                        self._hydrate(target, parent, nested) if parent is not None else None
                    )
        return record

    def _fetch_children(
        self,
        table_schema: TableSchema,
        foreign_key: str,
        identifier: Identifier | None,
    ) -> list[RowMapping]:
        table = table_schema.table
        stmt = (
            select(table)
            .where(table.c[foreign_key] == identifier)
            .order_by(table.c[ID_FIELD])
        )
        return list(self.session.execute(stmt).mappings().all())

    # Writing -------------------------------------------------------------------

    def _write(
        self,
        table_schema: TableSchema,
        record: Record,
        assignments: Mapping[str, Value],
    ) -> None:
        for association in table_schema.associations.values():
            if association.kind is not AssociationKind.BELONGS_TO:
                continue
            parent = record.get(association.name)
            if isinstance(parent, Record):
                self._write(self._schema[association.target], parent, {})
                record[association.foreign_key] = parent.id

        for key, value in assignments.items():
            record[key] = value
        self._upsert(table_schema, record)

        for association in table_schema.associations.values():
            if association.kind is AssociationKind.BELONGS_TO:
                continue
            target = self._schema[association.target]
            for child in _records_in(record.get(association.name)):
                self._write(target, child, {association.foreign_key: record.id})

    def _upsert(self, table_schema: TableSchema, record: Record) -> None:
        table = table_schema.table
        values: dict[str, Any] = {
            column.key: _coerce(column, record[column.key])
            for column in table.columns
            if column.key in record and column.key != ID_FIELD
        }
        identifier = record.id
        if identifier is None:
            result = self.session.execute(insert(table).values(**values))
            record[ID_FIELD] = cast("Identifier", result.inserted_primary_key[0])
            log.debug("Inserted %s id=%r", table.name, record.id)
            return

        if self._fetch_by_id(table_schema, identifier) is None:
            self.session.execute(insert(table).values(**values, **{ID_FIELD: identifier}))
            log.debug("Inserted %s id=%r", table.name, identifier)
            return
        if values:
            self.session.execute(
                update(table).where(table.c[ID_FIELD] == identifier).values(**values)
            )
            log.debug("Updated %s id=%r", table.name, identifier)


def _records_in(value: Value) -> list[Record]:
    match classify(value):
        case NodeKind.COMPOSITE:
            return [cast("Record", value)]
        case NodeKind.COLLECTION:
            return list(cast("list[Record]", value))
        case _:
            return []


def _coerce(column: Column[Any], value: Value) -> object:
    """Turn stamped flag text back into the column's temporal type.

    The text carries no offset: it is stored as the wall time of the clock that
    stamped it.
    """

    if not isinstance(value, str):
        return value
    column_type = underlying_type(column.type)
    if not isinstance(column_type, DateTime | Date):
        return value
    try:
        parsed = datetime.strptime(value, FLAG_DATETIME_FORMAT)  # noqa: DTZ007
    except ValueError as exc:
        raise InvalidTimestampError(
            f"Cannot store {value!r} in {column.table.name}.{column.key}: "
            f"expected a datetime or text in {FLAG_DATETIME_FORMAT!r} format"
        ) from exc
    return parsed.date() if isinstance(column_type, Date) else parsed

