"""Classify the deletion flag column from SQLAlchemy table metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, TypeDecorator

from coffin.config.errors import UnknownFlagFieldError, UnsupportedFlagTypeError
from coffin.domain.model import FlagKind

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.types import TypeEngine


class SqlAlchemyFlagTypeIntrospector:
    def __init__(self, table: Table) -> None:
        self.table = table

    def flag_kind(self, field: str) -> FlagKind:
        column = self.table.columns.get(field)
        if column is None:
            raise UnknownFlagFieldError(f"Table {self.table.name!r} has no column {field!r}")
        column_type = underlying_type(column.type)
        if isinstance(column_type, Boolean):
            return FlagKind.BOOLEAN
        if isinstance(column_type, DateTime | Date):
            return FlagKind.TIMESTAMP
        raise UnsupportedFlagTypeError(
            f"Column {self.table.name}.{field} has type {column_type!r}; "
            "expected a boolean or timestamp column"
        )


def underlying_type(column_type: TypeEngine[object]) -> TypeEngine[object]:
    if isinstance(column_type, TypeDecorator):
        return underlying_type(column_type.impl_instance)
    return column_type
