"""
Record trees:
composite nodes, collections of them, and the leaf values they carry.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Final, cast

from coffin.domain.model.enums import NodeKind

if TYPE_CHECKING:
    from collections.abc import Iterator
    from decimal import Decimal
    from uuid import UUID


ID_FIELD: Final[str] = "id"

# Closed set of object-like leaves that are never traversed nor stamped.
OPAQUE_LEAF_TYPES: Final[tuple[type, ...]] = (datetime, date, time, timedelta)

type Identifier = int | str | UUID
type Scalar = str | int | float | bool | bytes | Decimal | UUID | None
type Opaque = datetime | date | time | timedelta
type Value = Scalar | Opaque | Record | list[Record]


class Record:
    """Composite node: an ordered mapping of property names to values.

    The identifier lives in the ``id`` property. A record without one has not been
    persisted yet and never matches another record by identity.
    """

    __slots__ = ("_properties",)

    def __init__(self, properties: Mapping[str, Value] | None = None, /, **fields: Value) -> None:
        self._properties: dict[str, Value] = dict(properties or {})
        self._properties.update(fields)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Record:
        """Build a record tree from nested dicts and lists of dicts."""

        record = cls()
        for name, value in data.items():
            record[name] = _value_from_plain(value)
        return record

    @property
    def id(self) -> Identifier | None:
        return cast("Identifier | None", self._properties.get(ID_FIELD))

    @property
    def is_new(self) -> bool:
        return self.id is None

    def properties(self) -> tuple[str, ...]:
        return tuple(self._properties)

    def has(self, name: str) -> bool:
        """Return whether ``name`` is present with a non-null value."""
        return self._properties.get(name) is not None

    def get(self, name: str, default: Value = None) -> Value:
        return self._properties.get(name, default)

    def copy(self) -> Record:
        """Shallow copy: nested records and lists are shared."""
        return Record(self._properties)

    def to_dict(self) -> dict[str, object]:
        return {name: _value_to_plain(value) for name, value in self._properties.items()}

    def __getitem__(self, name: str) -> Value:
        return self._properties[name]

    def __setitem__(self, name: str, value: Value) -> None:
        self._properties[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._properties

    def __iter__(self) -> Iterator[str]:
        return iter(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    def __repr__(self) -> str:
        return f"Record({self._properties!r})"


def classify(value: object) -> NodeKind:
    """Return the node shape of ``value`` by type, never by duck-typing."""

    if isinstance(value, Record):
        return NodeKind.COMPOSITE
    if isinstance(value, list | tuple):
        items = cast("list[object] | tuple[object, ...]", value)
        if all(isinstance(item, Record) for item in items):
            return NodeKind.COLLECTION
        return NodeKind.SCALAR
    if isinstance(value, OPAQUE_LEAF_TYPES):
        return NodeKind.OPAQUE
    return NodeKind.SCALAR


def is_traversable(value: object) -> bool:
    return classify(value) in (NodeKind.COMPOSITE, NodeKind.COLLECTION)


def _value_from_plain(value: object) -> Value:
    if isinstance(value, Mapping):
        return Record.from_dict(cast("Mapping[str, object]", value))
    if isinstance(value, list):
        items = cast("list[object]", value)
        if all(isinstance(item, Mapping) for item in items):
            return [Record.from_dict(cast("Mapping[str, object]", item)) for item in items]
    return cast("Value", value)


def _value_to_plain(value: Value) -> object:
    if isinstance(value, Record):
        return value.to_dict()
    if classify(value) is NodeKind.COLLECTION:
        return [item.to_dict() for item in cast("list[Record]", value)]
    return value
