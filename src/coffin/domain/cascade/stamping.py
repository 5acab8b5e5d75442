"""Flag stamping and recursive tombstoning of removed subtrees."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, Final, Protocol, cast

from coffin.domain.model import FlagKind, NodeKind, Record, classify, is_traversable

from .protection import ProtectionPolicy

if TYPE_CHECKING:
    from coffin.domain.model import AssociationTree, Value

log = logging.getLogger(__name__)

FLAG_DATETIME_FORMAT: Final[str] = "%Y/%m/%d %H:%M:%S"


class Clock(Protocol):
    def now(self) -> datetime: ...


@dataclass(frozen=True, slots=True)
class SystemClock:
    """Current time as local wall time, or in ``tz`` when one is given."""

    tz: tzinfo | None = None

    def now(self) -> datetime:
        return datetime.now(self.tz).astimezone(self.tz)


@dataclass(frozen=True, slots=True)
class FixedClock:
    """Always reports the same instant; for deterministic runs."""

    instant: datetime

    def now(self) -> datetime:
        return self.instant


def flag_value(kind: FlagKind, clock: Clock) -> str | bool:
    """Return the value written into the flag field of a tombstoned record."""

    if kind is FlagKind.TIMESTAMP:
        return clock.now().strftime(FLAG_DATETIME_FORMAT)
    return True


@dataclass(slots=True, kw_only=True)
class Tombstoner:
    """Stamps the deletion flag across removed subtrees.

    The input subtree is left untouched; a stamped copy is returned. One instance
    serves one save operation, so every record it stamps carries the same value.
    """

    flag: str
    flag_kind: FlagKind
    protection: ProtectionPolicy = field(default_factory=ProtectionPolicy)
    clock: Clock = field(default_factory=SystemClock)
    stamped: int = 0
    _value: str | bool | None = field(default=None, init=False, repr=False)

    @property
    def value(self) -> str | bool:
        if self._value is None:
            self._value = flag_value(self.flag_kind, self.clock)
        return self._value

    def tombstone(
        self,
        node: Value,
        *,
        protected: bool,
        associations: AssociationTree,
    ) -> Value:
        match classify(node):
            case NodeKind.COMPOSITE:
                return self._tombstone_record(
                    cast("Record", node), protected=protected, associations=associations
                )
            case NodeKind.COLLECTION:
                return [
                    self._tombstone_record(record, protected=protected, associations=associations)
                    for record in cast("list[Record]", node)
                ]
            case _:
                return node

    def _tombstone_record(
        self,
        record: Record,
        *,
        protected: bool,
        associations: AssociationTree,
    ) -> Record:
        stamped = record.copy()
        for name in record.properties():
            value = record[name]
            if name in associations and is_traversable(value):
                stamped[name] = self.tombstone(
                    value,
                    protected=self.protection.is_protected(name),
                    associations=associations.child(name),
                )
                continue
            if name == self.flag and not protected:
                stamped[name] = self.value
                self.stamped += 1
                log.debug("Tombstoned record id=%r (%s=%r)", record.id, name, self.value)
        return stamped
