"""Identity matching between record collections."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from coffin.domain.model import NodeKind, classify

if TYPE_CHECKING:
    from coffin.domain.model import Identifier, Record


def find_matching_index(identifier: Identifier | None, records: object) -> int | None:
    """Return the index of the first record in ``records`` whose id equals ``identifier``.

    Equality is exact: ``1``, ``1.0`` and ``True`` are different identifiers. A
    missing identifier never matches, and neither does anything that is not a
    collection of records.
    """

    if identifier is None or classify(records) is not NodeKind.COLLECTION:
        return None
    for index, record in enumerate(cast("list[Record]", records)):
        candidate = record.id
        if candidate is None:
            continue
        if type(candidate) is type(identifier) and candidate == identifier:
            return index
    return None
