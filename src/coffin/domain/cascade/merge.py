"""Merge a patch tree back into the contextual record tree."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from coffin.domain.model import NodeKind, classify

from .identity import find_matching_index

if TYPE_CHECKING:
    from coffin.domain.model import AssociationTree, Record

log = logging.getLogger(__name__)


def apply_patch(contextual: Record, patch: Record, *, associations: AssociationTree) -> None:
    """Mutate ``contextual`` in place so it carries every tombstoned child of ``patch``.

    Nothing already present in ``contextual`` is removed or overwritten: missing
    children are added, shared children are recursed into, and a contextual value
    whose shape disagrees with the patch is left as it is.
    """

    if contextual is patch:
        return
    for name in patch.properties():
        if name not in associations:
            continue
        value = patch[name]
        nested = associations.child(name)
        match classify(value):
            case NodeKind.COMPOSITE:
                _merge_one(contextual, name, cast("Record", value), associations=nested)
            case NodeKind.COLLECTION:
                _merge_many(contextual, name, cast("list[Record]", value), associations=nested)
            case _:
                continue


def _merge_one(
    contextual: Record,
    name: str,
    patch: Record,
    *,
    associations: AssociationTree,
) -> None:
    current = contextual.get(name)
    if current is None:
        contextual[name] = patch
        return
    if classify(current) is not NodeKind.COMPOSITE:
        log.warning("Skipping %r: contextual value is not a record", name)
        return
    apply_patch(cast("Record", current), patch, associations=associations)


def _merge_many(
    contextual: Record,
    name: str,
    patch: list[Record],
    *,
    associations: AssociationTree,
) -> None:
    if not patch:
        return
    current = contextual.get(name)
    if current is None:
        current = []
        contextual[name] = current
    elif classify(current) is not NodeKind.COLLECTION:
        log.warning("Skipping %r: contextual value is not a collection of records", name)
        return
    elif not isinstance(current, list):
        current = list(cast("tuple[Record, ...]", current))
        contextual[name] = current
    records = cast("list[Record]", current)
    for child in tuple(patch):
        index = find_matching_index(child.id, records)
        if index is None:
            records.append(child)
            continue
        apply_patch(records[index], child, associations=associations)
