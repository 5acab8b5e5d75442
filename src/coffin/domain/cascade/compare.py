"""Diff a persistent record tree against its contextual counterpart."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from coffin.domain.model import ID_FIELD, NodeKind, Record, classify

from .identity import find_matching_index

if TYPE_CHECKING:
    from coffin.domain.model import AssociationTree, Value

    from .stamping import Tombstoner

log = logging.getLogger(__name__)


def generate_patch(
    persistent: Record,
    contextual: Record,
    *,
    associations: AssociationTree,
    tombstoner: Tombstoner,
) -> Record:
    """Build the patch for one record pair.

    The patch keeps the persistent identifier and the configured associations
    only. Children missing from ``contextual`` are tombstoned copies of the whole
    persistent subtree; children present in both carry their own patch. Scalars
    are never copied into a retained node, and associations that only exist in
    ``contextual`` are ignored.
    """

    patch = Record({ID_FIELD: persistent.id}) if ID_FIELD in persistent else Record()
    for name in persistent.properties():
        if name not in associations:
            continue
        value = persistent[name]
        nested = associations.child(name)
        protected = tombstoner.protection.is_protected(name)
        match classify(value):
            case NodeKind.COMPOSITE:
                patch[name] = _patch_one(
                    cast("Record", value),
                    contextual.get(name),
                    name=name,
                    protected=protected,
                    associations=nested,
                    tombstoner=tombstoner,
                )
            case NodeKind.COLLECTION:
                patch[name] = _patch_many(
                    cast("list[Record]", value),
                    contextual.get(name),
                    name=name,
                    protected=protected,
                    associations=nested,
                    tombstoner=tombstoner,
                )
            case _:
                continue
    return patch


def _patch_one(
    persistent: Record,
    counterpart: Value,
    *,
    name: str,
    protected: bool,
    associations: AssociationTree,
    tombstoner: Tombstoner,
) -> Record:
    if classify(counterpart) is not NodeKind.COMPOSITE:
        log.debug("Association %r (id=%r) missing from contextual", name, persistent.id)
        return cast(
            "Record",
            tombstoner.tombstone(persistent, protected=protected, associations=associations),
        )
    return generate_patch(
        persistent,
        cast("Record", counterpart),
        associations=associations,
        tombstoner=tombstoner,
    )


def _patch_many(
    persistent: list[Record],
    counterparts: Value,
    *,
    name: str,
    protected: bool,
    associations: AssociationTree,
    tombstoner: Tombstoner,
) -> list[Record]:
    patched: list[Record] = []
    for child in persistent:
        index = find_matching_index(child.id, counterparts)
        if index is None:
            log.debug("Child %r (id=%r) missing from contextual", name, child.id)
            patched.append(
                cast(
                    "Record",
                    tombstoner.tombstone(child, protected=protected, associations=associations),
                )
            )
            continue
        patched.append(
            generate_patch(
                child,
                cast("list[Record]", counterparts)[index],
                associations=associations,
                tombstoner=tombstoner,
            )
        )
    return patched
