from __future__ import annotations

from coffin.domain.cascade import ProtectionPolicy, Tombstoner, generate_patch
from coffin.domain.model import AssociationTree, FlagKind, Record
from tests.helpers.records import child_by_id, children_of, frozen_clock, make_family

TREE = AssociationTree.from_paths("children.grandchildren", "owner")


def _tombstoner(protected: tuple[str, ...] = ()) -> Tombstoner:
    return Tombstoner(
        flag="deleted",
        flag_kind=FlagKind.BOOLEAN,
        protection=ProtectionPolicy(frozenset(protected)),
        clock=frozen_clock(),
    )


def test_identical_trees_produce_an_unstamped_skeleton() -> None:
    tombstoner = _tombstoner()

    patch = generate_patch(
        make_family(), make_family(), associations=TREE, tombstoner=tombstoner
    )

    assert patch.to_dict() == {
        "id": 1,
        "children": [
            {"id": 10, "grandchildren": [{"id": 100}]},
            {"id": 11, "grandchildren": []},
        ],
    }
    assert tombstoner.stamped == 0


def test_missing_child_is_tombstoned_in_place_of_its_index() -> None:
    contextual = make_family()
    contextual["children"] = [child_by_id(contextual, 10)]

    patch = generate_patch(
        make_family(), contextual, associations=TREE, tombstoner=_tombstoner()
    )

    retained, removed = children_of(patch)
    assert retained.to_dict() == {"id": 10, "grandchildren": [{"id": 100}]}
    assert removed.to_dict() == {
        "id": 11,
        "name": "second",
        "deleted": True,
        "grandchildren": [],
    }


def test_children_are_matched_by_identity_not_position() -> None:
    contextual = make_family()
    contextual["children"] = list(reversed(children_of(contextual)))
    tombstoner = _tombstoner()

    patch = generate_patch(make_family(), contextual, associations=TREE, tombstoner=tombstoner)

    assert [child.id for child in children_of(patch)] == [10, 11]
    assert tombstoner.stamped == 0


def test_missing_collection_tombstones_every_child() -> None:
    contextual = Record(id=1, name="parent", deleted=False)
    tombstoner = _tombstoner()

    patch = generate_patch(make_family(), contextual, associations=TREE, tombstoner=tombstoner)

    assert [child["deleted"] for child in children_of(patch)] == [True, True]
    assert tombstoner.stamped == 3


def test_shape_mismatch_counts_as_missing() -> None:
    contextual = Record(id=1, children=Record(id=10))
    tombstoner = _tombstoner()

    patch = generate_patch(make_family(), contextual, associations=TREE, tombstoner=tombstoner)

    assert [child["deleted"] for child in children_of(patch)] == [True, True]


def test_missing_to_one_association_is_tombstoned() -> None:
    persistent = Record.from_dict({"id": 1, "owner": {"id": 5, "deleted": False}})
    contextual = Record(id=1, owner=None)

    patch = generate_patch(persistent, contextual, associations=TREE, tombstoner=_tombstoner())

    assert patch.to_dict() == {"id": 1, "owner": {"id": 5, "deleted": True}}


def test_present_to_one_association_is_recursed_into() -> None:
    persistent = Record.from_dict(
        {"id": 1, "owner": {"id": 5, "children": [{"id": 6, "deleted": False}]}}
    )
    contextual = Record.from_dict({"id": 1, "owner": {"id": 5, "children": []}})
    tree = AssociationTree.from_paths("owner.children")

    patch = generate_patch(persistent, contextual, associations=tree, tombstoner=_tombstoner())

    assert patch.to_dict() == {
        "id": 1,
        "owner": {"id": 5, "children": [{"id": 6, "deleted": True}]},
    }


def test_protected_edge_keeps_flag_but_stamps_descendants() -> None:
    contextual = Record(id=1)

    patch = generate_patch(
        make_family(),
        contextual,
        associations=TREE,
        tombstoner=_tombstoner(protected=("children",)),
    )

    first = child_by_id(patch, 10)
    assert first["deleted"] is False
    assert child_by_id(first, 100, "grandchildren")["deleted"] is True


def test_contextual_only_content_is_ignored() -> None:
    contextual = make_family()
    contextual["pets"] = [Record(name="new pet")]
    children_of(contextual).append(Record(name="newborn"))

    patch = generate_patch(
        make_family(),
        contextual,
        associations=AssociationTree.from_paths("children", "pets"),
        tombstoner=_tombstoner(),
    )

    assert "pets" not in patch
    assert [child.id for child in children_of(patch)] == [10, 11]


def test_unconfigured_associations_are_not_compared() -> None:
    contextual = Record(id=1)
    tombstoner = _tombstoner()

    patch = generate_patch(
        make_family(), contextual, associations=AssociationTree(), tombstoner=tombstoner
    )

    assert patch.to_dict() == {"id": 1}
    assert tombstoner.stamped == 0


def test_persistent_tree_is_not_mutated() -> None:
    persistent = make_family()

    generate_patch(persistent, Record(id=1), associations=TREE, tombstoner=_tombstoner())

    assert persistent.to_dict() == make_family().to_dict()
