"""End-to-end behaviour of ``on_before_save`` against an in-memory store."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import pytest

from coffin.domain.cascade import CascadeSoftDelete
from coffin.domain.model import FlagKind, Record
from tests.helpers.records import (
    FROZEN_STAMP,
    FakeLoader,
    FakeRepository,
    child_by_id,
    children_of,
    frozen_clock,
    make_config,
    make_family,
)

if TYPE_CHECKING:
    from coffin.domain.model import Identifier


def _run(
    persistent: Record,
    contextual: Record,
    *,
    flag_kind: FlagKind = FlagKind.BOOLEAN,
    protected: tuple[str, ...] = (),
) -> FakeLoader:
    loader = FakeLoader(persistent)
    config = make_config(
        "children.grandchildren", flag_kind=flag_kind, protected=protected
    )
    CascadeSoftDelete(config, loader, clock=frozen_clock()).on_before_save(contextual)
    return loader


def test_removed_child_reappears_stamped() -> None:
    persistent = Record.from_dict(
        {"id": 1, "children": [{"id": 10, "deleted": False}, {"id": 11, "deleted": False}]}
    )
    contextual = Record.from_dict({"id": 1, "children": [{"id": 10, "deleted": False}]})

    _run(persistent, contextual)

    assert [child.id for child in children_of(contextual)] == [10, 11]
    assert child_by_id(contextual, 11)["deleted"] is True
    assert child_by_id(contextual, 10).to_dict() == {"id": 10, "deleted": False}


def test_protected_association_is_reinserted_unstamped() -> None:
    persistent = Record.from_dict(
        {"id": 1, "children": [{"id": 10, "deleted": False}, {"id": 11, "deleted": False}]}
    )
    contextual = Record.from_dict({"id": 1, "children": [{"id": 10, "deleted": False}]})

    _run(persistent, contextual, protected=("children",))

    assert [child.id for child in children_of(contextual)] == [10, 11]
    assert child_by_id(contextual, 11).to_dict() == {"id": 11, "deleted": False}


def test_removed_grandchild_is_reinserted_under_kept_child() -> None:
    contextual = make_family()
    first = child_by_id(contextual, 10)
    first["grandchildren"] = []

    _run(make_family(), contextual)

    first = child_by_id(contextual, 10)
    assert first["deleted"] is False
    (grandchild,) = children_of(first, "grandchildren")
    assert grandchild.id == 100
    assert grandchild["deleted"] is True
    assert child_by_id(contextual, 11)["deleted"] is False


def test_new_aggregate_is_left_alone_without_loading() -> None:
    contextual = Record.from_dict({"name": "fresh", "children": [{"name": "child"}]})
    before = contextual.to_dict()

    loader = _run(make_family(), contextual)

    assert loader.calls == []
    assert contextual.to_dict() == before


def test_timestamp_flag_is_stamped_in_fixed_format() -> None:
    contextual = Record.from_dict({"id": 1, "name": "parent", "deleted": None, "children": []})
    persistent = make_family()
    for child in children_of(persistent):
        child["deleted"] = None

    _run(persistent, contextual, flag_kind=FlagKind.TIMESTAMP)

    removed = child_by_id(contextual, 11)
    assert removed["deleted"] == FROZEN_STAMP
    assert isinstance(removed["deleted"], str)
    assert re.fullmatch(r"\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}", removed["deleted"])
    assert contextual["deleted"] is None


def test_deep_removal_stamps_every_descendant() -> None:
    contextual = Record(id=1, name="parent", deleted=False, children=[])

    _run(make_family(), contextual)

    first = child_by_id(contextual, 10)
    assert first["deleted"] is True
    assert children_of(first, "grandchildren")[0]["deleted"] is True
    assert child_by_id(contextual, 11)["deleted"] is True


def test_untouched_contextual_values_survive() -> None:
    contextual = make_family()
    contextual["name"] = "renamed"
    child_by_id(contextual, 10)["name"] = "edited"
    children_of(contextual).append(Record(name="newborn", deleted=False))
    contextual["children"] = [
        child for child in children_of(contextual) if child.id != 11
    ]

    _run(make_family(), contextual)

    assert contextual["name"] == "renamed"
    assert child_by_id(contextual, 10)["name"] == "edited"
    names = [child["name"] for child in children_of(contextual)]
    assert names == ["edited", "newborn", "second"]


def test_running_twice_is_idempotent() -> None:
    contextual = make_family()
    contextual["children"] = [child_by_id(contextual, 10)]
    loader = FakeLoader(make_family())
    behaviour = CascadeSoftDelete(
        make_config("children.grandchildren"), loader, clock=frozen_clock()
    )

    behaviour.on_before_save(contextual)
    once = contextual.to_dict()
    behaviour.on_before_save(contextual)

    assert contextual.to_dict() == once
    assert [child.id for child in children_of(contextual)] == [10, 11]


class UnreadableLoader(FakeLoader):
    """Reports every aggregate as stored but cannot read any of them."""

    def exists(self, identifier: Identifier) -> bool:
        _ = identifier
        return True


def test_unsaved_identifier_is_left_alone_without_loading() -> None:
    contextual = Record.from_dict({"id": 7, "name": "assigned", "children": [{"name": "child"}]})
    before = contextual.to_dict()

    loader = _run(make_family(), contextual)

    assert loader.calls == []
    assert contextual.to_dict() == before


def test_load_failure_propagates_before_any_change() -> None:
    contextual = Record(id=99, children=[])
    loader = UnreadableLoader(make_family())

    behaviour = CascadeSoftDelete(make_config("children"), loader, clock=frozen_clock())

    with pytest.raises(LookupError):
        behaviour.on_before_save(contextual)

    assert contextual.to_dict() == {"id": 99, "children": []}


def test_loader_receives_configured_associations() -> None:
    loader = _run(make_family(), make_family())

    ((identifier, associations),) = loader.calls
    assert identifier == 1
    assert associations.paths() == ("children.grandchildren",)


def test_attach_registers_before_save_listener() -> None:
    repository = FakeRepository(make_family())
    CascadeSoftDelete.attach(repository, make_config("children"), clock=frozen_clock())
    contextual = Record(id=1, name="parent", deleted=False, children=[])

    repository.save(contextual)

    assert len(repository.listeners) == 1
    assert [child["deleted"] for child in children_of(repository.saved[0])] == [True, True]
