"""Association paths the cascade is allowed to descend into."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from collections.abc import Callable

type AssociationSpec = (
    str
    | Mapping[str, AssociationSpec | None]
    | list[AssociationSpec]
    | tuple[AssociationSpec, ...]
)


@dataclass(frozen=True, slots=True)
class AssociationTree:
    """Immutable tree of association names.

    ``AssociationTree.build(["children.grandchildren", "owner"])`` and
    ``AssociationTree.build({"children": ["grandchildren"], "owner": None})`` are
    equivalent. Each level lists the association edges reachable from a record at
    that depth.
    """

    children: Mapping[str, AssociationTree] = field(default_factory=dict["str", "AssociationTree"])

    @classmethod
    def build(cls, spec: AssociationSpec | None) -> AssociationTree:
        tree: dict[str, AssociationTree] = {}
        _merge_spec(tree, spec)
        return cls(tree)

    @classmethod
    def from_paths(cls, *paths: str) -> AssociationTree:
        return cls.build(list(paths))

    @property
    def is_empty(self) -> bool:
        return not self.children

    def names(self) -> tuple[str, ...]:
        return tuple(self.children)

    def child(self, name: str) -> AssociationTree:
        return self.children.get(name) or _EMPTY

    def paths(self) -> tuple[str, ...]:
        """Return every leaf path in dotted notation, sorted."""

        collected: list[str] = []
        for name, subtree in self.children.items():
            if subtree.is_empty:
                collected.append(name)
                continue
            collected.extend(f"{name}.{path}" for path in subtree.paths())
        return tuple(sorted(collected))

    def map_names(self, rename: Callable[[str], str]) -> AssociationTree:
        tree: dict[str, AssociationTree] = {}
        for name, subtree in self.children.items():
            renamed = rename(name)
            mapped = subtree.map_names(rename)
            existing = tree.get(renamed)
            tree[renamed] = existing.union(mapped) if existing is not None else mapped
        return AssociationTree(tree)

    def union(self, other: AssociationTree) -> AssociationTree:
        tree = dict(self.children)
        for name, subtree in other.children.items():
            existing = tree.get(name)
            tree[name] = existing.union(subtree) if existing is not None else subtree
        return AssociationTree(tree)

    def __contains__(self, name: object) -> bool:
        return name in self.children


_EMPTY = AssociationTree()


def _merge_spec(tree: dict[str, AssociationTree], spec: AssociationSpec | None) -> None:
    if spec is None:
        return
    if isinstance(spec, str):
        _merge_path(tree, spec)
        return
    if isinstance(spec, Mapping):
        for name, nested in cast("Mapping[str, AssociationSpec | None]", spec).items():
            subtree: dict[str, AssociationTree] = {}
            _merge_spec(subtree, nested)
            _merge_path(tree, name, AssociationTree(subtree))
        return
    for item in spec:
        _merge_spec(tree, item)


def _merge_path(
    tree: dict[str, AssociationTree],
    path: str,
    leaf: AssociationTree = _EMPTY,
) -> None:
    names = [part.strip() for part in path.split(".")]
    if not all(names):
        raise ValueError(f"Invalid association path: {path!r}")
    subtree = leaf
    for name in reversed(names[1:]):
        subtree = AssociationTree({name: subtree})
    head = names[0]
    existing = tree.get(head)
    tree[head] = existing.union(subtree) if existing is not None else subtree
