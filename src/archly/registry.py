"""Hierarchy registry for roles and resources.

A registry is a forest of string ids. Each id maps to its parent id, or to
``""`` for a root. Parents must be registered before their children, so
the only way to grow the tree is downward. Imported maps are checked
for cycles before they replace the registry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping

from .exceptions import CyclicHierarchyError, DuplicateEntryError, EntryNotFoundError
from .permissions.constants import WILDCARD

logger = logging.getLogger(__name__)

ROOT_PARENT = ""


class Registry:
    """Parent pointers for one hierarchy (roles or resources).

    Example::

        roles = Registry()
        roles.add("staff")
        roles.add_child("editor", "staff")
        roles.ancestor_path("editor")  # ["editor", "staff", "*"]
    """

    def __init__(self) -> None:
        self._parents: dict[str, str] = {}

    def add(self, entry_id: str) -> None:
        """Register ``entry_id`` as a root.

        Raises:
            DuplicateEntryError: If ``entry_id`` is already registered.
        """
        if entry_id in self._parents:
            raise DuplicateEntryError(f"duplicate entry {entry_id!r} in registry", entry_id=entry_id)
        self._parents[entry_id] = ROOT_PARENT

    def add_child(self, entry_id: str, parent_id: str) -> None:
        """Register ``entry_id`` under ``parent_id``.

        The duplicate check runs before the parent check.

        Raises:
            DuplicateEntryError: If ``entry_id`` is already registered.
            EntryNotFoundError: If ``parent_id`` is not registered.
        """
        if entry_id in self._parents:
            raise DuplicateEntryError(f"duplicate entry {entry_id!r} in registry", entry_id=entry_id)
        if parent_id not in self._parents:
            raise EntryNotFoundError(f"parent {parent_id!r} not found in registry", entry_id=parent_id)
        self._parents[entry_id] = parent_id

    def has(self, entry_id: str) -> bool:
        return entry_id in self._parents

    def has_children(self, entry_id: str) -> bool:
        return any(parent == entry_id for parent in self._parents.values())

    def children(self, entry_id: str) -> list[str]:
        """Direct children of ``entry_id``, in registration order.

        ``""`` lists the roots.
        """
        return [child for child, parent in self._parents.items() if parent == entry_id]

    def roots(self) -> list[str]:
        """Ids whose parent is empty or not registered (e.g. an imported ``*``)."""
        return [child for child, parent in self._parents.items() if not parent or parent not in self._parents]

    def parent(self, entry_id: str) -> str:
        """Parent id of ``entry_id`` (``""`` for a root).

        Raises:
            EntryNotFoundError: If ``entry_id`` is not registered.
        """
        try:
            return self._parents[entry_id]
        except KeyError:
            raise EntryNotFoundError(f"entry {entry_id!r} not found in registry", entry_id=entry_id) from None

    def ancestor_path(self, entry_id: str | None) -> list[str]:
        """Ids from ``entry_id`` up to its root, followed by the wildcard.

        An empty id (or the wildcard itself) yields ``["*"]``. An id that is
        not registered yields ``[entry_id, "*"]``: permissions may reference
        ids that were never added to the hierarchy.
        """
        if not entry_id or entry_id == WILDCARD:
            return [WILDCARD]

        path = [entry_id]
        current = self._parents.get(entry_id, ROOT_PARENT)
        while current and current in self._parents:
            path.append(current)
            current = self._parents[current]
        path.append(WILDCARD)
        return path

    def remove(self, entry_id: str, cascade: bool = False) -> list[str]:
        """Remove ``entry_id`` from the registry.

        Args:
            entry_id: Id to remove.
            cascade: If True, every descendant is removed too. Otherwise the
                direct children are moved up to ``entry_id``'s parent.

        Returns:
            All removed ids; descendants first, ``entry_id`` last.

        Raises:
            EntryNotFoundError: If ``entry_id`` is not registered.
        """
        if entry_id not in self._parents:
            raise EntryNotFoundError(f"entry {entry_id!r} not found in registry", entry_id=entry_id)

        removed: list[str] = []
        children = self.children(entry_id)
        if children:
            if cascade:
                removed.extend(self._remove_descendants(children))
            else:
                parent = self._parents[entry_id]
                for child in children:
                    self._parents[child] = parent
                logger.debug("reparented %d child(ren) of %s to %r", len(children), entry_id, parent)

        del self._parents[entry_id]
        removed.append(entry_id)
        return removed

    def _remove_descendants(self, entry_ids: list[str]) -> list[str]:
        removed: list[str] = []
        for entry_id in entry_ids:
            grandchildren = self.children(entry_id)
            del self._parents[entry_id]
            removed.append(entry_id)
            removed.extend(self._remove_descendants(grandchildren))
        return removed

    def clear(self) -> None:
        self._parents = {}

    def export(self) -> dict[str, str]:
        """Copy of the id → parent id mapping."""
        return dict(self._parents)

    def import_registry(self, parents: Mapping[str, str]) -> None:
        """Replace the whole registry with a copy of ``parents``.

        ``None`` parents are stored as roots. The registry is left untouched
        if the mapping does not describe a forest.

        Raises:
            CyclicHierarchyError: If an entry is its own parent or ancestor.
        """
        self._parents = validate_parents(parents)
        logger.info("imported %d registry entr(ies)", len(self._parents))

    def size(self) -> int:
        return len(self._parents)

    def __len__(self) -> int:
        return len(self._parents)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._parents

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._parents))

    def __repr__(self) -> str:
        return f"Registry(size={len(self._parents)})"


def validate_parents(parents: Mapping[str, str]) -> dict[str, str]:
    """Normalize an id → parent mapping and check that it has no cycle.

    A parent that is empty or absent from the mapping ends a chain.

    Raises:
        CyclicHierarchyError: If following parents from some id returns to it.
    """
    normalized = {entry_id: parent or ROOT_PARENT for entry_id, parent in parents.items()}
    acyclic: set[str] = set()
    for start in normalized:
        chain: list[str] = []
        seen: set[str] = set()
        current = start
        while current in normalized and current not in acyclic:
            if current in seen:
                cycle = chain[chain.index(current):] + [current]
                raise CyclicHierarchyError(
                    f"cyclic hierarchy: {' -> '.join(cycle)}",
                    cycle=cycle,
                )
            seen.add(current)
            chain.append(current)
            current = normalized[current]
        acyclic.update(chain)
    return normalized


def format_path(path: list[str]) -> str:
    """Render an ancestor path as ``- -> a -> b -> * <``."""
    return "-" + "".join(f" -> {p}" for p in path) + " <"


__all__ = [
    "ROOT_PARENT",
    "Registry",
    "format_path",
    "validate_parents",
]
