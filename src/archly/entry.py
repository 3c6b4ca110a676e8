"""Entry contract between the embedding application and the ACL.

Roles and resources are the caller's own objects. The ACL only needs a
stable string id from them; the description and child lookup are used
when rendering the hierarchies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from .permissions.constants import WILDCARD


class Entry(ABC):
    """A role or resource known to the ACL."""

    @abstractmethod
    def get_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_entry_desc(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def retrieve_entry(self, entry_id: str) -> Optional["Entry"]:
        """Load the entry for ``entry_id``; used for tree printing."""
        raise NotImplementedError


@dataclass(frozen=True)
class SimpleEntry(Entry):
    """Entry whose description is its id."""

    entry_id: str = ""

    def get_id(self) -> str:
        return self.entry_id

    def get_entry_desc(self) -> str:
        return self.entry_id

    def retrieve_entry(self, entry_id: str) -> "SimpleEntry":
        return SimpleEntry(entry_id)


class RootEntry(Entry):
    """The catch-all role/resource, id ``*``."""

    def get_id(self) -> str:
        return WILDCARD

    def get_entry_desc(self) -> str:
        return "ROOT"

    def retrieve_entry(self, entry_id: str) -> None:
        return None

    def __repr__(self) -> str:
        return "RootEntry()"


EntryLike = Union[Entry, str, None]


def entry_id(entry: EntryLike) -> str:
    """Extract the id from an Entry, a plain string id, or None.

    None yields ``""`` (unspecified). Objects that are neither strings nor
    expose a ``get_id()`` returning a string raise TypeError.
    """
    if entry is None:
        return ""
    if isinstance(entry, str):
        return entry
    get_id = getattr(entry, "get_id", None)
    if callable(get_id):
        value = get_id()
        if isinstance(value, str):
            return value
    raise TypeError(f"Invalid entry type {type(entry).__name__}: expected str or object with get_id() -> str")


__all__ = [
    "Entry",
    "EntryLike",
    "RootEntry",
    "SimpleEntry",
    "entry_id",
]
