"""Tri-state access signal returned by permission lookups.

A lookup on a single (role, resource) key either finds an explicit
decision or finds nothing that settles the question. ``Access.UNSET``
tells the resolver to keep walking toward the wildcard entries.
"""

from __future__ import annotations

from enum import Enum


class Access(str, Enum):
    """Outcome of a single permission lookup."""

    ALLOWED = "allowed"
    DENIED = "denied"
    UNSET = "unset"

    @classmethod
    def from_flag(cls, flag: bool) -> Access:
        """Map a stored boolean to ALLOWED (True) or DENIED (False)."""
        return cls.ALLOWED if flag else cls.DENIED

    @property
    def decisive(self) -> bool:
        return self is not Access.UNSET


__all__ = ["Access"]
