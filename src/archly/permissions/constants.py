"""Action kinds and key constants for the permission matrix.

Provides:
- ``Action``: the kinds of access that can be granted or denied.
- ``WILDCARD``: id standing for "any role" / "any resource".
- ``KEY_SEPARATOR`` / ``DEFAULT_KEY``: canonical permission key format.
"""

from __future__ import annotations

from enum import IntEnum

# ── Keys ────────────────────────────────────────────────

WILDCARD = "*"
KEY_SEPARATOR = "::"
DEFAULT_KEY = f"{WILDCARD}{KEY_SEPARATOR}{WILDCARD}"


# ── Actions ─────────────────────────────────────────────


class Action(IntEnum):
    """Kinds of access on a resource.

    ``ALL`` is shorthand for all four specific kinds at once. Stored
    permissions are keyed by the member name (``"ALL"``, ``"CREATE"``, ...).
    """

    ALL = 1
    CREATE = 2
    READ = 3
    UPDATE = 4
    DELETE = 5

    @classmethod
    def coerce(cls, value: Action | int | str | None) -> Action:
        """Convert an action code or name to an Action.

        Unknown codes and names fall back to ``ALL``.

        Example::

            Action.coerce(3)         # Action.READ
            Action.coerce("update")  # Action.UPDATE
            Action.coerce(10)        # Action.ALL
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper(), cls.ALL)
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                return cls.ALL
        return cls.ALL

    @classmethod
    def specific(cls) -> tuple[Action, ...]:
        """The four specific kinds covered by ``ALL``."""
        return (cls.CREATE, cls.READ, cls.UPDATE, cls.DELETE)

    def __str__(self) -> str:
        return self.name


ACTION_NAMES: frozenset[str] = frozenset(Action.__members__)


__all__ = [
    "ACTION_NAMES",
    "Action",
    "DEFAULT_KEY",
    "KEY_SEPARATOR",
    "WILDCARD",
]
