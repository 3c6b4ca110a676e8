"""Permission matrix: (role, resource) → per-action decisions.

Each canonical key ``"<role>::<resource>"`` maps to a small dict of
action name → bool (True = explicitly allowed, False = explicitly denied).
An empty role or resource id is stored as the wildcard ``*``; the key
``*::*`` holds the default policy.

Lookups never raise. They return an :class:`Access` value and leave the
inheritance walk to the caller (see :mod:`archly.acl`).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from ..exceptions import EntryNotFoundError
from .access import Access
from .constants import DEFAULT_KEY, KEY_SEPARATOR, WILDCARD, Action

logger = logging.getLogger(__name__)

ActionMap = dict[str, bool]
PermissionMap = dict[str, ActionMap]

_ALL = Action.ALL.name
_SPECIFIC = tuple(a.name for a in Action.specific())


def make_key(role: str | None, resource: str | None) -> str:
    """Build the canonical key for a role/resource pair.

    Empty or missing ids are replaced by the wildcard.
    """
    return f"{role or WILDCARD}{KEY_SEPARATOR}{resource or WILDCARD}"


class PermissionMatrix:
    """Stores explicit allow/deny decisions per (role, resource) key.

    Args:
        whitelist: If True (default) the matrix starts with the default key
            denied; otherwise allowed.

    Example::

        perms = PermissionMatrix()
        perms.allow("editor", "article")
        perms.deny_action("editor", "article", Action.DELETE)
        perms.is_allowed_action("editor", "article", Action.READ)    # Access.ALLOWED
        perms.is_allowed_action("editor", "article", Action.DELETE)  # Access.DENIED
    """

    def __init__(self, whitelist: bool = True) -> None:
        self._perms: PermissionMap = {}
        if whitelist:
            self.make_default_deny()
        else:
            self.make_default_allow()

    # ── Mutation ──────────────────────────────────────────

    def allow(self, role: str | None, resource: str | None) -> None:
        """Allow every action, replacing any finer-grained entries."""
        key = make_key(role, resource)
        self._perms[key] = {_ALL: True}
        logger.debug("allow ALL on %s", key)

    def deny(self, role: str | None, resource: str | None) -> None:
        """Deny every action, replacing any finer-grained entries."""
        key = make_key(role, resource)
        self._perms[key] = {_ALL: False}
        logger.debug("deny ALL on %s", key)

    def allow_action(self, role: str | None, resource: str | None, action: Action | int | str) -> None:
        self._set_action(make_key(role, resource), Action.coerce(action), True)

    def deny_action(self, role: str | None, resource: str | None, action: Action | int | str) -> None:
        self._set_action(make_key(role, resource), Action.coerce(action), False)

    def _set_action(self, key: str, action: Action, flag: bool) -> None:
        # ALL is stored as-is here; it is not expanded into the specific kinds.
        self._perms.setdefault(key, {})[action.name] = flag
        logger.debug("%s %s on %s", "allow" if flag else "deny", action.name, key)

    def make_default_allow(self) -> None:
        """Blacklist mode: anything not explicitly denied is allowed."""
        self._perms[DEFAULT_KEY] = {_ALL: True}

    def make_default_deny(self) -> None:
        """Whitelist mode: anything not explicitly allowed is denied."""
        self._perms[DEFAULT_KEY] = {_ALL: False}

    def remove(self, role: str | None, resource: str | None) -> None:
        """Remove every decision stored for the pair.

        Raises:
            EntryNotFoundError: If nothing is stored for the pair.
        """
        key = make_key(role, resource)
        if key not in self._perms:
            raise EntryNotFoundError(f"permission {key} not found", key=key)
        del self._perms[key]
        logger.debug("removed %s", key)

    def remove_action(self, role: str | None, resource: str | None, action: Action | int | str) -> None:
        """Remove a single action's decision for the pair.

        If only an ``ALL`` decision is stored, it is split into the three
        other specific actions carrying the same value, so the removed
        action becomes unset while the rest keep their meaning.

        Raises:
            EntryNotFoundError: If the pair has no entry, or neither the
                action nor ``ALL`` is stored for it.
        """
        key = make_key(role, resource)
        action = Action.coerce(action)
        perm = self._perms.get(key)
        if perm is None:
            raise EntryNotFoundError(f"permission {key} not found", key=key)

        if action.name in perm:
            del perm[action.name]
        elif _ALL in perm:
            flag = perm.pop(_ALL)
            for name in _SPECIFIC:
                if name != action.name:
                    perm[name] = flag
        else:
            raise EntryNotFoundError(
                f"permission {action.name} not found on {key}",
                key=key,
                action=action.name,
            )

        if not perm:
            del self._perms[key]
        logger.debug("removed %s on %s", action.name, key)

    def remove_by_role(self, role: str) -> int:
        """Remove every key granted to ``role``. Returns the number removed."""
        prefix = (role or WILDCARD) + KEY_SEPARATOR
        return self._purge([key for key in self._perms if key.startswith(prefix)])

    def remove_by_resource(self, resource: str) -> int:
        """Remove every key on ``resource``. Returns the number removed."""
        suffix = KEY_SEPARATOR + (resource or WILDCARD)
        return self._purge([key for key in self._perms if key.endswith(suffix)])

    def _purge(self, keys: list[str]) -> int:
        for key in keys:
            del self._perms[key]
        if keys:
            logger.info("purged %d permission(s): %s", len(keys), ", ".join(sorted(keys)))
        return len(keys)

    def clear(self) -> None:
        """Remove everything, including the default policy."""
        self._perms = {}

    # ── Lookup ────────────────────────────────────────────

    def key_for(self, role: str | None, resource: str | None) -> str:
        """Canonical storage key for the pair, as used by :meth:`export`."""
        return make_key(role, resource)

    def has(self, role: str | None, resource: str | None) -> bool:
        return make_key(role, resource) in self._perms

    def get(self, role: str | None, resource: str | None) -> ActionMap | None:
        """Copy of the decisions stored for the pair, or None."""
        perm = self._perms.get(make_key(role, resource))
        return dict(perm) if perm is not None else None

    def is_allowed(self, role: str | None, resource: str | None) -> Access:
        """Whether every action is allowed on the pair.

        Returns:
            ``DENIED`` if any stored action is denied, ``ALLOWED`` if ``ALL``
            or all four specific actions are allowed, ``UNSET`` otherwise.
        """
        return self._aggregate(make_key(role, resource), True)

    def is_denied(self, role: str | None, resource: str | None) -> Access:
        """Whether every action is denied on the pair.

        Returns:
            ``ALLOWED`` if any stored action is allowed (so the pair is not
            denied), ``DENIED`` if ``ALL`` or all four specific actions are
            denied, ``UNSET`` otherwise.
        """
        return self._aggregate(make_key(role, resource), False)

    def is_allowed_action(self, role: str | None, resource: str | None, action: Action | int | str) -> Access:
        """Decision for one action: the specific entry first, then ``ALL``."""
        return self._lookup(make_key(role, resource), Action.coerce(action))

    def is_denied_action(self, role: str | None, resource: str | None, action: Action | int | str) -> Access:
        """Same lookup as :meth:`is_allowed_action`, read from the deny side.

        ``DENIED`` means the action is explicitly denied, ``ALLOWED`` means it
        is explicitly allowed and therefore not denied.
        """
        return self._lookup(make_key(role, resource), Action.coerce(action))

    def _aggregate(self, key: str, want: bool) -> Access:
        perm = self._perms.get(key)
        if perm is None:
            return Access.UNSET
        # A single decision against ``want`` settles it the other way.
        if any(bool(flag) is not want for flag in perm.values()):
            return Access.from_flag(not want)
        if _ALL in perm or all(name in perm for name in _SPECIFIC):
            return Access.from_flag(want)
        return Access.UNSET

    def _lookup(self, key: str, action: Action) -> Access:
        perm = self._perms.get(key)
        if perm is None:
            return Access.UNSET
        if action.name in perm:
            return Access.from_flag(perm[action.name])
        if _ALL in perm:
            return Access.from_flag(perm[_ALL])
        return Access.UNSET

    # ── Snapshot ──────────────────────────────────────────

    def export(self) -> PermissionMap:
        """Deep copy of all stored decisions."""
        return {key: dict(perm) for key, perm in self._perms.items()}

    def import_map(self, perms: Mapping[str, Mapping[str, bool]]) -> None:
        """Replace all stored decisions with a deep copy of ``perms``."""
        self._perms = {key: dict(perm) for key, perm in perms.items() if perm}
        logger.info("imported %d permission(s)", len(self._perms))

    def keys(self) -> list[str]:
        return list(self._perms)

    def size(self) -> int:
        return len(self._perms)

    def __len__(self) -> int:
        return len(self._perms)

    def __repr__(self) -> str:
        return f"PermissionMatrix(size={len(self._perms)})"


__all__ = [
    "ActionMap",
    "PermissionMap",
    "PermissionMatrix",
    "make_key",
]
