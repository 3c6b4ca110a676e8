"""ACL facade: role and resource hierarchies over one permission matrix.

Resolution walks the cross-product of the role's ancestor path and the
resource's ancestor path, most specific first (role outer, resource
inner), and stops at the first pair with an explicit decision. A grant or
denial close to the role/resource therefore overrides an opposite setting
further up either tree, and the ``*::*`` default entry is consulted last.

Usage::

    from archly import Acl, Action

    acl = Acl()                         # default deny (whitelist)
    acl.add_role("staff")
    acl.add_role("editor", parent="staff")
    acl.allow("staff", "article")
    acl.deny_action("editor", "article", Action.DELETE)

    acl.is_allowed("editor", "article")                      # False
    acl.is_allowed_action("editor", "article", Action.READ)  # True
"""

from __future__ import annotations

import logging
from typing import Callable

from .config import AclConfig, DefaultPolicy
from .display import render_permissions, render_registry, render_tree
from .entry import Entry, EntryLike, entry_id
from .exceptions import DuplicateEntryError, NilEntryError, NonEmptyError
from .logging import AclLoggerAdapter, get_acl_logger
from .models import AclSnapshot
from .permissions.access import Access
from .permissions.constants import WILDCARD, Action
from .permissions.matrix import PermissionMap, PermissionMatrix
from .registry import Registry, validate_parents

logger = logging.getLogger(__name__)

Lookup = Callable[[str, str], Access]


class Acl:
    """Hierarchy-based access control list.

    Roles and resources may be given as :class:`Entry` objects or as plain
    string ids. ``None`` stands for "any role" / "any resource" in lookups
    and grants.

    Args:
        config: Optional configuration; its ``default_policy`` decides whether
            the ACL starts as a whitelist (deny) or a blacklist (allow).
    """

    def __init__(self, config: AclConfig | None = None) -> None:
        self.config = config or AclConfig()
        self._roles = Registry()
        self._resources = Registry()
        self._perms = PermissionMatrix(whitelist=self.config.default_policy != DefaultPolicy.ALLOW)

    @property
    def roles(self) -> Registry:
        return self._roles

    @property
    def resources(self) -> Registry:
        return self._resources

    @property
    def permissions(self) -> PermissionMatrix:
        return self._perms

    # ── Hierarchies ───────────────────────────────────────

    def add_resource(self, resource: EntryLike, parent: EntryLike = None) -> None:
        """Register a resource, optionally under a parent resource.

        Raises:
            DuplicateEntryError: If the resource is already registered.
            EntryNotFoundError: If the parent is not registered.
        """
        self._add(self._resources, resource, parent)

    def add_role(self, role: EntryLike, parent: EntryLike = None) -> None:
        """Register a role, optionally under a parent role.

        Raises:
            DuplicateEntryError: If the role is already registered.
            EntryNotFoundError: If the parent is not registered.
        """
        self._add(self._roles, role, parent)

    @staticmethod
    def _add(registry: Registry, entry: EntryLike, parent: EntryLike) -> None:
        if entry is None:
            raise NilEntryError("cannot register a nil entry")
        parent_id = entry_id(parent)
        if parent_id:
            registry.add_child(entry_id(entry), parent_id)
        else:
            registry.add(entry_id(entry))

    def remove_resource(self, resource: EntryLike, cascade: bool = False) -> list[str]:
        """Remove a resource and every permission on it.

        Args:
            resource: Resource to remove.
            cascade: Also remove all descendant resources and their
                permissions. Otherwise children move up to the parent.

        Returns:
            Ids of the removed resources.

        Raises:
            NilEntryError: If ``resource`` is None.
            EntryNotFoundError: If the resource is not registered.
        """
        if resource is None:
            raise NilEntryError("cannot remove a nil resource")
        removed = self._resources.remove(entry_id(resource), cascade)
        purged = sum(self._perms.remove_by_resource(r) for r in removed)
        logger.info("removed %d resource(s) and %d permission(s)", len(removed), purged)
        return removed

    def remove_role(self, role: EntryLike, cascade: bool = False) -> list[str]:
        """Remove a role and every permission granted to it.

        Args:
            role: Role to remove.
            cascade: Also remove all descendant roles and their permissions.
                Otherwise children move up to the parent.

        Returns:
            Ids of the removed roles.

        Raises:
            NilEntryError: If ``role`` is None.
            EntryNotFoundError: If the role is not registered.
        """
        if role is None:
            raise NilEntryError("cannot remove a nil role")
        removed = self._roles.remove(entry_id(role), cascade)
        purged = sum(self._perms.remove_by_role(r) for r in removed)
        logger.info("removed %d role(s) and %d permission(s)", len(removed), purged)
        return removed

    # ── Grants ────────────────────────────────────────────

    def allow(self, role: EntryLike, resource: EntryLike) -> None:
        """Allow every action on the resource to the role."""
        ro, re = self._register(role, resource)
        self._perms.allow(ro, re)

    def deny(self, role: EntryLike, resource: EntryLike) -> None:
        """Deny every action on the resource to the role."""
        ro, re = self._register(role, resource)
        self._perms.deny(ro, re)

    def allow_action(self, role: EntryLike, resource: EntryLike, action: Action | int | str) -> None:
        ro, re = self._register(role, resource)
        self._perms.allow_action(ro, re, action)

    def deny_action(self, role: EntryLike, resource: EntryLike, action: Action | int | str) -> None:
        ro, re = self._register(role, resource)
        self._perms.deny_action(ro, re, action)

    def allow_all_resource(self, role: EntryLike) -> None:
        """Allow the role on every resource."""
        self.allow(role, WILDCARD)

    def deny_all_resource(self, role: EntryLike) -> None:
        """Deny the role on every resource."""
        self.deny(role, WILDCARD)

    def allow_all_role(self, resource: EntryLike) -> None:
        """Allow every role on the resource."""
        self.allow(WILDCARD, resource)

    def deny_all_role(self, resource: EntryLike) -> None:
        """Deny every role on the resource."""
        self.deny(WILDCARD, resource)

    def make_default_allow(self) -> None:
        """Blacklist mode: allow anything not explicitly denied."""
        self._perms.make_default_allow()

    def make_default_deny(self) -> None:
        """Whitelist mode: deny anything not explicitly allowed."""
        self._perms.make_default_deny()

    def remove(self, role: EntryLike, resource: EntryLike) -> None:
        """Remove the permissions stored for the pair.

        ``remove(None, None)`` removes the default policy.

        Raises:
            EntryNotFoundError: If nothing is stored for the pair.
        """
        self._perms.remove(entry_id(role), entry_id(resource))

    def remove_action(self, role: EntryLike, resource: EntryLike, action: Action | int | str) -> None:
        """Remove one action's permission stored for the pair.

        Raises:
            EntryNotFoundError: If neither the action nor ALL is stored.
        """
        self._perms.remove_action(entry_id(role), entry_id(resource), action)

    def _register(self, role: EntryLike, resource: EntryLike) -> tuple[str, str]:
        ro, re = entry_id(role), entry_id(resource)
        for registry, eid in ((self._roles, ro), (self._resources, re)):
            if not eid or eid == WILDCARD:
                continue
            try:
                registry.add(eid)
            except DuplicateEntryError:
                pass  # already registered, possibly under a parent
        return ro, re

    # ── Resolution ────────────────────────────────────────

    def is_allowed(self, role: EntryLike, resource: EntryLike, action: Action | int | str = Action.ALL) -> bool:
        """Whether the role may perform ``action`` on the resource.

        With the default ``Action.ALL`` every action must be allowed.
        Returns False when nothing along either hierarchy decides.
        """
        action = Action.coerce(action)
        if action is Action.ALL:
            return self._resolve(role, resource, self._perms.is_allowed, Access.ALLOWED)
        return self.is_allowed_action(role, resource, action)

    def is_allowed_action(self, role: EntryLike, resource: EntryLike, action: Action | int | str) -> bool:
        action = Action.coerce(action)
        return self._resolve(
            role,
            resource,
            lambda ro, re: self._perms.is_allowed_action(ro, re, action),
            Access.ALLOWED,
        )

    def is_denied(self, role: EntryLike, resource: EntryLike, action: Action | int | str = Action.ALL) -> bool:
        """Whether the role is explicitly denied ``action`` on the resource.

        Not the negation of :meth:`is_allowed`: when nothing along either
        hierarchy decides, both return False.
        """
        action = Action.coerce(action)
        if action is Action.ALL:
            return self._resolve(role, resource, self._perms.is_denied, Access.DENIED)
        return self.is_denied_action(role, resource, action)

    def is_denied_action(self, role: EntryLike, resource: EntryLike, action: Action | int | str) -> bool:
        action = Action.coerce(action)
        return self._resolve(
            role,
            resource,
            lambda ro, re: self._perms.is_denied_action(ro, re, action),
            Access.DENIED,
        )

    def _resolve(self, role: EntryLike, resource: EntryLike, lookup: Lookup, target: Access) -> bool:
        ro, re = entry_id(role), entry_id(resource)
        role_path = self._roles.ancestor_path(ro)
        resource_path = self._resources.ancestor_path(re)
        debug = logger.isEnabledFor(logging.DEBUG)

        for aro in role_path:
            for aco in resource_path:
                access = lookup(aro, aco)
                if access.decisive:
                    if debug:
                        self._trace(ro, re).debug("%s decided by %s on %s", access.value, aro, aco)
                    return access is target
        if debug:
            self._trace(ro, re).debug("no decision along %s x %s", role_path, resource_path)
        return False

    @staticmethod
    def _trace(role: str, resource: str) -> AclLoggerAdapter:
        return get_acl_logger(__name__, role=role or WILDCARD, resource=resource or WILDCARD)

    # ── Import / export ───────────────────────────────────

    def clear(self) -> None:
        """Empty roles, resources and permissions, including the default.

        Call :meth:`make_default_allow` or :meth:`make_default_deny`
        afterwards if a default policy is needed.
        """
        self._perms.clear()
        self._resources.clear()
        self._roles.clear()

    def export_permissions(self) -> PermissionMap:
        return self._perms.export()

    def export_resources(self) -> dict[str, str]:
        return self._resources.export()

    def export_roles(self) -> dict[str, str]:
        return self._roles.export()

    def import_permissions(self, perms: PermissionMap) -> None:
        """Load permissions into an empty matrix.

        Raises:
            NonEmptyError: If any permission is stored, the default included.
        """
        if self._perms.size():
            raise NonEmptyError("permissions are not empty", store="permissions")
        self._perms.import_map(perms)

    def import_resources(self, resources: dict[str, str]) -> None:
        """Load a resource hierarchy into an empty registry.

        Raises:
            NonEmptyError: If any resource is registered.
        """
        if self._resources.size():
            raise NonEmptyError("resources are not empty", store="resources")
        self._resources.import_registry(resources)

    def import_roles(self, roles: dict[str, str]) -> None:
        """Load a role hierarchy into an empty registry.

        Raises:
            NonEmptyError: If any role is registered.
        """
        if self._roles.size():
            raise NonEmptyError("roles are not empty", store="roles")
        self._roles.import_registry(roles)

    def snapshot(self) -> AclSnapshot:
        """Export roles, resources and permissions as one model."""
        return AclSnapshot(
            roles=self.export_roles(),
            resources=self.export_resources(),
            permissions=self.export_permissions(),
        )

    def restore(self, snapshot: AclSnapshot) -> None:
        """Import a snapshot into an ACL whose three stores are all empty.

        Raises:
            NonEmptyError: If any store holds entries. Nothing is imported.
            CyclicHierarchyError: If either hierarchy has a cycle. Nothing
                is imported.
        """
        non_empty = [
            name
            for name, size in (
                ("roles", self._roles.size()),
                ("resources", self._resources.size()),
                ("permissions", self._perms.size()),
            )
            if size
        ]
        if non_empty:
            raise NonEmptyError(f"cannot restore into non-empty {', '.join(non_empty)}", stores=non_empty)
        validate_parents(snapshot.roles)
        validate_parents(snapshot.resources)
        self._roles.import_registry(snapshot.roles)
        self._resources.import_registry(snapshot.resources)
        self._perms.import_map(snapshot.permissions)

    # ── Visualization ─────────────────────────────────────

    def visualize(self) -> str:
        """Roles, resources and permissions as plain-text tables."""
        return "\n".join(
            [
                render_registry(self._roles),
                render_registry(self._resources),
                render_permissions(self._perms),
                "",
            ]
        )

    def visualize_permissions(self) -> str:
        return render_permissions(self._perms)

    def visualize_resources(self, loader: Entry) -> str:
        return render_tree(self._resources, loader)

    def visualize_roles(self, loader: Entry) -> str:
        return render_tree(self._roles, loader)

    def __repr__(self) -> str:
        return (
            f"Acl(roles={self._roles.size()}, resources={self._resources.size()}, "
            f"permissions={self._perms.size()})"
        )


__all__ = ["Acl"]
