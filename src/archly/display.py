"""Plain-text rendering of registries and permissions.

Used by ``Acl.visualize*``; nothing here takes part in access decisions.
"""

from __future__ import annotations

from .entry import Entry
from .permissions.constants import WILDCARD
from .permissions.matrix import PermissionMatrix
from .registry import Registry


def render_registry(registry: Registry) -> str:
    """One line per id: ``<id> - <parent>``, ids right-aligned."""
    parents = registry.export()
    if not parents:
        return ""
    width = max(len(entry_id) for entry_id in parents)
    lines = [f"\t{entry_id.rjust(width)} - {parent or WILDCARD}" for entry_id, parent in parents.items()]
    return "\n".join(lines) + "\n"


def render_tree(registry: Registry, loader: Entry, leading: str = "", entry_id: str | None = None) -> str:
    """Indented tree of entry descriptions.

    Args:
        registry: Hierarchy to render.
        loader: Resolves ids back to entries for their descriptions. Ids the
            loader cannot resolve are printed as-is.
        leading: Indentation prefix for this level.
        entry_id: Subtree root; None renders every root.
    """
    ids = registry.roots() if entry_id is None else registry.children(entry_id)
    out: list[str] = []
    for child in ids:
        entry = loader.retrieve_entry(child)
        desc = entry.get_entry_desc() if entry is not None else child
        out.append(f"{leading}- {desc}\n")
        out.append(render_tree(registry, loader, " " + leading, child))
    return "".join(out)


def render_permissions(perms: PermissionMatrix) -> str:
    """Numbered list of keys with their action decisions."""
    exported = perms.export()
    out = [f"{len(exported)}\n-------\n"]
    for i, (key, actions) in enumerate(exported.items(), start=1):
        out.append(f"{i}- {key}\n")
        for action, flag in actions.items():
            out.append(f"\t{action}\t{str(flag).lower()}\n")
    return "".join(out)


__all__ = [
    "render_permissions",
    "render_registry",
    "render_tree",
]
