"""Permission storage and lookup for archly.

Defines:
- Action: access kinds (ALL, CREATE, READ, UPDATE, DELETE)
- Access: tri-state lookup result (allowed / denied / unset)
- PermissionMatrix: (role, resource) → per-action decisions
- WILDCARD, KEY_SEPARATOR, DEFAULT_KEY: canonical key format
"""

from .access import Access
from .constants import ACTION_NAMES, DEFAULT_KEY, KEY_SEPARATOR, WILDCARD, Action
from .matrix import ActionMap, PermissionMap, PermissionMatrix, make_key

__all__ = [
    "ACTION_NAMES",
    "DEFAULT_KEY",
    "KEY_SEPARATOR",
    "WILDCARD",
    "Access",
    "Action",
    "ActionMap",
    "PermissionMap",
    "PermissionMatrix",
    "make_key",
]
