"""Snapshot model for exporting and restoring a whole ACL.

The ACL only produces and consumes plain dicts; AclSnapshot bundles the
three of them in one Pydantic model so an application can validate and
serialize them together (``snapshot.model_dump_json()``).
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from .permissions.constants import ACTION_NAMES, KEY_SEPARATOR


class AclSnapshot(BaseModel):
    """Roles, resources and permissions of one ACL.

    Example::

        snapshot = acl.snapshot()
        payload = snapshot.model_dump_json()

        restored = Acl()
        restored.clear()
        restored.restore(AclSnapshot.model_validate_json(payload))
    """

    roles: dict[str, str] = Field(default_factory=dict)
    resources: dict[str, str] = Field(default_factory=dict)
    permissions: dict[str, dict[str, bool]] = Field(default_factory=dict)

    @field_validator("permissions")
    @classmethod
    def validate_permissions(cls, v: dict[str, dict[str, bool]]) -> dict[str, dict[str, bool]]:
        """Keys must be ``role::resource`` and action names must be known."""
        for key, actions in v.items():
            if KEY_SEPARATOR not in key:
                raise ValueError(f"Invalid permission key: {key!r}. Expected 'role{KEY_SEPARATOR}resource'")
            unknown = set(actions) - ACTION_NAMES
            if unknown:
                raise ValueError(f"Unknown action(s) {sorted(unknown)} on {key!r}")
        return v

    model_config = {"extra": "forbid"}


__all__ = ["AclSnapshot"]
