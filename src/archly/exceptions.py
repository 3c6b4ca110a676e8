"""Unified exception hierarchy for archly.

All errors raised by the registries, the permission matrix and the ACL
facade inherit from ArchlyError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for mapping codes back to exception classes

Usage:
    from archly.exceptions import (
        ArchlyError,
        DuplicateEntryError,
        EntryNotFoundError,
    )

    try:
        acl.add_role("admin")
    except DuplicateEntryError:
        ...

Embedding applications may define thin subclasses:
    @register_error("POLICY_LOCKED")
    class PolicyLockedError(ArchlyError):
        code = "POLICY_LOCKED"
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "ArchlyError",
    "ConfigurationError",
    "CyclicHierarchyError",
    "DuplicateEntryError",
    "EntryNotFoundError",
    "NilEntryError",
    "NonEmptyError",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
]


# ---- Exception Hierarchy ----------------------------------------------------


class ArchlyError(Exception):
    """Base exception for all archly errors.

    Attributes:
        code: Stable error code string (e.g. "ENTRY_NOT_FOUND").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(ArchlyError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class DuplicateEntryError(ArchlyError):
    """Entry id is already present in the registry."""

    code: str = "DUPLICATE_ENTRY"
    message: str = "duplicate entry in registry"


class EntryNotFoundError(ArchlyError):
    """Entry id, permission key or action is not present."""

    code: str = "ENTRY_NOT_FOUND"
    message: str = "entry not found in registry"


class NilEntryError(ArchlyError):
    """An operation that needs an entry was called without one."""

    code: str = "NIL_ENTRY"
    message: str = "nil entry"


class NonEmptyError(ArchlyError):
    """Import attempted into a store that already holds entries."""

    code: str = "NON_EMPTY"
    message: str = "non-empty registry"


class CyclicHierarchyError(ArchlyError):
    """Imported parent map contains a cycle or a self-parented entry."""

    code: str = "CYCLIC_HIERARCHY"
    message: str = "cyclic hierarchy"


# ---- Error Registry ---------------------------------------------------------

_E = TypeVar("_E", bound=type[ArchlyError])


class ErrorRegistry:
    """Registry for mapping error codes to exception classes.

    archly itself never looks codes up. The registry is an extension point
    for embedding applications that serialize errors by ``code`` (for an
    API response or a log pipeline) and need the class back.
    """

    def __init__(self) -> None:
        self._errors: dict[str, type[ArchlyError]] = {}

    def register(self, code: str, error_cls: type[ArchlyError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[ArchlyError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[ArchlyError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("MY_CUSTOM_ERROR")
        class MyCustomError(ArchlyError):
            code = "MY_CUSTOM_ERROR"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors
error_registry.register("INTERNAL_ERROR", ArchlyError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("DUPLICATE_ENTRY", DuplicateEntryError)
error_registry.register("ENTRY_NOT_FOUND", EntryNotFoundError)
error_registry.register("NIL_ENTRY", NilEntryError)
error_registry.register("NON_EMPTY", NonEmptyError)
error_registry.register("CYCLIC_HIERARCHY", CyclicHierarchyError)
