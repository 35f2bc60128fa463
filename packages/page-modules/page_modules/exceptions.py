"""Page Modules — Exception hierarchy.

All exceptions raised by the package inherit from PageModulesError so that
callers can catch the full family with a single except clause when needed.

The three registry outcomes that are part of normal startup (duplicate
rejection, deferred insertion, terminal insertion failure) are never raised;
they are reported through the log and ``ModuleRegistry.status_report()``.
The exceptions below signal programming errors or unusable inputs.

Hierarchy:
    PageModulesError
    ├── RegistryError
    │   ├── RegistryFrozenError
    │   ├── InvalidPlacementError
    │   └── InvalidModuleKindError
    ├── ModuleSetError
    │   ├── ModuleSetNotFoundError
    │   └── ModuleSetLoadError
    └── SnapshotError
"""

from __future__ import annotations

from typing import Any


class PageModulesError(Exception):
    """Base exception for all page-modules errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Registry layer
# ---------------------------------------------------------------------------


class RegistryError(PageModulesError):
    """Base for all module registry errors."""


class RegistryFrozenError(RegistryError):
    """A mutating call was made after the registry was finalized."""

    def __init__(self, kind: str, operation: str) -> None:
        super().__init__(
            f"The {kind} registry is frozen; '{operation}' is not allowed after startup",
            context={"kind": kind, "operation": operation},
        )
        self.kind = kind
        self.operation = operation


class InvalidPlacementError(RegistryError):
    """A placement other than 'before' or 'after' was supplied."""

    def __init__(self, placement: object) -> None:
        super().__init__(
            f"Invalid placement {placement!r}: expected 'before' or 'after'",
            context={"placement": placement},
        )
        self.placement = placement


class InvalidModuleKindError(RegistryError):
    """A module kind other than 'handler' or 'output' was supplied."""

    def __init__(self, kind: object) -> None:
        super().__init__(
            f"Invalid module kind {kind!r}: expected 'handler' or 'output'",
            context={"kind": kind},
        )
        self.kind = kind


# ---------------------------------------------------------------------------
# Module sets
# ---------------------------------------------------------------------------


class ModuleSetError(PageModulesError):
    """Base for errors raised while locating or loading module sets."""


class ModuleSetNotFoundError(ModuleSetError):
    """No module set could be found under the requested name or path."""

    def __init__(self, name: str, reason: str = "") -> None:
        message = f"Module set '{name}' not found"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, context={"module_set": name, "reason": reason})
        self.name = name
        self.reason = reason


class ModuleSetLoadError(ModuleSetError):
    """The module set was found but could not be turned into a ModuleSet."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(
            f"Module set '{name}' failed to load: {reason}",
            context={"module_set": name, "reason": reason},
        )
        self.name = name
        self.reason = reason


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


class SnapshotError(PageModulesError):
    """A compiled page table could not be read, validated or written."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, context={"path": path})
        self.path = path
