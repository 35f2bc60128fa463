"""Registry layer — value types.

``Entry`` is what the rest of the application reads: one module assigned to
one page.  ``PendingInsertion`` and ``BroadcastDirective`` are the queued
forms of calls that cannot be applied yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from page_modules.exceptions import InvalidModuleKindError, InvalidPlacementError


class Placement(str, Enum):
    AFTER = "after"
    BEFORE = "before"

    @classmethod
    def parse(cls, value: "Placement | str") -> "Placement":
        """Coerce *value* to a Placement, raising InvalidPlacementError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidPlacementError(value) from None


class ModuleKind(str, Enum):
    HANDLER = "handler"
    OUTPUT = "output"

    @classmethod
    def parse(cls, value: "ModuleKind | str") -> "ModuleKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidModuleKindError(value) from None


@dataclass(frozen=True)
class Entry:
    """One module's assignment to a page.

    ``source`` is the module set that registered (or last replaced) the
    module; it is ``None`` when no module set name was ever declared.
    """

    name: str
    source: str | None
    requires_login: bool

    def to_dict(self) -> dict[str, str | bool | None]:
        return {
            "name": self.name,
            "source": self.source,
            "requires_login": self.requires_login,
        }


@dataclass(frozen=True)
class PendingInsertion:
    """A marker-relative insertion whose marker was missing at call time.

    Dropped insertions keep the caller's raw *placement* when it was not a
    valid Placement.
    """

    page_id: str
    name: str
    requires_login: bool
    marker: str
    placement: Placement | str
    source: str | None


@dataclass(frozen=True)
class BroadcastDirective:
    """A module to add to every non-internal page once registration is done."""

    name: str
    requires_login: bool
    marker: str | None
    placement: Placement | str
    source: str | None
