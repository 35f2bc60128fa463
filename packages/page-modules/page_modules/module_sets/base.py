"""Module sets — ModuleSet interface.

A module set is an independently shipped feature unit (a folder manager, an
authentication provider, ...) that assigns its own handler and output
modules to pages.  Every module set, built-in or third-party, subclasses
``ModuleSet`` and implements :meth:`register`.

Module sets only describe *where* their modules run.  They must not depend
on another module set having registered first: anything anchored on a
module owned by someone else is inserted relative to a marker, and the
registry retries it after every module set has run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from page_modules.module_sets.setup import RegistrationContext


class ModuleSet(ABC):
    """Abstract base class for module sets.

    Subclasses must:
      1. Set ``NAME`` (snake_case, used as the source label of every module
         the set registers)
      2. Implement :meth:`register`
    """

    NAME: str = ""
    DESCRIPTION: str = ""

    @abstractmethod
    def register(self, setup: RegistrationContext) -> None:
        """Assign this set's handler and output modules to pages."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.NAME!r})"
