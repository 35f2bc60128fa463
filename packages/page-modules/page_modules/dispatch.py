"""Dispatch — which modules run for a request.

The request pipeline asks the dispatcher for a page's modules and runs them
in the returned order: handler modules first, then output modules.  Modules
that require a logged-in session are left out for anonymous requests.  The
dispatcher only reads the registries, so one frozen context can serve any
number of concurrent requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from page_modules.registry.models import Entry
from page_modules.registry.registry import ModuleRegistry


def runnable(entries: list[Entry], authenticated: bool) -> list[Entry]:
    """Return the entries a request with the given auth state executes."""
    return [e for e in entries if authenticated or not e.requires_login]


@dataclass
class DispatchPlan:
    """The ordered modules a single request to *page* executes."""

    page: str
    authenticated: bool
    handlers: list[Entry] = field(default_factory=list)
    outputs: list[Entry] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "page": self.page,
            "authenticated": self.authenticated,
            "handlers": [e.to_dict() for e in self.handlers],
            "outputs": [e.to_dict() for e in self.outputs],
        }


class PageDispatcher:
    def __init__(self, handlers: ModuleRegistry, outputs: ModuleRegistry) -> None:
        self._handlers = handlers
        self._outputs = outputs

    def handler_modules(self, page: str, authenticated: bool) -> list[Entry]:
        return runnable(self._handlers.get_for_page(page), authenticated)

    def output_modules(self, page: str, authenticated: bool) -> list[Entry]:
        return runnable(self._outputs.get_for_page(page), authenticated)

    def plan(self, page: str, authenticated: bool) -> DispatchPlan:
        return DispatchPlan(
            page=page,
            authenticated=authenticated,
            handlers=self.handler_modules(page, authenticated),
            outputs=self.output_modules(page, authenticated),
        )
