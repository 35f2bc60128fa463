"""Module sets — Registration context.

``RegistrationContext`` owns the handler registry and the output registry
for one application build and exposes the calls module sets make while
registering.  It replaces any process-wide lookup: whoever builds the
application creates a context, hands it to each module set, finalizes it,
and passes it (or a snapshot of it) to the request pipeline.

Usage::

    setup = RegistrationContext()
    setup.source("imap_folders")
    setup.add_handler("folders", "folders_server_id", True, marker="load_user_data")
    setup.add_output("folders", "folders_content_start", True)
    setup.add_module_to_all_pages("handler", "fix_folder_assignments", True,
                                  marker="load_user_data", placement="after")
    setup.finalize()
"""

from __future__ import annotations

from page_modules.config import DEFAULT_INTERNAL_PAGE_PATTERN
from page_modules.dispatch import PageDispatcher
from page_modules.exceptions import RegistryFrozenError
from page_modules.logging import get_logger
from page_modules.registry.models import ModuleKind, Placement
from page_modules.registry.registry import ModuleRegistry
from page_modules.registry.snapshot import PageTableSnapshot

log = get_logger(__name__)


class RegistrationContext:
    """The handler and output registries of one application build."""

    def __init__(self, internal_page_pattern: str = DEFAULT_INTERNAL_PAGE_PATTERN) -> None:
        self.internal_page_pattern = internal_page_pattern
        self.handlers = ModuleRegistry(ModuleKind.HANDLER.value, internal_page_pattern)
        self.outputs = ModuleRegistry(ModuleKind.OUTPUT.value, internal_page_pattern)
        # module set name -> reason, filled by the loader.
        self.failed_module_sets: dict[str, str] = {}

    def registry(self, kind: ModuleKind | str) -> ModuleRegistry:
        """Return the registry for ``"handler"`` or ``"output"`` modules."""
        if ModuleKind.parse(kind) == ModuleKind.HANDLER:
            return self.handlers
        return self.outputs

    # ------------------------------------------------------------------
    # Source labels
    # ------------------------------------------------------------------

    def source(self, label: str | None) -> None:
        """Declare the active module set on both registries."""
        self.handlers.set_active_source(label)
        self.outputs.set_active_source(label)

    def handler_source(self, label: str | None) -> None:
        self.handlers.set_active_source(label)

    def output_source(self, label: str | None) -> None:
        self.outputs.set_active_source(label)

    # ------------------------------------------------------------------
    # Registration calls
    # ------------------------------------------------------------------

    def add_handler(
        self,
        page: str,
        name: str,
        requires_login: bool,
        source: str | None = None,
        marker: str | None = None,
        placement: Placement | str = Placement.AFTER,
        queue: bool = True,
    ) -> None:
        self.handlers.add(page, name, requires_login, marker, placement, queue, source)

    def add_output(
        self,
        page: str,
        name: str,
        requires_login: bool,
        source: str | None = None,
        marker: str | None = None,
        placement: Placement | str = Placement.AFTER,
        queue: bool = True,
    ) -> None:
        self.outputs.add(page, name, requires_login, marker, placement, queue, source)

    def add_module_to_all_pages(
        self,
        kind: ModuleKind | str,
        name: str,
        requires_login: bool,
        source: str | None = None,
        marker: str | None = None,
        placement: Placement | str = Placement.AFTER,
    ) -> None:
        """Queue *name* for every non-internal page of the *kind* registry."""
        self.registry(kind).queue_for_all_pages(name, requires_login, marker, placement, source)

    def replace_module(
        self,
        kind: ModuleKind | str,
        target: str,
        replacement: str,
        page: str | None = None,
    ) -> None:
        self.registry(kind).replace(target, replacement, page)

    def delete_module(self, kind: ModuleKind | str, page: str, name: str) -> None:
        self.registry(kind).delete(page, name)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def finalize(self) -> None:
        """Replay the broadcast and retry queues once, then freeze.

        Broadcasts expand first so that a broadcast insertion whose marker
        is missing on some page still gets its one retry.
        """
        if self.handlers.frozen or self.outputs.frozen:
            raise RegistryFrozenError("handler/output", "finalize")
        for registry in (self.handlers, self.outputs):
            registry.process_all_page_queue()
            registry.try_queued_modules()
            registry.freeze()
        log.info(
            "registries_finalized",
            pages=len(set(self.handlers.pages()) | set(self.outputs.pages())),
            handler_entries=self.handlers.status_report()["entries"],
            output_entries=self.outputs.status_report()["entries"],
            failed_module_sets=sorted(self.failed_module_sets),
        )

    @property
    def frozen(self) -> bool:
        return self.handlers.frozen and self.outputs.frozen

    def dispatcher(self) -> PageDispatcher:
        """Return a read-only view answering which modules a request runs."""
        return PageDispatcher(self.handlers, self.outputs)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> PageTableSnapshot:
        return PageTableSnapshot.from_page_tables(self.handlers.dump(), self.outputs.dump())

    @classmethod
    def from_snapshot(
        cls,
        snapshot: PageTableSnapshot,
        internal_page_pattern: str = DEFAULT_INTERNAL_PAGE_PATTERN,
    ) -> "RegistrationContext":
        """Build a fresh, frozen context holding the snapshot's page tables."""
        context = cls(internal_page_pattern)
        context.handlers.load(snapshot.handler_table())
        context.outputs.load(snapshot.output_table())
        context.handlers.freeze()
        context.outputs.freeze()
        return context

    def status_report(self) -> dict[str, object]:
        return {
            "handlers": self.handlers.status_report(),
            "outputs": self.outputs.status_report(),
            "failed_module_sets": dict(self.failed_module_sets),
        }
