"""Registry layer — Module registry.

The registry assigns named modules to pages and keeps each page's modules
in execution order.  Two instances exist per application: one for handler
modules and one for output modules.  They behave identically and share no
state; ``kind`` only labels log records and errors.

It handles:
  - Appending a module to a page, or inserting it before/after a marker
  - Deferring marker-relative insertions whose marker is not there yet
  - Broadcasting a module to every non-internal page
  - Renaming a module in place across one or all pages
  - Freezing the page table once startup has replayed the queues

Nothing that goes wrong during registration raises: a duplicate name is
rejected, a missing marker is deferred or dropped, an unknown placement
is dropped, and each outcome is logged and kept for ``status_report()``.  Only mutations after ``freeze()``
raise, with ``RegistryFrozenError``.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from page_modules.config import DEFAULT_INTERNAL_PAGE_PATTERN
from page_modules.exceptions import InvalidPlacementError, RegistryFrozenError
from page_modules.logging import get_logger
from page_modules.registry.models import (
    BroadcastDirective,
    Entry,
    Placement,
    PendingInsertion,
)
from page_modules.registry.queues import BroadcastQueue, RetryQueue
from page_modules.registry.resolver import (
    PageSequence,
    insert_at,
    resolve_marker,
    swap_in_place,
)

log = get_logger(__name__)


class ModuleRegistry:
    """Ordered page -> module assignments for one module kind.

    Usage::

        handlers = ModuleRegistry(kind="handler")
        handlers.set_active_source("core")
        handlers.add("mail", "list", False)
        handlers.add("mail", "search", False)

        handlers.set_active_source("imap")
        handlers.add("mail", "folders", True, marker="search", placement="before")

        handlers.process_all_page_queue()
        handlers.try_queued_modules()
        handlers.freeze()

        [e.name for e in handlers.get_for_page("mail")]
        # ['list', 'folders', 'search']
    """

    def __init__(
        self,
        kind: str = "handler",
        internal_page_pattern: str = DEFAULT_INTERNAL_PAGE_PATTERN,
    ) -> None:
        self.kind = kind
        self._pages: dict[str, PageSequence] = {}
        self._active_source: str | None = None
        self._retry_queue = RetryQueue()
        self._broadcast_queue = BroadcastQueue()
        self._internal_page = re.compile(internal_page_pattern)
        self._frozen = False
        # Duplicate registrations that were turned away.
        self._rejected: list[dict[str, str | None]] = []
        # Marker-relative insertions that failed for good.
        self._dropped: list[PendingInsertion] = []

    # ------------------------------------------------------------------
    # Source attribution
    # ------------------------------------------------------------------

    def set_active_source(self, source: str | None) -> None:
        """Declare the module set that subsequent calls are made on behalf of."""
        self._active_source = source

    @property
    def active_source(self) -> str | None:
        return self._active_source

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add(
        self,
        page_id: str,
        name: str,
        requires_login: bool,
        marker: str | None = None,
        placement: Placement | str = Placement.AFTER,
        queue_on_failure: bool = True,
        source: str | None = None,
    ) -> None:
        """Assign module *name* to *page_id*.

        Without a *marker* the module is appended.  With one, it is inserted
        immediately before or after the marker; when the marker is not on the
        page yet the call is queued for a retry (``queue_on_failure``) or
        dropped.  An unknown *placement* drops the insertion as well.
        """
        self._check_mutable("add")

        sequence = self._pages.setdefault(page_id, {})
        if name in sequence:
            log.warning(
                "module_already_registered",
                kind=self.kind,
                page=page_id,
                module=name,
            )
            self._rejected.append(
                {"page": page_id, "module": name, "source": source or self._active_source}
            )
            return

        if not source:
            source = self._active_source
        entry = Entry(name=name, source=source, requires_login=requires_login)

        if marker is None:
            sequence[name] = entry
            return

        try:
            placement = Placement.parse(placement)
        except InvalidPlacementError:
            self._dropped.append(
                PendingInsertion(
                    page_id=page_id,
                    name=name,
                    requires_login=requires_login,
                    marker=marker,
                    placement=placement,
                    source=source,
                )
            )
            log.warning(
                "module_insert_failed",
                kind=self.kind,
                page=page_id,
                module=name,
                marker=marker,
                placement=placement,
                source=source,
                reason="invalid_placement",
            )
            return

        index = resolve_marker(sequence, marker, placement)
        if index is not None:
            self._pages[page_id] = insert_at(sequence, index, entry)
            return

        pending = PendingInsertion(
            page_id=page_id,
            name=name,
            requires_login=requires_login,
            marker=marker,
            placement=placement,
            source=source,
        )
        if queue_on_failure:
            self._retry_queue.push(pending)
            log.debug(
                "module_insert_deferred",
                kind=self.kind,
                page=page_id,
                module=name,
                marker=marker,
                placement=placement.value,
            )
        else:
            self._dropped.append(pending)
            log.warning(
                "module_insert_failed",
                kind=self.kind,
                page=page_id,
                module=name,
                marker=marker,
                placement=placement.value,
                source=source,
                reason="marker_missing",
            )

    def insert_before(
        self,
        page_id: str,
        name: str,
        requires_login: bool,
        marker: str,
        queue_on_failure: bool = True,
        source: str | None = None,
    ) -> None:
        self.add(page_id, name, requires_login, marker, Placement.BEFORE, queue_on_failure, source)

    def insert_after(
        self,
        page_id: str,
        name: str,
        requires_login: bool,
        marker: str,
        queue_on_failure: bool = True,
        source: str | None = None,
    ) -> None:
        self.add(page_id, name, requires_login, marker, Placement.AFTER, queue_on_failure, source)

    def replace(self, target: str, replacement: str, page_id: str | None = None) -> None:
        """Rename module *target* to *replacement* without moving it.

        Applies to *page_id* only, or to every page holding *target*.  The
        replaced entry keeps its ``requires_login`` flag and is attributed to
        the active source.
        """
        self._check_mutable("replace")
        if page_id is not None:
            pages = [page_id] if target in self._pages.get(page_id, {}) else []
        else:
            pages = [p for p, sequence in self._pages.items() if target in sequence]

        for page in pages:
            sequence = self._pages[page]
            if replacement != target and replacement in sequence:
                log.warning(
                    "module_replace_conflict",
                    kind=self.kind,
                    page=page,
                    target=target,
                    replacement=replacement,
                )
                continue
            entry = Entry(
                name=replacement,
                source=self._active_source,
                requires_login=sequence[target].requires_login,
            )
            self._pages[page] = swap_in_place(sequence, target, entry)
            log.debug(
                "module_replaced",
                kind=self.kind,
                page=page,
                target=target,
                replacement=replacement,
            )

    def delete(self, page_id: str, name: str) -> None:
        """Remove module *name* from *page_id* if it is there."""
        self._check_mutable("delete")
        sequence = self._pages.get(page_id)
        if sequence is not None and sequence.pop(name, None) is not None:
            log.debug("module_deleted", kind=self.kind, page=page_id, module=name)

    def load(self, page_table: Mapping[str, Iterable[Entry]]) -> None:
        """Replace the whole page table with a previously compiled one."""
        self._check_mutable("load")
        pages: dict[str, PageSequence] = {}
        for page_id, entries in page_table.items():
            sequence: PageSequence = {}
            for entry in entries:
                if entry.name in sequence:
                    log.warning(
                        "module_already_registered",
                        kind=self.kind,
                        page=page_id,
                        module=entry.name,
                    )
                    continue
                sequence[entry.name] = entry
            pages[page_id] = sequence
        self._pages = pages

    # ------------------------------------------------------------------
    # Broadcast queue
    # ------------------------------------------------------------------

    def queue_for_all_pages(
        self,
        name: str,
        requires_login: bool,
        marker: str | None = None,
        placement: Placement | str = Placement.AFTER,
        source: str | None = None,
    ) -> None:
        """Queue *name* for every non-internal page known at replay time.

        *placement* is checked by ``add`` as the directive expands, so an
        unknown value drops the insertion on each page.
        """
        self._check_mutable("queue_for_all_pages")
        self._broadcast_queue.push(
            BroadcastDirective(
                name=name,
                requires_login=requires_login,
                marker=marker,
                placement=placement,
                source=source or self._active_source,
            )
        )

    def process_all_page_queue(self) -> None:
        """Expand every queued broadcast into one ``add`` per eligible page."""
        self._check_mutable("process_all_page_queue")
        directives = self._broadcast_queue.drain()
        pages = [p for p in self._pages if not self.is_internal_page(p)]
        for directive in directives:
            for page_id in pages:
                self.add(
                    page_id,
                    directive.name,
                    directive.requires_login,
                    directive.marker,
                    directive.placement,
                    True,
                    directive.source,
                )
        if directives:
            log.debug(
                "broadcast_queue_processed",
                kind=self.kind,
                directives=len(directives),
                pages=len(pages),
            )

    # ------------------------------------------------------------------
    # Retry queue
    # ------------------------------------------------------------------

    def try_queued_modules(self) -> None:
        """Retry each deferred insertion once; a second miss is final."""
        self._check_mutable("try_queued_modules")
        pending = self._retry_queue.drain()
        for item in pending:
            self.add(
                item.page_id,
                item.name,
                item.requires_login,
                item.marker,
                item.placement,
                False,
                item.source,
            )
        if pending:
            log.debug("retry_queue_processed", kind=self.kind, retried=len(pending))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def freeze(self) -> None:
        """Make the page table read-only for the rest of the process."""
        self._frozen = True
        log.debug(
            "registry_frozen",
            kind=self.kind,
            pages=len(self._pages),
            pending_retries=len(self._retry_queue),
            pending_broadcasts=len(self._broadcast_queue),
        )

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self, operation: str) -> None:
        if self._frozen:
            raise RegistryFrozenError(self.kind, operation)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_for_page(self, page_id: str) -> list[Entry]:
        """Return the modules assigned to *page_id* in execution order."""
        return list(self._pages.get(page_id, {}).values())

    def dump(self) -> dict[str, list[Entry]]:
        """Return every page's modules in execution order."""
        return {page_id: list(sequence.values()) for page_id, sequence in self._pages.items()}

    def pages(self) -> list[str]:
        return list(self._pages)

    def has_module(self, page_id: str, name: str) -> bool:
        return name in self._pages.get(page_id, {})

    def is_internal_page(self, page_id: str) -> bool:
        """Return True for ajax-only pages, which broadcasts skip."""
        return self._internal_page.search(page_id) is not None

    def pending_retries(self) -> list[PendingInsertion]:
        return list(self._retry_queue)

    def pending_broadcasts(self) -> list[BroadcastDirective]:
        return list(self._broadcast_queue)

    def list_rejected(self) -> list[dict[str, str | None]]:
        """Return the duplicate registrations that were turned away."""
        return [dict(r) for r in self._rejected]

    def list_dropped(self) -> list[PendingInsertion]:
        """Return the insertions whose marker never appeared."""
        return list(self._dropped)

    def status_report(self) -> dict[str, object]:
        """Return a structured summary of the registry.

        Schema::

            {
                "kind": "handler",
                "frozen": True,
                "pages": 12,
                "entries": 87,
                "pending_retries": 0,
                "pending_broadcasts": 0,
                "rejected": [{"page": "mail", "module": "search", "source": "imap"}],
                "dropped": [{"page": "mail", "module": "x", "marker": "y", ...}],
            }
        """
        return {
            "kind": self.kind,
            "frozen": self._frozen,
            "pages": len(self._pages),
            "entries": sum(len(s) for s in self._pages.values()),
            "pending_retries": len(self._retry_queue),
            "pending_broadcasts": len(self._broadcast_queue),
            "rejected": self.list_rejected(),
            "dropped": [
                {
                    "page": d.page_id,
                    "module": d.name,
                    "marker": d.marker,
                    "placement": getattr(d.placement, "value", d.placement),
                    "source": d.source,
                }
                for d in self._dropped
            ],
        }
