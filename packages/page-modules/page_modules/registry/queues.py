"""Registry layer — Deferred work queues.

Both queues are filled during the registration pass and drained exactly
once when startup finalizes the registry.

RetryQueue
    Marker-relative insertions whose marker was not registered yet.  Replay
    walks the queue in enqueue order with no dependency analysis, so a chain
    of deferred insertions only resolves when each link was queued after the
    one it anchors on.

BroadcastQueue
    "Add to every page" directives.  They expand against the page list as it
    stands at replay time, after all direct per-page registrations.
"""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

from page_modules.registry.models import BroadcastDirective, PendingInsertion

T = TypeVar("T")


class _ReplayQueue(Generic[T]):
    def __init__(self) -> None:
        self._items: list[T] = []

    def push(self, item: T) -> None:
        self._items.append(item)

    def drain(self) -> list[T]:
        """Remove and return every queued item in enqueue order."""
        items, self._items = self._items, []
        return items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))


class RetryQueue(_ReplayQueue[PendingInsertion]):
    """Insertions waiting for their marker module to be registered."""


class BroadcastQueue(_ReplayQueue[BroadcastDirective]):
    """Modules waiting to be added to all non-internal pages."""
