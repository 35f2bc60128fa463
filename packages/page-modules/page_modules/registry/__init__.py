"""Registry layer — page tables, marker resolution, deferred queues, snapshots."""

from page_modules.registry.models import (
    BroadcastDirective,
    Entry,
    ModuleKind,
    PendingInsertion,
    Placement,
)
from page_modules.registry.queues import BroadcastQueue, RetryQueue
from page_modules.registry.registry import ModuleRegistry
from page_modules.registry.resolver import insert_at, resolve_marker
from page_modules.registry.snapshot import EntryRecord, PageTableSnapshot

__all__ = [
    "BroadcastDirective",
    "BroadcastQueue",
    "Entry",
    "EntryRecord",
    "ModuleKind",
    "ModuleRegistry",
    "PageTableSnapshot",
    "PendingInsertion",
    "Placement",
    "RetryQueue",
    "insert_at",
    "resolve_marker",
]
