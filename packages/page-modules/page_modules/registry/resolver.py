"""Registry layer — Marker resolution.

A page's modules live in an insertion-ordered ``dict[str, Entry]``.  The
functions here compute where a marker-relative insertion lands and rebuild
the dict with the new entry at that position, leaving every other entry in
its existing relative order.
"""

from __future__ import annotations

from typing import Iterable

from page_modules.registry.models import Entry, Placement

PageSequence = dict[str, Entry]


def resolve_marker(names: Iterable[str], marker: str, placement: Placement) -> int | None:
    """Return the insertion index for *placement* relative to *marker*.

    ``None`` means the marker is not on the page.
    """
    for index, name in enumerate(names):
        if name == marker:
            return index + 1 if placement == Placement.AFTER else index
    return None


def insert_at(sequence: PageSequence, index: int, entry: Entry) -> PageSequence:
    """Return a new sequence with *entry* placed at position *index*."""
    items = list(sequence.items())
    items.insert(index, (entry.name, entry))
    return dict(items)


def swap_in_place(sequence: PageSequence, target: str, entry: Entry) -> PageSequence:
    """Return a new sequence where *target* is replaced by *entry* at the same index."""
    return {
        (entry.name if name == target else name): (entry if name == target else current)
        for name, current in sequence.items()
    }
