"""Registry layer — Compiled page tables.

Building the page tables runs every module set's registration code.  A
snapshot stores the frozen result so that a serving process (or each
request in it) can restore identical registries without running that code
again.

File format (JSON shown, YAML is equivalent)::

    {
      "format_version": 1,
      "handlers": {"mail": [{"name": "list", "source": "core", "requires_login": false}]},
      "outputs":  {"mail": [...]}
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from page_modules.exceptions import SnapshotError
from page_modules.registry.models import Entry

SNAPSHOT_FORMAT_VERSION = 1


class EntryRecord(BaseModel):
    name: str = Field(min_length=1)
    source: str | None = None
    requires_login: bool = False

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryRecord":
        return cls(name=entry.name, source=entry.source, requires_login=entry.requires_login)

    def to_entry(self) -> Entry:
        return Entry(name=self.name, source=self.source, requires_login=self.requires_login)


PageTableRecord = dict[str, list[EntryRecord]]


def _check_unique(table: PageTableRecord) -> PageTableRecord:
    for page_id, records in table.items():
        seen: set[str] = set()
        for record in records:
            if record.name in seen:
                raise ValueError(f"module {record.name!r} appears twice on page {page_id!r}")
            seen.add(record.name)
    return table


class PageTableSnapshot(BaseModel):
    format_version: int = SNAPSHOT_FORMAT_VERSION
    handlers: PageTableRecord = Field(default_factory=dict)
    outputs: PageTableRecord = Field(default_factory=dict)

    @field_validator("format_version")
    @classmethod
    def check_version(cls, v: int) -> int:
        if v != SNAPSHOT_FORMAT_VERSION:
            raise ValueError(
                f"unsupported snapshot format_version {v} (expected {SNAPSHOT_FORMAT_VERSION})"
            )
        return v

    @field_validator("handlers", "outputs")
    @classmethod
    def check_unique_names(cls, v: PageTableRecord) -> PageTableRecord:
        return _check_unique(v)

    @classmethod
    def from_page_tables(
        cls,
        handlers: Mapping[str, Iterable[Entry]],
        outputs: Mapping[str, Iterable[Entry]],
    ) -> "PageTableSnapshot":
        return cls(
            handlers={p: [EntryRecord.from_entry(e) for e in es] for p, es in handlers.items()},
            outputs={p: [EntryRecord.from_entry(e) for e in es] for p, es in outputs.items()},
        )

    def handler_table(self) -> dict[str, list[Entry]]:
        return {p: [r.to_entry() for r in records] for p, records in self.handlers.items()}

    def output_table(self) -> dict[str, list[Entry]]:
        return {p: [r.to_entry() for r in records] for p, records in self.outputs.items()}

    def pages(self) -> list[str]:
        """Return every page id known to either table, handlers first."""
        return list(dict.fromkeys([*self.handlers, *self.outputs]))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Write the snapshot as JSON, or YAML for a .yaml/.yml suffix."""
        path = Path(path).expanduser()
        data = self.model_dump(mode="json")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if path.suffix in (".yaml", ".yml"):
                import yaml

                text = yaml.safe_dump(data, sort_keys=False)
            else:
                text = json.dumps(data, indent=2)
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise SnapshotError(f"Cannot write snapshot: {exc}", path=str(path)) from exc
        return path

    @classmethod
    def load(cls, path: Path) -> "PageTableSnapshot":
        """Read and validate a snapshot written by :meth:`save`."""
        path = Path(path).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SnapshotError(f"Cannot read snapshot: {exc}", path=str(path)) from exc

        try:
            if path.suffix in (".yaml", ".yml"):
                import yaml

                data = yaml.safe_load(text) or {}
            else:
                data = json.loads(text)
        except Exception as exc:
            raise SnapshotError(f"Snapshot is not parseable: {exc}", path=str(path)) from exc

        if not isinstance(data, dict):
            raise SnapshotError("Snapshot root must be a mapping", path=str(path))

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise SnapshotError(f"Snapshot is invalid: {exc}", path=str(path)) from exc
