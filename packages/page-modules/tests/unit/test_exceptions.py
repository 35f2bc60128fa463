"""Unit tests — exception hierarchy and messages."""

from __future__ import annotations

import pytest

from page_modules.exceptions import (
    InvalidModuleKindError,
    InvalidPlacementError,
    ModuleSetError,
    ModuleSetLoadError,
    ModuleSetNotFoundError,
    PageModulesError,
    RegistryError,
    RegistryFrozenError,
    SnapshotError,
)


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "exc, parent",
        [
            (RegistryFrozenError("handler", "add"), RegistryError),
            (InvalidPlacementError("middle"), RegistryError),
            (InvalidModuleKindError("filter"), RegistryError),
            (ModuleSetNotFoundError("x"), ModuleSetError),
            (ModuleSetLoadError("x", "bad"), ModuleSetError),
            (SnapshotError("bad"), PageModulesError),
        ],
    )
    def test_parents(self, exc: PageModulesError, parent: type) -> None:
        assert isinstance(exc, parent)
        assert isinstance(exc, PageModulesError)


@pytest.mark.unit
class TestMessages:
    def test_frozen(self) -> None:
        exc = RegistryFrozenError("output", "replace")
        assert "output registry is frozen" in str(exc)
        assert exc.context == {"kind": "output", "operation": "replace"}

    def test_not_found_with_and_without_reason(self) -> None:
        assert str(ModuleSetNotFoundError("calendar")) == "Module set 'calendar' not found"
        assert str(ModuleSetNotFoundError("calendar", "no such module")) == (
            "Module set 'calendar' not found: no such module"
        )

    def test_invalid_placement(self) -> None:
        assert "expected 'before' or 'after'" in str(InvalidPlacementError("middle"))

    def test_snapshot_path(self) -> None:
        exc = SnapshotError("Cannot read snapshot", path="/tmp/pages.json")
        assert exc.path == "/tmp/pages.json"
        assert exc.context["path"] == "/tmp/pages.json"

    def test_repr(self) -> None:
        exc = PageModulesError("boom", context={"a": 1})
        assert repr(exc) == "PageModulesError('boom', context={'a': 1})"
