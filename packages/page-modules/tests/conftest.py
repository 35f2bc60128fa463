"""Shared pytest fixtures for the page-modules test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from page_modules.config import Settings, override_settings
from page_modules.module_sets.base import ModuleSet
from page_modules.module_sets.setup import RegistrationContext
from page_modules.registry.registry import ModuleRegistry


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings(tmp_path: Path) -> Generator[Settings, None, None]:
    settings = Settings(
        module_sets={"enabled": ["core", "imap_folders"], "discover_entry_points": False},
        snapshot={"path": str(tmp_path / "pages.json")},
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    yield settings
    override_settings(None)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------


@pytest.fixture
def handlers() -> ModuleRegistry:
    return ModuleRegistry(kind="handler")


@pytest.fixture
def outputs() -> ModuleRegistry:
    return ModuleRegistry(kind="output")


@pytest.fixture
def setup() -> RegistrationContext:
    return RegistrationContext()


def names(entries: list) -> list[str]:
    return [e.name for e in entries]


@pytest.fixture
def page_names():
    """Return a helper turning a list of entries into their names."""
    return names


# ---------------------------------------------------------------------------
# Module sets
# ---------------------------------------------------------------------------


class FunctionModuleSet(ModuleSet):
    """Module set whose registration pass is a plain function (tests only)."""

    def __init__(self, name: str, register_fn) -> None:
        self.NAME = name
        self._register_fn = register_fn

    def register(self, setup: RegistrationContext) -> None:
        self._register_fn(setup)


@pytest.fixture
def make_module_set():
    """Factory: ``make_module_set("imap", lambda setup: ...)``."""
    return FunctionModuleSet
