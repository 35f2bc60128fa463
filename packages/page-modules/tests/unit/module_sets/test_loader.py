"""Unit tests — module set loading and build_registries."""

from __future__ import annotations

import sys
import types
from unittest.mock import MagicMock, patch

import pytest
from structlog.testing import capture_logs

from page_modules.config import Settings
from page_modules.exceptions import ModuleSetLoadError, ModuleSetNotFoundError
from page_modules.logging import current_module_set
from page_modules.module_sets.base import ModuleSet
from page_modules.module_sets.core import CoreModuleSet
from page_modules.module_sets.imap_folders import ImapFoldersModuleSet
from page_modules.module_sets.loader import (
    build_from_settings,
    build_registries,
    discover_module_sets,
    load_module_set,
    resolve_module_sets,
)
from page_modules.module_sets.setup import RegistrationContext


class CalendarModuleSet(ModuleSet):
    NAME = "calendar"

    def register(self, setup: RegistrationContext) -> None:
        setup.add_handler("calendar", "load_events", True)


class NamelessModuleSet(ModuleSet):
    def register(self, setup: RegistrationContext) -> None:
        pass


@pytest.fixture
def fake_module():
    module = types.ModuleType("fake_module_sets")
    module.CalendarModuleSet = CalendarModuleSet
    module.calendar = CalendarModuleSet()
    module.Nameless = NamelessModuleSet
    module.not_a_set = object()
    sys.modules["fake_module_sets"] = module
    yield module
    sys.modules.pop("fake_module_sets", None)


@pytest.mark.unit
class TestLoadModuleSet:
    def test_builtin_names(self) -> None:
        assert isinstance(load_module_set("core"), CoreModuleSet)
        assert isinstance(load_module_set("imap_folders"), ImapFoldersModuleSet)

    def test_dotted_path_to_class(self, fake_module) -> None:
        module_set = load_module_set("fake_module_sets:CalendarModuleSet")
        assert isinstance(module_set, CalendarModuleSet)

    def test_dotted_path_to_instance(self, fake_module) -> None:
        assert load_module_set("fake_module_sets:calendar") is fake_module.calendar

    def test_unknown_builtin(self) -> None:
        with pytest.raises(ModuleSetNotFoundError, match="built-in name"):
            load_module_set("nope")

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleSetNotFoundError, match="cannot import"):
            load_module_set("no_such_package_xyz:Thing")

    def test_missing_attribute(self, fake_module) -> None:
        with pytest.raises(ModuleSetNotFoundError, match="not found"):
            load_module_set("fake_module_sets:Missing")

    def test_not_a_module_set(self, fake_module) -> None:
        with pytest.raises(ModuleSetLoadError, match="not a ModuleSet"):
            load_module_set("fake_module_sets:not_a_set")

    def test_module_set_without_name(self, fake_module) -> None:
        with pytest.raises(ModuleSetLoadError, match="has no NAME"):
            load_module_set("fake_module_sets:Nameless")


@pytest.mark.unit
class TestDiscoverModuleSets:
    def test_entry_points_loaded(self) -> None:
        ep = MagicMock()
        ep.name = "calendar"
        ep.load.return_value = CalendarModuleSet
        with patch("importlib.metadata.entry_points", return_value=[ep]):
            found = discover_module_sets()
        assert [m.NAME for m in found] == ["calendar"]

    def test_broken_entry_point_skipped(self) -> None:
        broken = MagicMock()
        broken.name = "broken"
        broken.load.side_effect = ImportError("missing dependency")
        with patch("importlib.metadata.entry_points", return_value=[broken]):
            with capture_logs() as logs:
                found = discover_module_sets()
        assert found == []
        assert logs[0]["event"] == "module_set_discovery_failed"
        assert logs[0]["entry_point"] == "broken"


@pytest.mark.unit
class TestResolveModuleSets:
    def test_enabled_minus_disabled(self) -> None:
        settings = Settings(
            module_sets={
                "enabled": ["core", "imap_folders"],
                "disabled": ["imap_folders"],
                "discover_entry_points": False,
            }
        )
        assert [m.NAME for m in resolve_module_sets(settings)] == ["core"]

    def test_unloadable_set_skipped(self) -> None:
        settings = Settings(
            module_sets={"enabled": ["core", "missing"], "discover_entry_points": False}
        )
        with capture_logs() as logs:
            resolved = resolve_module_sets(settings)
        assert [m.NAME for m in resolved] == ["core"]
        assert logs[0]["event"] == "module_set_load_failed"
        assert logs[0]["module_set"] == "missing"

    def test_extra_and_entry_points_appended(self, fake_module) -> None:
        settings = Settings(module_sets={"enabled": ["core"], "disabled": ["themes"]})
        ep_calendar = MagicMock()
        ep_calendar.name = "calendar"
        ep_calendar.load.return_value = CalendarModuleSet

        class ThemesModuleSet(CalendarModuleSet):
            NAME = "themes"

        ep_themes = MagicMock()
        ep_themes.name = "themes"
        ep_themes.load.return_value = ThemesModuleSet

        with patch("importlib.metadata.entry_points", return_value=[ep_calendar, ep_themes]):
            resolved = resolve_module_sets(settings, extra=["imap_folders"])
        assert [m.NAME for m in resolved] == ["core", "imap_folders", "calendar"]

    def test_duplicates_kept_once(self, fake_module) -> None:
        settings = Settings(
            module_sets={
                "enabled": ["fake_module_sets:calendar", "fake_module_sets:CalendarModuleSet"],
                "discover_entry_points": False,
            }
        )
        assert [m.NAME for m in resolve_module_sets(settings)] == ["calendar"]


@pytest.mark.unit
class TestBuildRegistries:
    def test_each_set_registers_under_its_name(self, make_module_set) -> None:
        a = make_module_set("a", lambda s: s.add_handler("mail", "x", False))
        b = make_module_set("b", lambda s: s.add_output("mail", "y", False))
        setup = build_registries([a, b])
        assert setup.handlers.get_for_page("mail")[0].source == "a"
        assert setup.outputs.get_for_page("mail")[0].source == "b"
        assert setup.frozen

    def test_failing_set_does_not_stop_others(self, make_module_set) -> None:
        def broken(setup: RegistrationContext) -> None:
            setup.add_handler("mail", "partial", False)
            raise RuntimeError("boom")

        sets = [
            make_module_set("broken", broken),
            make_module_set("ok", lambda s: s.add_handler("mail", "fine", False)),
        ]
        with capture_logs() as logs:
            setup = build_registries(sets)
        assert [e.name for e in setup.handlers.get_for_page("mail")] == ["partial", "fine"]
        assert setup.failed_module_sets == {"broken": "boom"}
        failures = [e for e in logs if e["event"] == "module_set_registration_failed"]
        assert failures[0]["module_set"] == "broken"
        assert failures[0]["log_level"] == "error"

    def test_invalid_call_fails_only_that_set(self, make_module_set) -> None:
        sets = [
            make_module_set("typo", lambda s: s.add_module_to_all_pages("outputs", "x", False)),
            make_module_set("ok", lambda s: s.add_output("mail", "y", False)),
        ]
        setup = build_registries(sets)
        assert "typo" in setup.failed_module_sets
        assert [e.name for e in setup.outputs.get_for_page("mail")] == ["y"]

    def test_bad_placement_does_not_stop_the_set(self, make_module_set) -> None:
        def register(setup: RegistrationContext) -> None:
            setup.add_handler("mail", "a", False)
            setup.add_handler("mail", "b", False, marker="a", placement="Before")
            setup.add_handler("mail", "c", False)

        setup = build_registries([make_module_set("typo", register)])
        assert [e.name for e in setup.handlers.get_for_page("mail")] == ["a", "c"]
        assert setup.failed_module_sets == {}
        assert [d.name for d in setup.handlers.list_dropped()] == ["b"]

    def test_registration_context_bound_and_cleared(self, make_module_set) -> None:
        seen: list[str | None] = []
        build_registries([make_module_set("imap", lambda s: seen.append(current_module_set()))])
        assert seen == ["imap"]
        assert current_module_set() is None

    def test_custom_internal_pattern(self, make_module_set) -> None:
        def register(setup: RegistrationContext) -> None:
            setup.add_handler("mail", "a", False)
            setup.add_handler("api_status", "a", False)
            setup.add_handler("ajax_list", "a", False)
            setup.add_module_to_all_pages("handler", "X", False)

        setup = build_registries([make_module_set("s", register)], internal_page_pattern=r"^api_")
        assert setup.handlers.has_module("mail", "X")
        assert setup.handlers.has_module("ajax_list", "X")
        assert not setup.handlers.has_module("api_status", "X")

    def test_build_from_settings(self, test_settings: Settings) -> None:
        setup = build_from_settings(test_settings)
        assert setup.frozen
        assert "folders" in setup.handlers.pages()
        assert setup.failed_module_sets == {}
