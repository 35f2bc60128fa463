"""Module sets — Discovery and startup.

Module sets are resolved from three places, in this order:
  1. Names listed in ``module_sets.enabled``: either a built-in name or a
     dotted path ``"package.module:Attribute"``
  2. Explicit extra paths passed by the caller (CLI ``--module-set``)
  3. The ``page_modules.module_sets`` entry point group, for third-party
     packages::

        [project.entry-points."page_modules.module_sets"]
        calendar = "hm_calendar.setup:CalendarModuleSet"

``build_registries()`` then runs each module set's registration pass once,
replays the deferred queues, and freezes the result.  A module set that
cannot be loaded or that raises while registering is logged and skipped;
it never stops the others from registering.
"""

from __future__ import annotations

import importlib
import importlib.metadata
from typing import Iterable

from page_modules.config import DEFAULT_INTERNAL_PAGE_PATTERN, Settings
from page_modules.exceptions import ModuleSetError, ModuleSetLoadError, ModuleSetNotFoundError
from page_modules.logging import (
    bind_registration_context,
    clear_registration_context,
    get_logger,
)
from page_modules.module_sets.base import ModuleSet
from page_modules.module_sets.setup import RegistrationContext

log = get_logger(__name__)

ENTRY_POINT_GROUP = "page_modules.module_sets"

BUILTIN_MODULE_SETS: dict[str, str] = {
    "core": "page_modules.module_sets.core:CoreModuleSet",
    "imap_folders": "page_modules.module_sets.imap_folders:ImapFoldersModuleSet",
}


def _instantiate(name: str, obj: object) -> ModuleSet:
    if isinstance(obj, ModuleSet):
        return obj
    if isinstance(obj, type) and issubclass(obj, ModuleSet):
        try:
            instance = obj()
        except Exception as exc:
            raise ModuleSetLoadError(name, str(exc)) from exc
        if not instance.NAME:
            raise ModuleSetLoadError(name, f"{obj.__name__} has no NAME")
        return instance
    raise ModuleSetLoadError(name, f"{obj!r} is not a ModuleSet subclass or instance")


def load_module_set(name: str) -> ModuleSet:
    """Return the module set registered as *name* or found at a dotted path.

    Raises:
        ModuleSetNotFoundError: Unknown built-in name, missing module or attribute.
        ModuleSetLoadError:     The object found is not a usable ModuleSet.
    """
    path = BUILTIN_MODULE_SETS.get(name, name)
    module_path, sep, attr = path.partition(":")
    if not sep or not module_path or not attr:
        raise ModuleSetNotFoundError(
            name, "expected a built-in name or 'package.module:Attribute'"
        )

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise ModuleSetNotFoundError(name, f"cannot import {module_path!r}: {exc}") from exc

    obj = getattr(module, attr, None)
    if obj is None:
        raise ModuleSetNotFoundError(name, f"{attr!r} not found in {module_path!r}")
    return _instantiate(name, obj)


def discover_module_sets(group: str = ENTRY_POINT_GROUP) -> list[ModuleSet]:
    """Load every module set published under the *group* entry point."""
    found: list[ModuleSet] = []
    for ep in importlib.metadata.entry_points(group=group):
        try:
            found.append(_instantiate(ep.name, ep.load()))
            log.debug("module_set_discovered", entry_point=ep.name)
        except Exception as exc:
            log.warning("module_set_discovery_failed", entry_point=ep.name, error=str(exc))
    return found


def resolve_module_sets(
    settings: Settings,
    extra: Iterable[str] = (),
) -> list[ModuleSet]:
    """Return the configured module sets in registration order.

    Sets that cannot be loaded are logged and left out.  A set reachable
    through several routes is kept once, at its first position.
    """
    disabled = set(settings.module_sets.disabled)
    resolved: list[ModuleSet] = []

    for name in [*settings.active_module_sets(), *extra]:
        try:
            resolved.append(load_module_set(name))
        except ModuleSetError as exc:
            log.error("module_set_load_failed", module_set=name, error=exc.message)

    if settings.module_sets.discover_entry_points:
        resolved.extend(m for m in discover_module_sets() if m.NAME not in disabled)

    unique: dict[str, ModuleSet] = {}
    for module_set in resolved:
        if module_set.NAME in unique:
            log.debug("module_set_duplicate_skipped", module_set=module_set.NAME)
            continue
        unique[module_set.NAME] = module_set
    return list(unique.values())


def build_registries(
    module_sets: Iterable[ModuleSet],
    internal_page_pattern: str = DEFAULT_INTERNAL_PAGE_PATTERN,
) -> RegistrationContext:
    """Run every module set's registration pass once and finalize.

    Returns the frozen context.  Module sets that raised are listed in
    ``context.failed_module_sets``; whatever they registered before raising
    stays in place.
    """
    setup = RegistrationContext(internal_page_pattern)

    for module_set in module_sets:
        setup.source(module_set.NAME)
        bind_registration_context(module_set=module_set.NAME)
        try:
            module_set.register(setup)
            log.debug("module_set_registered", module_set=module_set.NAME)
        except Exception as exc:
            setup.failed_module_sets[module_set.NAME] = str(exc)
            log.error(
                "module_set_registration_failed",
                module_set=module_set.NAME,
                error=str(exc),
                exc_info=True,
            )
        finally:
            clear_registration_context()

    setup.source(None)
    setup.finalize()
    return setup


def build_from_settings(
    settings: Settings,
    extra: Iterable[str] = (),
) -> RegistrationContext:
    """Resolve the configured module sets and build frozen registries."""
    return build_registries(
        resolve_module_sets(settings, extra),
        internal_page_pattern=settings.registry.internal_page_pattern,
    )
