"""Module sets — ModuleSet interface, registration context, discovery and built-ins."""

from page_modules.module_sets.base import ModuleSet
from page_modules.module_sets.loader import (
    BUILTIN_MODULE_SETS,
    build_from_settings,
    build_registries,
    discover_module_sets,
    load_module_set,
    resolve_module_sets,
)
from page_modules.module_sets.setup import RegistrationContext

__all__ = [
    "BUILTIN_MODULE_SETS",
    "ModuleSet",
    "RegistrationContext",
    "build_from_settings",
    "build_registries",
    "discover_module_sets",
    "load_module_set",
    "resolve_module_sets",
]
