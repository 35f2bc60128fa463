"""Built-in module set — core.

Lays down the pages every webmail build has and the standard module
scaffold other module sets anchor their insertions on (``load_user_data``,
``content_section_start``, ``settings_menu_end`` ...).
"""

from __future__ import annotations

from page_modules.module_sets.base import ModuleSet
from page_modules.module_sets.setup import RegistrationContext

# (name, requires_login) in execution order.
BASE_HANDLERS: list[tuple[str, bool]] = [
    ("stay_logged_in", False),
    ("login", False),
    ("default_page_data", True),
    ("load_user_data", True),
    ("message_list_type", True),
    ("language", False),
    ("process_search_terms", True),
    ("title", True),
    ("date", True),
    ("save_user_data", True),
    ("logout", True),
    ("http_headers", True),
]

BASE_OUTPUTS: list[tuple[str, bool]] = [
    ("header_start", False),
    ("header_css", False),
    ("header_content", False),
    ("js_data", False),
    ("header_end", False),
    ("msgs", False),
    ("login_start", False),
    ("login", False),
    ("login_end", False),
    ("date", True),
    ("content_start", True),
    ("folder_list_start", True),
    ("folder_list_end", True),
    ("content_section_start", True),
    ("content_section_end", True),
    ("modals", True),
    ("page_js", False),
    ("content_end", False),
]

AJAX_HANDLERS: list[tuple[str, bool]] = [
    ("login", False),
    ("language", False),
    ("load_user_data", True),
    ("date", True),
    ("http_headers", True),
]


def setup_base_page(setup: RegistrationContext, page: str, source: str | None = None) -> None:
    """Register the standard handler and output scaffold of a full page."""
    for name, requires_login in BASE_HANDLERS:
        setup.add_handler(page, name, requires_login, source)
    for name, requires_login in BASE_OUTPUTS:
        setup.add_output(page, name, requires_login, source)


def setup_base_ajax_page(setup: RegistrationContext, page: str, source: str | None = None) -> None:
    """Register the handler scaffold of an ajax endpoint (no page layout)."""
    for name, requires_login in AJAX_HANDLERS:
        setup.add_handler(page, name, requires_login, source)


class CoreModuleSet(ModuleSet):
    NAME = "core"
    DESCRIPTION = "Base pages, login and page layout."

    def register(self, setup: RegistrationContext) -> None:
        for page in ("home", "settings", "message_list", "search", "servers"):
            setup_base_page(setup, page)

        setup.add_output("home", "home_heading", True, marker="content_section_start")
        setup.add_output("home", "home_password_dialogs", True, marker="home_heading")

        setup.add_handler("settings", "process_save_form", True, marker="load_user_data")
        setup.add_output("settings", "start_settings_form", True, marker="content_section_start")
        setup.add_output("settings", "end_settings_form", True, marker="content_section_end", placement="before")

        setup.add_output("message_list", "message_list_heading", True, marker="content_section_start")
        setup.add_output("search", "search_content_start", True, marker="content_section_start")
        setup.add_output("servers", "server_content_start", True, marker="content_section_start")

        # Folder list navigation, fetched over ajax by every full page.
        setup_base_ajax_page(setup, "ajax_hm_folders")
        for name in (
            "folder_list_content_start",
            "main_menu_start",
            "main_menu_content",
            "main_menu_end",
            "settings_menu_start",
            "settings_menu_end",
            "folder_list_content_end",
        ):
            setup.add_output("ajax_hm_folders", name, True)

        setup_base_ajax_page(setup, "ajax_message_action")
        setup.add_handler("ajax_message_action", "message_action", True, marker="load_user_data")
