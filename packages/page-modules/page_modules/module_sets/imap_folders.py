"""Built-in module set — IMAP folder management.

Adds the ``folders`` page, the ajax endpoints behind its dialogs, a link to
it in the folder list navigation, and a login-time fix-up handler on every
page.  Everything anchors on core modules by marker, so this set registers
correctly whether it runs before or after ``core``.
"""

from __future__ import annotations

from page_modules.module_sets.base import ModuleSet
from page_modules.module_sets.core import setup_base_ajax_page, setup_base_page
from page_modules.module_sets.setup import RegistrationContext

DIALOGS = (
    "folders_create_dialog",
    "folders_rename_dialog",
    "folders_delete_dialog",
    "folders_trash_dialog",
    "folders_sent_dialog",
    "folders_archive_dialog",
    "folders_draft_dialog",
    "folders_junk_dialog",
)

# ajax page -> folder operation handler
AJAX_OPERATIONS = {
    "ajax_folders_create": "process_folder_create",
    "ajax_folders_rename": "process_folder_rename",
    "ajax_folders_delete": "process_folder_delete",
    "ajax_folders_special": "process_special_folder",
    "ajax_folders_clear_special": "process_clear_special_folder",
    "ajax_folders_accept_special": "process_accept_special_folders",
}


class ImapFoldersModuleSet(ModuleSet):
    NAME = "imap_folders"
    DESCRIPTION = "Create, rename, delete and assign special IMAP folders."

    def register(self, setup: RegistrationContext) -> None:
        setup_base_page(setup, "folders", source="core")
        setup.add_handler("folders", "folders_server_id", True, marker="load_user_data")
        setup.add_handler("folders", "special_folders", True, marker="folders_server_id")

        setup.add_output("folders", "folders_content_start", True, marker="content_section_start")
        setup.add_output("folders", "folders_server_select", True, marker="folders_content_start")
        previous = "folders_server_select"
        for dialog in DIALOGS:
            setup.add_output("folders", dialog, True, marker=previous)
            previous = dialog

        for page, handler in AJAX_OPERATIONS.items():
            setup_base_ajax_page(setup, page, source="core")
            setup.add_handler(page, handler, True, marker="load_user_data")

        setup.add_handler("ajax_hm_folders", "add_folder_manage_link", True, marker="load_user_data")
        setup.add_handler("ajax_hm_folders", "imap_folder_check", True, marker="add_folder_manage_link")
        setup.add_output(
            "ajax_hm_folders",
            "folders_page_link",
            True,
            marker="settings_menu_end",
            placement="before",
        )

        setup.add_module_to_all_pages(
            "handler",
            "fix_folder_assignments",
            True,
            marker="load_user_data",
            placement="after",
        )
