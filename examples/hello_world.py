#!/usr/bin/env python3
"""Page Modules — Hello World example.

This script demonstrates the full startup flow:

  1. Define a third-party module set that anchors on core modules
  2. Register it together with the built-in module sets
  3. Replay the queues and freeze the page tables
  4. Ask the dispatcher which modules a request runs
  5. Save a snapshot the request workers can load

Usage:
  python examples/hello_world.py
  python examples/hello_world.py --page calendar --anonymous
  python examples/hello_world.py --snapshot /tmp/pages.yaml
"""

from __future__ import annotations

import argparse
import json

from page_modules.module_sets import ModuleSet
from page_modules.module_sets.core import CoreModuleSet, setup_base_page
from page_modules.module_sets.imap_folders import ImapFoldersModuleSet
from page_modules.module_sets.loader import build_registries


class CalendarModuleSet(ModuleSet):
    NAME = "calendar"
    DESCRIPTION = "A calendar page and a reminder on every page."

    def register(self, setup) -> None:
        setup_base_page(setup, "calendar", source="core")
        setup.add_handler("calendar", "load_events", True, marker="load_user_data")
        setup.add_output("calendar", "calendar_grid", True, marker="content_section_start")

        # Registered before core has any page: deferred until finalize().
        setup.add_module_to_all_pages(
            "output", "upcoming_reminders", True, marker="content_section_end", placement="before"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Page Modules Hello World")
    parser.add_argument("--page", default="calendar", help="Page to show (default: calendar)")
    parser.add_argument(
        "--anonymous",
        action="store_true",
        help="Show what a request without a logged-in session runs",
    )
    parser.add_argument("--snapshot", default=None, help="Optional snapshot path (.json or .yaml)")
    args = parser.parse_args()

    # -----------------------------------------------------------------------
    # Step 1-3: Register every module set, replay the queues, freeze
    # -----------------------------------------------------------------------
    setup = build_registries([CalendarModuleSet(), CoreModuleSet(), ImapFoldersModuleSet()])
    report = setup.status_report()
    print(f"Handler entries: {report['handlers']['entries']}")
    print(f"Output entries:  {report['outputs']['entries']}")
    print(f"Failed sets:     {report['failed_module_sets'] or 'none'}")
    print()

    # -----------------------------------------------------------------------
    # Step 4: Dispatch
    # -----------------------------------------------------------------------
    plan = setup.dispatcher().plan(args.page, authenticated=not args.anonymous)
    print(json.dumps(plan.to_dict(), indent=2))

    # -----------------------------------------------------------------------
    # Step 5: Snapshot
    # -----------------------------------------------------------------------
    if args.snapshot:
        path = setup.snapshot().save(args.snapshot)
        print(f"\nSnapshot written to {path}")


if __name__ == "__main__":
    main()
