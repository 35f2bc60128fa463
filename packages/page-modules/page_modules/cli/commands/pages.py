"""CLI — Inspect a compiled page table snapshot."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from page_modules.registry.models import Entry

if TYPE_CHECKING:
    from page_modules.module_sets.setup import RegistrationContext

console = Console()


def _load_context(snapshot: Path | None) -> RegistrationContext:
    from page_modules.config import get_settings
    from page_modules.exceptions import SnapshotError
    from page_modules.module_sets.setup import RegistrationContext
    from page_modules.registry.snapshot import PageTableSnapshot

    settings = get_settings()
    try:
        loaded = PageTableSnapshot.load(snapshot or settings.snapshot.path)
    except SnapshotError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)
    return RegistrationContext.from_snapshot(
        loaded, internal_page_pattern=settings.registry.internal_page_pattern
    )


def _entry_table(title: str, entries: list[Entry]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Module", style="cyan")
    table.add_column("Source")
    table.add_column("Login")
    for index, entry in enumerate(entries, start=1):
        table.add_row(
            str(index),
            entry.name,
            entry.source or "-",
            "required" if entry.requires_login else "",
        )
    return table


def list_pages(
    snapshot: Annotated[
        Path | None, typer.Option("--snapshot", "-s", help="Snapshot file to read.")
    ] = None,
) -> None:
    """List every page with its handler and output counts."""
    setup = _load_context(snapshot)

    table = Table(title="Pages")
    table.add_column("Page", style="cyan")
    table.add_column("Handlers", justify="right")
    table.add_column("Outputs", justify="right")
    for page in sorted(set(setup.handlers.pages()) | set(setup.outputs.pages())):
        table.add_row(
            page,
            str(len(setup.handlers.get_for_page(page))),
            str(len(setup.outputs.get_for_page(page))),
        )
    console.print(table)


def show_page(
    page: str = typer.Argument(help="Page id to show."),
    snapshot: Annotated[
        Path | None, typer.Option("--snapshot", "-s", help="Snapshot file to read.")
    ] = None,
    authenticated: bool = typer.Option(
        False, "--authenticated", help="Only show modules a logged-in request runs."
    ),
    anonymous: bool = typer.Option(
        False, "--anonymous", help="Only show modules an anonymous request runs."
    ),
    json_output: bool = typer.Option(False, "--json", help="Output raw JSON."),
) -> None:
    """Show the ordered handler and output modules of one page."""
    if authenticated and anonymous:
        console.print("[red]Error: --authenticated and --anonymous are exclusive[/red]")
        raise typer.Exit(2)

    setup = _load_context(snapshot)
    if page not in setup.handlers.pages() and page not in setup.outputs.pages():
        console.print(f"[red]Error: unknown page '{page}'[/red]")
        raise typer.Exit(1)

    if authenticated or anonymous:
        plan = setup.dispatcher().plan(page, authenticated)
        handlers, outputs = plan.handlers, plan.outputs
    else:
        handlers = setup.handlers.get_for_page(page)
        outputs = setup.outputs.get_for_page(page)

    if json_output:
        data = {
            "page": page,
            "handlers": [e.to_dict() for e in handlers],
            "outputs": [e.to_dict() for e in outputs],
        }
        console.print(Syntax(json.dumps(data, indent=2), "json"))
        return

    console.print(_entry_table(f"Handler modules: {page}", handlers))
    console.print(_entry_table(f"Output modules: {page}", outputs))
