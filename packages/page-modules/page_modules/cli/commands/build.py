"""CLI — Build the page tables and store a snapshot."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from page_modules.logging import configure_logging

console = Console()


def build(
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to config.yaml.")
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Snapshot file (.json or .yaml).")
    ] = None,
    module_set: Annotated[
        list[str] | None,
        typer.Option("--module-set", "-m", help="Extra module set, 'package.module:Attribute'."),
    ] = None,
    strict: bool = typer.Option(
        False, "--strict", help="Exit 1 if a module set failed or an insertion was dropped."
    ),
) -> None:
    """Run every module set's registration and save the frozen page tables."""
    from page_modules.config import Settings
    from page_modules.exceptions import SnapshotError
    from page_modules.module_sets.loader import build_from_settings
    from page_modules.registry.models import Placement

    settings = Settings.load(config_file=config)
    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
        log_file=str(settings.logging.file) if settings.logging.file else None,
    )

    setup = build_from_settings(settings, extra=module_set or [])

    try:
        path = setup.snapshot().save(output or settings.snapshot.path)
    except SnapshotError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="Page Tables")
    table.add_column("Page", style="cyan")
    table.add_column("Handlers", justify="right")
    table.add_column("Outputs", justify="right")
    table.add_column("Internal")
    for page in sorted(set(setup.handlers.pages()) | set(setup.outputs.pages())):
        table.add_row(
            page,
            str(len(setup.handlers.get_for_page(page))),
            str(len(setup.outputs.get_for_page(page))),
            "yes" if setup.handlers.is_internal_page(page) else "",
        )
    console.print(table)

    problems = 0
    for name, reason in setup.failed_module_sets.items():
        console.print(f"[red]Module set '{name}' failed: {reason}[/red]")
        problems += 1
    for registry in (setup.handlers, setup.outputs):
        for dropped in registry.list_dropped():
            if isinstance(dropped.placement, Placement):
                reason = f"marker '{dropped.marker}' never registered"
            else:
                reason = f"invalid placement '{dropped.placement}'"
            console.print(
                f"[yellow]Dropped {registry.kind} '{dropped.name}' on '{dropped.page_id}': "
                f"{reason}[/yellow]"
            )
            problems += 1

    console.print(f"[bold green]Snapshot written to {path}[/bold green]")
    if strict and problems:
        raise typer.Exit(1)
