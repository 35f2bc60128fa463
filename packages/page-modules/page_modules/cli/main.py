"""Page Modules CLI — Entry point.

Usage:
    page-modules build [--config FILE] [--output PATH] [--module-set PATH]... [--strict]
    page-modules pages [--snapshot PATH]
    page-modules show <page> [--snapshot PATH] [--authenticated | --anonymous] [--json]
"""

from __future__ import annotations

import typer
from rich.console import Console

from page_modules.cli.commands import build, pages

app = typer.Typer(
    name="page-modules",
    help="Page Modules — build and inspect page/module assignments.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console()

app.command("build")(build.build)
app.command("pages")(pages.list_pages)
app.command("show")(pages.show_page)


@app.callback()
def main_callback() -> None:
    pass


if __name__ == "__main__":
    app()
