"""Central UI handler for schemabridge.

Single source of truth for Rich console styling. Generated text (models,
DDL) goes to stdout through click.echo; everything rendered here goes to
stderr so the output stays pipeable.

Usage:
    from schemabridge.ui import console, print_report

    print_report(report, title="GENERATE")
"""

import sys

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from schemabridge.pipeline import RunReport

SCHEMABRIDGE_THEME = Theme({
    "info": "bold cyan",
    "warning": "bold yellow",
    "error": "bold red",
    "success": "bold green",
    "cmd": "bold magenta",
    "path": "bold cyan",
    "dim": "dim white",
})

console = Console(
    theme=SCHEMABRIDGE_THEME,
    stderr=True,
    force_terminal=sys.stderr.isatty(),
)


def print_header(title: str) -> None:
    """Print a styled section header with horizontal rules."""
    console.rule(f"[bold]{escape(title)}[/bold]")


def print_warning(msg: str) -> None:
    console.print(f"[warning]WARNING:[/warning] {escape(msg)}")


def print_success(msg: str) -> None:
    console.print(f"[success]OK:[/success] {escape(msg)}")


def print_report(report: RunReport, title: str) -> None:
    """Print one row per table outcome, then a status panel."""
    print_header(title)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Table", style="path")
    table.add_column("Status")
    table.add_column("Diagnostics")

    for outcome in report.outcomes:
        status = "[success]ok[/success]" if outcome.success else "[error]failed[/error]"
        lines = [escape(str(d)) for d in outcome.diagnostics]
        table.add_row(escape(outcome.table), status, "\n".join(lines) or "-")

    console.print(table)

    failed = len(report.failed)
    level_style = "red" if failed else "green"
    panel = Panel(
        Text.assemble(
            (f"STATUS: [{'FAILED' if failed else 'CLEAN'}]\n", f"bold {level_style}"),
            (f"{len(report.succeeded)} succeeded, {failed} failed", level_style),
        ),
        border_style=level_style,
        expand=False,
    )
    console.print(panel)
