"""Summary of a finished run."""

from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from shhh.modules.base import ModuleResult


def summary_table(results: Sequence[ModuleResult]) -> Table:
    table = Table(title="Summary", show_lines=False)
    table.add_column("Module", style="cyan")
    table.add_column("Status")
    table.add_column("Completed", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Total", justify="right")

    for result in results:
        if result.success:
            status = "[green]done[/green]"
        else:
            status = f"[red]FAILED at {escape(repr(result.failed_step))}[/red]"
        table.add_row(
            result.module_id,
            status,
            str(result.completed),
            str(result.skipped),
            str(result.total),
        )
    return table


def print_summary(
    console: Console, results: Sequence[ModuleResult], error: Optional[Exception] = None
) -> None:
    """Print per-module counts, totals, and the failure if there was one."""
    if results:
        console.print(summary_table(results))

    completed = sum(r.completed for r in results)
    skipped = sum(r.skipped for r in results)
    total = sum(r.total for r in results)
    console.print(f"\nTotal: {total} steps ({completed} completed, {skipped} skipped)")

    if error is not None:
        console.print(f"\n[red]✗[/red] {escape(str(error))}")
        console.print(
            "[dim]Fix the issue and re-run - completed steps will be skipped.[/dim]"
        )
