"""Live progress view fed by Bridge events."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.text import Text

from shhh.wizard.bridge import Bridge
from shhh.wizard.events import (
    AllDone,
    Event,
    ModuleStart,
    RunError,
    StepDone,
    StepError,
    StepStart,
)


class StepState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


ICONS = {
    StepState.PENDING: "[dim]·[/dim]",
    StepState.RUNNING: "[cyan]→[/cyan]",
    StepState.DONE: "[green]✓[/green]",
    StepState.SKIPPED: "[dim]○[/dim]",
    StepState.FAILED: "[red]✗[/red]",
}


@dataclass
class StepStatus:
    name: str
    explain: str = ""
    state: StepState = StepState.PENDING
    error: Optional[Exception] = None


class ProgressView:
    """Tracks module and step state from events and renders it."""

    def __init__(self, overall_total: int = 0, show_explain: bool = False, dry_run: bool = False):
        self.overall_total = overall_total
        self.overall_done = 0
        self.show_explain = show_explain
        self.skip_label = "(not applied)" if dry_run else "(already done)"
        self.current_module = ""
        self.current_explain = ""
        self.steps: List[StepStatus] = []

    def update(self, event: Event) -> None:
        if isinstance(event, ModuleStart):
            self.current_module = event.name
            self.steps = [StepStatus(name=s.name, explain=s.explain) for s in event.steps]
            self.current_explain = ""
        elif isinstance(event, StepStart):
            if event.index < len(self.steps):
                self.steps[event.index].state = StepState.RUNNING
                self.current_explain = event.explain
        elif isinstance(event, StepDone):
            if event.index < len(self.steps):
                self.steps[event.index].state = (
                    StepState.SKIPPED if event.skipped else StepState.DONE
                )
                self.overall_done += 1
        elif isinstance(event, StepError):
            if event.index < len(self.steps):
                self.steps[event.index].state = StepState.FAILED
                self.steps[event.index].error = event.error
                self.overall_done += 1

    def render(self) -> RenderableType:
        lines: List[RenderableType] = [
            Text(self.current_module or "Starting...", style="bold")
        ]
        for status in self.steps:
            line = f"  {ICONS[status.state]} {escape(status.name)}"
            if status.state == StepState.SKIPPED:
                line += f" [dim]{self.skip_label}[/dim]"
            if status.error is not None:
                line += f"\n      [red]{escape(str(status.error))}[/red]"
            lines.append(Text.from_markup(line))

        total = max(self.overall_total, self.overall_done, 1)
        lines.append(Text(""))
        lines.append(ProgressBar(total=total, completed=self.overall_done, width=40))
        lines.append(Text.from_markup(f"[dim]{self.overall_done}/{total} steps[/dim]"))

        if self.show_explain and self.current_explain:
            lines.append(Panel(self.current_explain, title="Why?", border_style="dim"))

        return Group(*lines)


def run_wizard(
    bridge: Bridge, console: Console, show_explain: bool = False, dry_run: bool = False
) -> Optional[Union[AllDone, RunError]]:
    """
    Drive a bridge to completion while rendering live progress.

    Ctrl-C cancels the bridge. Returns the terminal event, or None if the
    run was cancelled before one arrived.
    """
    view = ProgressView(
        overall_total=bridge.total_steps(), show_explain=show_explain, dry_run=dry_run
    )
    terminal: Optional[Union[AllDone, RunError]] = None

    with Live(view.render(), console=console, refresh_per_second=8, transient=False) as live:
        handle = bridge.start()
        try:
            while True:
                event = handle()
                if event is None:
                    break
                if isinstance(event, (AllDone, RunError)):
                    terminal = event
                    continue
                view.update(event)
                live.update(view.render())
                handle = bridge.next_event()
        except KeyboardInterrupt:
            bridge.cancel()
            console.print("\n[yellow]Cancelling after the current step...[/yellow]")
            bridge.join()

    return terminal
