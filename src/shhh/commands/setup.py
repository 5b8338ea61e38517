"""Setup commands: plain and interactive module runs."""

from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from shhh.commands._runtime import prepare, record_run, requested_modules
from shhh.modules.base import Module, Step
from shhh.modules.runner import Runner
from shhh.wizard.bridge import Bridge
from shhh.wizard.events import AllDone
from shhh.wizard.picker import pick_modules
from shhh.wizard.progress import run_wizard
from shhh.wizard.summary import print_summary

console = Console()


def _step_printer(explain: bool, quiet: bool, dry_run: bool):
    """Post-step hook printing one line per step."""

    def on_step(
        module: Module,
        step: Step,
        index: int,
        total: int,
        skipped: bool,
        error: Optional[Exception],
    ) -> None:
        prefix = f"  [dim][{index + 1}/{total}][/dim]"
        skip_label = "(not applied)" if dry_run else "(already done)"
        name = escape(step.name)
        if error is not None:
            console.print(f"{prefix}  [red]✗[/red] {name} FAILED: {escape(str(error))}")
            return
        if skipped:
            if not quiet:
                console.print(f"{prefix}  [dim]○ {name} {skip_label}[/dim]")
            return
        console.print(f"{prefix}  [green]✓[/green] {name}")
        if explain and not quiet and step.explain:
            console.print(f"         [dim]{escape(step.explain)}[/dim]")

    return on_step


def _module_printer(module: Module, step: Step, index: int, total: int) -> None:
    if index == 0:
        console.print(f"\n[bold]{escape(module.name)}[/bold] [dim]({module.id})[/dim]")


def setup(
    ctx: typer.Context,
    modules: Optional[List[str]] = typer.Argument(
        None,
        help="Modules to set up (all modules if not specified)",
    ),
) -> None:
    """
    Set up your development environment.

    Runs the requested modules and their dependencies in order. Steps that
    are already satisfied are skipped, so re-running after a failure resumes
    where it stopped.
    """
    options = ctx.obj or {}
    dry_run = options.get("dry_run", False)
    runtime = prepare(ctx, console)

    runner = Runner(dry_run=dry_run, log=runtime.logger.getChild("runner"))
    runner.set_pre_step_hook(_module_printer)
    runner.set_post_step_hook(
        _step_printer(options.get("explain", False), options.get("quiet", False), dry_run)
    )

    if dry_run:
        console.print("\n[yellow]⚠[/yellow]  Dry run mode - no changes will be applied")

    summary = runner.run_modules(runtime.registry, requested_modules(runtime.registry, modules))

    console.print()
    print_summary(console, summary.results, summary.error)
    if not dry_run:
        record_run(runtime, summary.results)

    if not summary.success:
        raise typer.Exit(code=1)


def wizard(
    ctx: typer.Context,
    modules: Optional[List[str]] = typer.Argument(
        None,
        help="Modules to set up (pick interactively if not specified)",
    ),
) -> None:
    """
    Set up your development environment with live progress.

    Without module arguments, asks which modules to set up first.
    Press Ctrl-C to stop after the current step.
    """
    options = ctx.obj or {}
    dry_run = options.get("dry_run", False)
    runtime = prepare(ctx, console)

    if not modules:
        modules = pick_modules(runtime.registry, console)
        if modules is None:
            console.print("[yellow]Setup cancelled.[/yellow]")
            raise typer.Exit(code=130)

    runner = Runner(dry_run=dry_run, log=runtime.logger.getChild("runner"))
    bridge = Bridge(runner, runtime.registry, requested_modules(runtime.registry, modules))

    if dry_run:
        console.print("\n[yellow]⚠[/yellow]  Dry run mode - no changes will be applied")

    terminal = run_wizard(
        bridge, console, show_explain=options.get("explain", False), dry_run=dry_run
    )

    if terminal is None:
        console.print("[yellow]Setup cancelled.[/yellow]")
        raise typer.Exit(code=130)

    console.print()
    if isinstance(terminal, AllDone):
        failure = next((r.error for r in terminal.results if not r.success), None)
        print_summary(console, terminal.results, failure)
        if not dry_run:
            record_run(runtime, terminal.results)
        if failure is not None:
            raise typer.Exit(code=1)
        return

    print_summary(console, [], terminal.error)
    raise typer.Exit(code=1)
