"""Main CLI application using Typer."""

import sys
from typing import Optional

import typer
from rich.console import Console
from rich.traceback import install

from shhh import __version__
from shhh.commands import modules, setup
from shhh.config import ConfigError, ConfigManager

# Install rich traceback handler
install(show_locals=True)

console = Console()

app = typer.Typer(
    name="shhh",
    help="shhh - Set up a developer workstation behind a corporate proxy",
    add_completion=True,
    rich_markup_mode="rich",
)

app.command("setup")(setup.setup)
app.command("wizard")(setup.wizard)
app.command("modules")(modules.list_modules)


@app.command()
def version() -> None:
    """Show the CLI version."""
    console.print(f"[bold blue]shhh[/bold blue] version [green]{__version__}[/green]")


@app.command()
def config(
    ctx: typer.Context,
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    init: bool = typer.Option(False, "--init", help="Initialize configuration file"),
) -> None:
    """Manage shhh configuration."""
    config_manager = ConfigManager((ctx.obj or {}).get("config_file"))

    if init:
        if config_manager.exists():
            console.print(
                f"[yellow]⚠[/yellow]  Configuration file already exists at "
                f"[cyan]{config_manager.config_path}[/cyan]"
            )
            raise typer.Exit(code=1)
        try:
            config_manager.create_default_config()
            console.print(
                f"[green]✓[/green] Configuration file created at "
                f"[cyan]{config_manager.config_path}[/cyan]"
            )
            console.print("\nPlease edit the file with your organization's proxy and mirrors.")
        except OSError as e:
            console.print(f"[red]✗[/red] Failed to create configuration: {e}")
            raise typer.Exit(code=1)

    elif show:
        try:
            cfg = config_manager.load()
        except ConfigError as e:
            console.print(f"[red]✗[/red] Failed to load configuration: {e}")
            raise typer.Exit(code=1)
        console.print("\n[bold]Current Configuration:[/bold]\n")
        console.print(f"Config file:  [cyan]{config_manager.config_path}[/cyan]")
        console.print(f"Organization: [yellow]{cfg.org.name or 'None'}[/yellow]")
        console.print(f"HTTP proxy:   [yellow]{cfg.proxy.http or 'None'}[/yellow]")
        console.print(f"HTTPS proxy:  [yellow]{cfg.proxy.https or 'None'}[/yellow]")
        console.print(f"Certificates: [yellow]{cfg.certs.source}[/yellow]")
        console.print(f"PyPI mirror:  [yellow]{cfg.registries.pypi_mirror or 'None'}[/yellow]")
        console.print(f"npm registry: [yellow]{cfg.registries.npm_registry or 'None'}[/yellow]")
        console.print(f"Go proxy:     [yellow]{cfg.registries.go_proxy or 'None'}[/yellow]")
        console.print(
            f"Languages:    Python [yellow]{cfg.python.version}[/yellow], "
            f"Go [yellow]{cfg.golang.version}[/yellow], "
            f"Node.js [yellow]{cfg.node.version}[/yellow]"
        )
    else:
        console.print("Use [cyan]--show[/cyan] to display configuration")
        console.print("Use [cyan]--init[/cyan] to create a new configuration file")


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
        envvar="SHHH_CONFIG_FILE",
    ),
    explain: bool = typer.Option(
        False,
        "--explain",
        help="Explain what each step does and why",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Print less output",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be done without changing anything",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show log output on stderr",
        envvar="SHHH_VERBOSE",
    ),
) -> None:
    """
    shhh - Set up a developer workstation behind a corporate proxy.

    Installs languages and tools, wires up proxies, certificates and package
    mirrors, and can be re-run safely: finished steps are skipped.

    Settings are read from (highest priority first):
      1. SHHH_* environment variables
      2. Configuration file (shhh.yaml)
      3. Built-in defaults
    """
    # Store global options in context
    ctx.obj = {
        "config_file": config_file,
        "explain": explain,
        "quiet": quiet,
        "dry_run": dry_run,
        "verbose": verbose,
    }

    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")


def run() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
