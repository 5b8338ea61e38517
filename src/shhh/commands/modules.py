"""Module introspection command."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from shhh.commands._runtime import build_dependencies, load_config
from shhh.modules.base import Category
from shhh.modules.setup import build_registry
from shhh.state import State

console = Console()


def list_modules(
    ctx: typer.Context,
    category: Optional[Category] = typer.Option(
        None,
        "--category",
        help="Only show modules in this category",
        case_sensitive=False,
    ),
) -> None:
    """List available modules and their dependencies."""
    options = ctx.obj or {}
    config = load_config(console, options.get("config_file"))
    registry = build_registry(build_dependencies(config, State()))

    modules = registry.by_category(category) if category else registry.all()

    table = Table(title="Modules")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Depends on", style="dim")
    table.add_column("Steps", justify="right")
    table.add_column("Description", style="dim")

    for module in modules:
        table.add_row(
            module.id,
            module.name,
            module.category.label,
            ", ".join(module.dependencies) or "-",
            str(len(module.steps)),
            module.description,
        )

    console.print(table)
