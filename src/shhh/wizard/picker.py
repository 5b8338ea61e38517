"""Interactive module picker for the wizard."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, TextIO

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from shhh.modules.base import Category, Module
from shhh.modules.registry import ModuleRegistry

CATEGORY_ORDER = (Category.BASE, Category.LANGUAGE, Category.TOOL)


@dataclass
class PickerItem:
    module: Module
    # Base modules cannot be deselected
    required: bool = False
    # names of selected modules that pulled this one in
    required_by: Set[str] = field(default_factory=set)

    @property
    def hint(self) -> str:
        if self.required:
            return "(required)"
        if self.required_by:
            return f"(required by {', '.join(sorted(self.required_by))})"
        return ""


class ModulePicker:
    """
    Multi-select state for choosing which modules to set up.

    Modules are grouped by category. Base modules are always selected.
    Selecting a module selects its dependencies, recursively, and marks
    them with the module that required them. Deselecting a module drops
    those marks and deselects dependencies nothing else needs.
    """

    def __init__(self, registry: ModuleRegistry):
        self.groups: Dict[Category, List[PickerItem]] = {}
        self.items: List[PickerItem] = []
        self._by_id: Dict[str, PickerItem] = {}
        self.selected: Set[str] = set()
        # modules the user picked themselves
        self._chosen: Set[str] = set()

        for category in CATEGORY_ORDER:
            modules = registry.by_category(category)
            if not modules:
                continue
            group = []
            for module in modules:
                item = PickerItem(module=module, required=category == Category.BASE)
                group.append(item)
                self._by_id[module.id] = item
                if item.required:
                    self.selected.add(module.id)
            self.groups[category] = group
            self.items.extend(group)

    def item(self, module_id: str) -> Optional[PickerItem]:
        return self._by_id.get(module_id)

    def is_selected(self, module_id: str) -> bool:
        return module_id in self.selected

    def selected_ids(self) -> List[str]:
        """Selected module IDs in display order."""
        return [item.module.id for item in self.items if item.module.id in self.selected]

    def can_confirm(self) -> bool:
        return bool(self.selected)

    def toggle(self, module_id: str) -> None:
        """Select or deselect a module. Required modules stay selected."""
        item = self._by_id.get(module_id)
        if item is None or item.required:
            return

        if module_id in self.selected:
            self.selected.discard(module_id)
            self._chosen.discard(module_id)
            self._clear_dep_hints(item.module)
        else:
            self.selected.add(module_id)
            self._chosen.add(module_id)
            self._auto_select_deps(item.module)

    def select_all(self) -> None:
        for item in self.items:
            self._chosen.add(item.module.id)
            if item.module.id not in self.selected:
                self.selected.add(item.module.id)
                self._auto_select_deps(item.module)

    def _auto_select_deps(self, module: Module) -> None:
        for dep_id in module.dependencies:
            dep = self._by_id.get(dep_id)
            if dep is None:
                # Unregistered; dependency resolution reports it at run time.
                continue
            self.selected.add(dep_id)
            dep.required_by.add(module.name)
            self._auto_select_deps(dep.module)

    def _clear_dep_hints(self, module: Module) -> None:
        for dep_id in module.dependencies:
            dep = self._by_id.get(dep_id)
            if dep is None:
                continue
            dep.required_by.discard(module.name)
            if (
                dep_id in self.selected
                and not dep.required
                and dep_id not in self._chosen
                and not dep.required_by
                and not self._is_dep_of_any_selected(dep_id)
            ):
                self.selected.discard(dep_id)
                self._clear_dep_hints(dep.module)

    def _is_dep_of_any_selected(self, module_id: str) -> bool:
        return any(
            module_id in item.module.dependencies
            for item in self.items
            if item.module.id in self.selected
        )


def picker_table(picker: ModulePicker) -> Table:
    """Numbered rows of selectable modules, grouped under category headers."""
    table = Table(title="Select modules to set up", show_header=False, box=None)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Selected")
    table.add_column("Module")

    number = 0
    for category, group in picker.groups.items():
        table.add_row("", "", f"[bold]{category.label}[/bold]")
        for item in group:
            number += 1
            checkbox = "[green]\\[x][/green]" if picker.is_selected(item.module.id) else "[ ]"
            label = escape(item.module.name)
            if item.hint:
                label += f" [dim]{escape(item.hint)}[/dim]"
            table.add_row(str(number), checkbox, label)
    return table


def pick_modules(
    registry: ModuleRegistry, console: Console, stream: Optional[TextIO] = None
) -> Optional[List[str]]:
    """
    Ask which modules to set up.

    Answers are module numbers to toggle (space or comma separated), ``a``
    to select everything, ``q`` to quit, or an empty line to confirm.

    Args:
        registry: Registry holding the modules on offer
        console: Console to render the picker on
        stream: Read answers from this stream instead of stdin

    Returns:
        Selected module IDs, or None if the user quit
    """
    picker = ModulePicker(registry)

    while True:
        console.print()
        console.print(picker_table(picker))
        count = len(picker.selected_ids())
        answer = Prompt.ask(
            f"[dim]numbers: toggle  a: select all  q: quit  enter: confirm "
            f"({count} selected)[/dim]",
            console=console,
            default="",
            show_default=False,
            stream=stream,
        ).strip().lower()

        if answer == "":
            if picker.can_confirm():
                return picker.selected_ids()
            console.print("[yellow]Select at least one module.[/yellow]")
            continue
        if answer == "q":
            return None
        if answer == "a":
            picker.select_all()
            continue

        for token in answer.replace(",", " ").split():
            if not token.isdigit() or not 1 <= int(token) <= len(picker.items):
                console.print(f"[red]✗[/red] Not a module number: {escape(token)}")
                continue
            picker.toggle(picker.items[int(token) - 1].module.id)
