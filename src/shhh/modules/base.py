"""Core types for shhh modules: Step, Module, Category and run results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional


class Category(Enum):
    """Classifies modules into logical groups."""

    BASE = "base"
    LANGUAGE = "language"
    TOOL = "tool"

    @property
    def label(self) -> str:
        """Human-readable name for display."""
        return self.value.capitalize()


@dataclass
class Step:
    """
    A single idempotent operation within a module.

    ``check`` returns True when the step is already satisfied, in which case
    ``apply`` is never called. ``apply`` performs the change and raises on
    failure. ``dry_run`` describes what ``apply`` would do without doing it.
    """

    name: str
    apply: Callable[[], Any]
    check: Optional[Callable[[], bool]] = None
    dry_run: Optional[Callable[[], str]] = None
    description: str = ""
    explain: str = ""

    def is_satisfied(self) -> bool:
        """Evaluate the step's check; a step without one is never satisfied."""
        if self.check is None:
            return False
        return bool(self.check())

    def describe_dry_run(self) -> str:
        """Forecast of what the step would do."""
        if self.dry_run is None:
            return ""
        return self.dry_run()


@dataclass
class Module:
    """
    A discrete unit of system configuration (e.g. "golang", "python").

    Dependencies list module IDs that must be applied before this one.
    Steps run strictly in list order.
    """

    id: str
    name: str
    description: str = ""
    category: Category = Category.BASE
    dependencies: List[str] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)


@dataclass(frozen=True)
class ModuleResult:
    """Outcome of running a single module."""

    module_id: str
    completed: int = 0
    skipped: int = 0
    total: int = 0
    failed_step: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RunSummary:
    """
    Outcome of running several modules in dependency order.

    ``results`` holds one entry per module that was started, including the
    failing one. ``error`` is the resolution error or the first module
    failure, or None when everything succeeded.
    """

    results: List[ModuleResult] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def completed(self) -> int:
        return sum(r.completed for r in self.results)

    @property
    def skipped(self) -> int:
        return sum(r.skipped for r in self.results)

    @property
    def total(self) -> int:
        return sum(r.total for r in self.results)
