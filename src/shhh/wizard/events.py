"""Lifecycle events streamed from a running Bridge to the front end."""

from dataclasses import dataclass, field
from typing import List, Union

from shhh.modules.base import ModuleResult, Step


@dataclass(frozen=True)
class ModuleStart:
    """A module is about to run."""

    module_id: str
    name: str
    steps: List[Step] = field(default_factory=list)


@dataclass(frozen=True)
class StepStart:
    """A step is about to be evaluated."""

    module_id: str
    step_name: str
    explain: str
    index: int
    total: int


@dataclass(frozen=True)
class StepDone:
    """A step finished, either applied or skipped."""

    module_id: str
    step_name: str
    index: int
    total: int
    skipped: bool


@dataclass(frozen=True)
class StepError:
    """A step failed."""

    module_id: str
    step_name: str
    index: int
    total: int
    error: Exception


@dataclass(frozen=True)
class AllDone:
    """All modules finished, or the run stopped at the first failure."""

    results: List[ModuleResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)


@dataclass(frozen=True)
class RunError:
    """The run could not start, e.g. dependency resolution failed."""

    error: Exception


Event = Union[ModuleStart, StepStart, StepDone, StepError, AllDone, RunError]
