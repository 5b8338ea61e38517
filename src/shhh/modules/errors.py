"""Error types raised by the module engine."""

from typing import Optional


class ShhhError(Exception):
    """Base class for all shhh errors."""


class DependencyResolutionError(ShhhError):
    """Raised when no execution order can be computed for a set of modules."""


class MissingDependencyError(DependencyResolutionError):
    """A requested module or one of its dependencies is not registered."""

    def __init__(self, module_id: str):
        self.module_id = module_id
        super().__init__(f'module "{module_id}" not found in registry')


class DependencyCycleError(DependencyResolutionError):
    """The dependency graph of the requested modules contains a cycle."""

    def __init__(self) -> None:
        super().__init__("dependency cycle detected among modules")


class StepFailedError(ShhhError):
    """
    A step failed while being checked or applied.

    The underlying exception is available as ``__cause__``.
    """

    def __init__(self, module_id: str, step_name: str, cause: Optional[BaseException] = None):
        self.module_id = module_id
        self.step_name = step_name
        message = f'step "{step_name}" in module "{module_id}" failed'
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.__cause__ = cause


class RunCancelledError(ShhhError):
    """The run was cancelled before the next step could start."""

    def __init__(self) -> None:
        super().__init__("run cancelled")
