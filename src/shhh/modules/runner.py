"""
Runner: executes module steps in order with check-before-run semantics.

Contract: any step that persists an environment variable MUST also export it
into ``os.environ`` before returning, so that later steps and the child
processes they spawn within the same run see the new value.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional

from shhh.modules.base import Module, ModuleResult, RunSummary, Step
from shhh.modules.errors import DependencyResolutionError, ShhhError, StepFailedError
from shhh.modules.registry import ModuleRegistry

# (module, step, index, total)
PreStepHook = Callable[[Module, Step, int, int], None]
# (module, step, index, total, skipped, error)
PostStepHook = Callable[[Module, Step, int, int, bool, Optional[Exception]], None]

logger = logging.getLogger(__name__)


class Runner:
    """
    Runs modules one step at a time.

    For each step:
      - if its check passes, the step is skipped;
      - in dry-run mode its forecast is logged and it counts as skipped;
      - otherwise it is applied, and the first failure stops the module.
    """

    def __init__(self, dry_run: bool = False, log: Optional[logging.Logger] = None):
        """
        Initialize the runner.

        Args:
            dry_run: Describe steps instead of applying them
            log: Logger to use (defaults to this module's logger)
        """
        self.dry_run = dry_run
        self.logger = log or logger
        self._pre_step: Optional[PreStepHook] = None
        self._post_step: Optional[PostStepHook] = None

    def set_pre_step_hook(self, hook: Optional[PreStepHook]) -> None:
        """Register a hook invoked before each step is evaluated. Pass None to clear."""
        self._pre_step = hook

    def set_post_step_hook(self, hook: Optional[PostStepHook]) -> None:
        """Register a hook invoked after each step is evaluated. Pass None to clear."""
        self._post_step = hook

    def run_module(self, module: Module) -> ModuleResult:
        """
        Execute every step of a module sequentially.

        Args:
            module: Module to run

        Returns:
            ModuleResult with step counts and the first failure, if any
        """
        total = len(module.steps)
        completed = 0
        skipped = 0

        for index, step in enumerate(module.steps):
            if self._pre_step is not None:
                self._pre_step(module, step, index, total)

            try:
                satisfied = step.is_satisfied()
            except Exception as e:
                return self._fail(module, step, index, completed, skipped, e, 0.0)

            if satisfied:
                skipped += 1
                self.logger.info(
                    "step already satisfied, skipping: module=%s step=%s", module.id, step.name
                )
                self._notify(module, step, index, total, True, None)
                continue

            if self.dry_run:
                try:
                    forecast = step.describe_dry_run()
                except Exception as e:
                    return self._fail(module, step, index, completed, skipped, e, 0.0)
                skipped += 1
                self.logger.info(
                    "dry-run: module=%s step=%s would_do=%s", module.id, step.name, forecast
                )
                self._notify(module, step, index, total, True, None)
                continue

            start = time.monotonic()
            try:
                step.apply()
            except Exception as e:
                return self._fail(
                    module, step, index, completed, skipped, e, time.monotonic() - start
                )

            completed += 1
            self.logger.info(
                "step completed: module=%s step=%s elapsed=%.3fs",
                module.id,
                step.name,
                time.monotonic() - start,
            )
            self._notify(module, step, index, total, False, None)

        return ModuleResult(
            module_id=module.id,
            completed=completed,
            skipped=skipped,
            total=total,
        )

    def run_modules(self, registry: ModuleRegistry, module_ids: Iterable[str]) -> RunSummary:
        """
        Resolve dependencies and run each module in order.

        Stops at the first module that fails. Nothing runs if resolution fails.

        Args:
            registry: Registry holding the modules
            module_ids: IDs of the modules requested

        Returns:
            RunSummary with the results of every module started
        """
        try:
            ordered = registry.resolve_deps(module_ids)
        except DependencyResolutionError as e:
            self.logger.error("resolving dependencies: %s", e)
            return RunSummary(results=[], error=e)

        results: List[ModuleResult] = []
        for module_id in ordered:
            module = registry.get(module_id)
            if module is None:
                return RunSummary(
                    results=results,
                    error=ShhhError(f'module "{module_id}" not found in registry'),
                )

            result = self.run_module(module)
            results.append(result)

            if result.error is not None:
                return RunSummary(results=results, error=result.error)

        return RunSummary(results=results)

    def _fail(
        self,
        module: Module,
        step: Step,
        index: int,
        completed: int,
        skipped: int,
        cause: Exception,
        elapsed: float,
    ) -> ModuleResult:
        error = StepFailedError(module.id, step.name, cause)
        self.logger.error(
            "step failed: module=%s step=%s elapsed=%.3fs error=%s",
            module.id,
            step.name,
            elapsed,
            cause,
        )
        self._notify(module, step, index, len(module.steps), False, cause)
        return ModuleResult(
            module_id=module.id,
            completed=completed,
            skipped=skipped,
            total=len(module.steps),
            failed_step=step.name,
            error=error,
        )

    def _notify(
        self,
        module: Module,
        step: Step,
        index: int,
        total: int,
        skipped: bool,
        error: Optional[Exception],
    ) -> None:
        if self._post_step is not None:
            self._post_step(module, step, index, total, skipped, error)
