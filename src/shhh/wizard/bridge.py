"""Bridge: runs modules on a worker thread and streams lifecycle events."""

import logging
import queue
import threading
from typing import Callable, Iterator, List, Optional, Sequence

from shhh.modules.base import Module, ModuleResult, Step
from shhh.modules.errors import RunCancelledError, ShhhError
from shhh.modules.registry import ModuleRegistry
from shhh.modules.runner import Runner
from shhh.wizard.events import (
    AllDone,
    Event,
    ModuleStart,
    RunError,
    StepDone,
    StepError,
    StepStart,
)

# Calling a handle blocks until the next event, or returns None at end of stream.
EventHandle = Callable[[], Optional[Event]]

QUEUE_SIZE = 64
POLL_INTERVAL = 0.05

_END = object()

logger = logging.getLogger(__name__)


class Bridge:
    """
    Runs modules on a background thread and hands lifecycle events to a
    single-threaded consumer one at a time.

    Events are produced in a fixed order: for each module a ModuleStart, then
    for each step a StepStart followed by a StepDone or StepError, and
    finally exactly one AllDone (or RunError if resolution failed).

    Cancellation is cooperative: the worker checks it whenever it hands off
    an event, so a step already being applied finishes but nothing after it
    starts.
    """

    def __init__(self, runner: Runner, registry: ModuleRegistry, module_ids: Sequence[str]):
        self.runner = runner
        self.registry = registry
        self.module_ids = list(module_ids)
        self._events: "queue.Queue[object]" = queue.Queue(maxsize=QUEUE_SIZE)
        self._cancelled = threading.Event()
        self._finished = threading.Event()
        self._worker: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Ask the worker to stop; safe to call more than once."""
        self._cancelled.set()

    def start(self) -> EventHandle:
        """
        Launch module execution on a worker thread.

        Returns:
            A handle that retrieves the first event
        """
        if self._worker is not None:
            raise ShhhError("bridge already started")

        self.runner.set_pre_step_hook(self._on_pre_step)
        self.runner.set_post_step_hook(self._on_post_step)

        self._worker = threading.Thread(target=self._run, name="shhh-bridge", daemon=True)
        self._worker.start()

        return self.next_event()

    def next_event(self) -> EventHandle:
        """Return a handle that retrieves the next event."""
        return self._receive

    def events(self) -> Iterator[Event]:
        """Iterate over events until the stream ends."""
        handle = self.next_event()
        while True:
            event = handle()
            if event is None:
                return
            yield event

    def total_steps(self) -> int:
        """Number of steps across all modules that will run, or 0 if resolution fails."""
        try:
            ordered = self.registry.resolve_deps(self.module_ids)
        except ShhhError:
            return 0
        total = 0
        for module_id in ordered:
            module = self.registry.get(module_id)
            if module is not None:
                total += len(module.steps)
        return total

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the worker thread to exit."""
        if self._worker is not None:
            self._worker.join(timeout)

    def _receive(self) -> Optional[Event]:
        while not self._cancelled.is_set():
            try:
                item = self._events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                if self._finished.is_set() and self._events.empty():
                    return None
                continue
            if item is _END:
                self._finished.set()
                return None
            return item  # type: ignore[return-value]
        return None

    def _send(self, event: object) -> bool:
        """Hand an event to the consumer; False once cancelled."""
        while not self._cancelled.is_set():
            try:
                self._events.put(event, timeout=POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _deliver(self, event: Event) -> None:
        """Send from inside a runner hook; stops the runner once cancelled."""
        if not self._send(event):
            raise RunCancelledError()

    def _run(self) -> None:
        try:
            self._execute()
        except RunCancelledError:
            logger.info("bridge run cancelled")
        except Exception:
            logger.exception("bridge worker crashed")
        finally:
            self._finished.set()
            self._send(_END)

    def _execute(self) -> None:
        try:
            ordered = self.registry.resolve_deps(self.module_ids)
        except ShhhError as e:
            self._send(RunError(error=e))
            return

        results: List[ModuleResult] = []
        for module_id in ordered:
            module = self.registry.get(module_id)
            if module is None:
                self._send(RunError(error=ShhhError(f'module "{module_id}" not found')))
                return

            if not self._send(
                ModuleStart(module_id=module.id, name=module.name, steps=list(module.steps))
            ):
                return

            result = self.runner.run_module(module)
            results.append(result)

            if self.cancelled or result.error is not None:
                break

        self._send(AllDone(results=results))

    def _on_pre_step(self, module: Module, step: Step, index: int, total: int) -> None:
        self._deliver(
            StepStart(
                module_id=module.id,
                step_name=step.name,
                explain=step.explain,
                index=index,
                total=total,
            )
        )

    def _on_post_step(
        self,
        module: Module,
        step: Step,
        index: int,
        total: int,
        skipped: bool,
        error: Optional[Exception],
    ) -> None:
        if error is not None:
            self._deliver(
                StepError(
                    module_id=module.id,
                    step_name=step.name,
                    index=index,
                    total=total,
                    error=error,
                )
            )
            return
        self._deliver(
            StepDone(
                module_id=module.id,
                step_name=step.name,
                index=index,
                total=total,
                skipped=skipped,
            )
        )
