"""Tests for the worker-thread bridge."""

import threading
import time
from typing import List

import pytest
from conftest import make_module, make_step

from shhh.modules.base import Step
from shhh.modules.errors import DependencyCycleError, ShhhError
from shhh.modules.registry import ModuleRegistry
from shhh.modules.runner import Runner
from shhh.wizard import bridge as bridge_module
from shhh.wizard.bridge import Bridge
from shhh.wizard.events import (
    AllDone,
    ModuleStart,
    RunError,
    StepDone,
    StepError,
    StepStart,
)


def collect(bridge: Bridge) -> List[object]:
    events = []
    handle = bridge.start()
    while True:
        event = handle()
        if event is None:
            break
        events.append(event)
        handle = bridge.next_event()
    bridge.join(timeout=5)
    return events


@pytest.fixture
def two_step_registry() -> ModuleRegistry:
    registry = ModuleRegistry()
    registry.register(
        make_module(
            "a",
            steps=[make_step("first", [], satisfied=True), make_step("second", [])],
        )
    )
    registry.register(make_module("b", steps=[make_step("other", [])]))
    return registry


@pytest.mark.unit
class TestBridgeEvents:
    """Test the event stream produced by a run."""

    def test_event_order(self, two_step_registry: ModuleRegistry):
        bridge = Bridge(Runner(), two_step_registry, ["a"])

        events = collect(bridge)

        assert [type(e) for e in events] == [
            ModuleStart,
            StepStart,
            StepDone,
            StepStart,
            StepDone,
            AllDone,
        ]
        assert events[0].module_id == "a"
        assert [s.name for s in events[0].steps] == ["first", "second"]
        assert events[1].step_name == "first"
        assert events[1].index == 0
        assert events[1].total == 2
        assert events[2].skipped is True
        assert events[3].step_name == "second"
        assert events[4].skipped is False
        assert [r.module_id for r in events[5].results] == ["a"]
        assert events[5].success

    def test_step_explain_travels_with_start(self, two_step_registry: ModuleRegistry):
        events = collect(Bridge(Runner(), two_step_registry, ["a"]))
        assert events[1].explain == "why first"

    def test_step_error_and_stop(self):
        log: List[str] = []
        registry = ModuleRegistry()
        registry.register(make_module("base", steps=[make_step("boom", log, fail=True)]))
        registry.register(make_module("app", ["base"], steps=[make_step("later", log)]))

        events = collect(Bridge(Runner(), registry, ["app"]))

        assert [type(e) for e in events] == [ModuleStart, StepStart, StepError, AllDone]
        assert isinstance(events[2].error, RuntimeError)
        done = events[-1]
        assert not done.success
        assert done.results[0].failed_step == "boom"
        assert "apply:later" not in log

    def test_resolution_failure(self):
        registry = ModuleRegistry()
        registry.register(make_module("a", ["b"]))
        registry.register(make_module("b", ["a"]))

        events = collect(Bridge(Runner(), registry, ["a"]))

        assert len(events) == 1
        assert isinstance(events[0], RunError)
        assert isinstance(events[0].error, DependencyCycleError)

    def test_events_iterator(self, two_step_registry: ModuleRegistry):
        bridge = Bridge(Runner(), two_step_registry, ["a", "b"])
        bridge.start()

        events = list(bridge.events())

        assert isinstance(events[-1], AllDone)
        assert [r.module_id for r in events[-1].results] == ["a", "b"]

    def test_end_of_stream_is_sticky(self, two_step_registry: ModuleRegistry):
        bridge = Bridge(Runner(), two_step_registry, ["b"])
        collect(bridge)

        assert bridge.next_event()() is None

    def test_start_twice(self, two_step_registry: ModuleRegistry):
        bridge = Bridge(Runner(), two_step_registry, ["b"])
        collect(bridge)

        with pytest.raises(ShhhError):
            bridge.start()

    def test_total_steps(self, two_step_registry: ModuleRegistry):
        assert Bridge(Runner(), two_step_registry, ["a", "b"]).total_steps() == 3
        assert Bridge(Runner(), two_step_registry, ["missing"]).total_steps() == 0


@pytest.mark.unit
class TestBridgeCancellation:
    """Test cooperative cancellation."""

    def test_cancel_before_consuming(self, two_step_registry: ModuleRegistry):
        bridge = Bridge(Runner(), two_step_registry, ["a", "b"])
        handle = bridge.start()
        bridge.cancel()

        assert handle() is None
        bridge.join(timeout=5)
        assert bridge.cancelled

    def test_cancel_unblocks_producer_on_full_queue(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(bridge_module, "QUEUE_SIZE", 1)
        applied: List[str] = []
        steps = [
            Step(name=f"step-{i}", apply=lambda i=i: applied.append(i)) for i in range(20)
        ]
        registry = ModuleRegistry()
        registry.register(make_module("big", steps=steps))

        bridge = Bridge(Runner(), registry, ["big"])
        bridge.start()
        # Give the worker time to fill the queue and block.
        time.sleep(0.2)
        bridge.cancel()
        bridge.join(timeout=5)

        assert not bridge._worker.is_alive()
        assert len(applied) < 20

    def test_cancel_mid_run_stops_later_steps(self):
        gate = threading.Event()
        applied: List[str] = []

        def slow() -> None:
            applied.append("slow")
            gate.wait(timeout=5)

        registry = ModuleRegistry()
        registry.register(
            make_module(
                "m",
                steps=[
                    Step(name="slow", apply=slow),
                    Step(name="never", apply=lambda: applied.append("never")),
                ],
            )
        )
        bridge = Bridge(Runner(), registry, ["m"])
        handle = bridge.start()

        assert isinstance(handle(), ModuleStart)
        assert isinstance(bridge.next_event()(), StepStart)
        bridge.cancel()
        gate.set()
        bridge.join(timeout=5)

        assert applied == ["slow"]
        assert bridge.next_event()() is None
