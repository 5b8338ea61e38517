"""Tests for the core module types."""

import pytest

from shhh.modules.base import Category, Module, ModuleResult, RunSummary, Step
from shhh.modules.errors import StepFailedError


@pytest.mark.unit
class TestStep:
    """Test Step behaviour."""

    def test_step_without_check_is_never_satisfied(self):
        step = Step(name="noop", apply=lambda: None)
        assert step.is_satisfied() is False

    def test_check_result_is_coerced_to_bool(self):
        step = Step(name="noop", apply=lambda: None, check=lambda: "yes")
        assert step.is_satisfied() is True

    def test_dry_run_without_description(self):
        step = Step(name="noop", apply=lambda: None)
        assert step.describe_dry_run() == ""

    def test_dry_run_description(self):
        step = Step(name="noop", apply=lambda: None, dry_run=lambda: "would do it")
        assert step.describe_dry_run() == "would do it"


@pytest.mark.unit
class TestModule:
    def test_defaults(self):
        module = Module(id="base", name="Base")
        assert module.dependencies == []
        assert module.steps == []
        assert module.category == Category.BASE

    def test_category_label(self):
        assert Category.LANGUAGE.label == "Language"
        assert Category.TOOL.label == "Tool"


@pytest.mark.unit
class TestResults:
    """Test ModuleResult and RunSummary."""

    def test_module_result_success(self):
        assert ModuleResult(module_id="base", completed=2, total=2).success

    def test_module_result_failure(self):
        error = StepFailedError("base", "Install git", RuntimeError("boom"))
        result = ModuleResult(module_id="base", total=3, failed_step="Install git", error=error)
        assert not result.success
        assert result.failed_step == "Install git"

    def test_run_summary_totals(self):
        summary = RunSummary(
            results=[
                ModuleResult(module_id="a", completed=1, skipped=2, total=3),
                ModuleResult(module_id="b", completed=2, skipped=0, total=2),
            ]
        )
        assert summary.success
        assert summary.completed == 3
        assert summary.skipped == 2
        assert summary.total == 5


def test_step_failed_error_message_and_cause():
    """Test StepFailedError wraps the underlying exception."""
    cause = ValueError("bad value")
    error = StepFailedError("python", "Install uv", cause)

    assert str(error) == 'step "Install uv" in module "python" failed: bad value'
    assert error.__cause__ is cause
    assert error.module_id == "python"
    assert error.step_name == "Install uv"
