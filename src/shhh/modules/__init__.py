"""
Module system for shhh.

A module is an ordered list of idempotent steps plus the IDs of the modules
it depends on. The registry orders modules by dependency and the runner
applies their steps.
"""

from shhh.modules.base import Category, Module, ModuleResult, RunSummary, Step
from shhh.modules.errors import (
    DependencyCycleError,
    DependencyResolutionError,
    MissingDependencyError,
    RunCancelledError,
    ShhhError,
    StepFailedError,
)
from shhh.modules.registry import ModuleRegistry
from shhh.modules.runner import PostStepHook, PreStepHook, Runner

__all__ = [
    "Category",
    "DependencyCycleError",
    "DependencyResolutionError",
    "MissingDependencyError",
    "Module",
    "ModuleRegistry",
    "ModuleResult",
    "PostStepHook",
    "PreStepHook",
    "RunCancelledError",
    "RunSummary",
    "Runner",
    "ShhhError",
    "Step",
    "StepFailedError",
]
