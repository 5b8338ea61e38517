"""Interactive front end: runs modules on a worker and renders their progress."""

from shhh.wizard.bridge import Bridge, EventHandle
from shhh.wizard.events import (
    AllDone,
    Event,
    ModuleStart,
    RunError,
    StepDone,
    StepError,
    StepStart,
)

__all__ = [
    "AllDone",
    "Bridge",
    "Event",
    "EventHandle",
    "ModuleStart",
    "RunError",
    "StepDone",
    "StepError",
    "StepStart",
]
