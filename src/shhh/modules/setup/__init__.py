"""
Setup modules that configure a developer workstation.

Every module depends on ``base``, which sets up proxies, certificates,
Scoop and git.
"""

from shhh.modules.registry import ModuleRegistry
from shhh.modules.setup._shared import SetupDependencies, export_env
from shhh.modules.setup.base import new_base_module
from shhh.modules.setup.golang import new_golang_module
from shhh.modules.setup.node import new_node_module
from shhh.modules.setup.python import new_python_module
from shhh.modules.setup.tools import new_tools_module


def build_registry(deps: SetupDependencies) -> ModuleRegistry:
    """Register every setup module in display order."""
    registry = ModuleRegistry()
    registry.register(new_base_module(deps))
    registry.register(new_python_module(deps))
    registry.register(new_golang_module(deps))
    registry.register(new_node_module(deps))
    registry.register(new_tools_module(deps))
    return registry


__all__ = [
    "SetupDependencies",
    "build_registry",
    "export_env",
    "new_base_module",
    "new_golang_module",
    "new_node_module",
    "new_python_module",
    "new_tools_module",
]
