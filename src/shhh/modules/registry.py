"""Module registry with dependency-ordered resolution."""

from typing import Dict, Iterable, List, Optional, Set

from shhh.modules.base import Category, Module
from shhh.modules.errors import DependencyCycleError, MissingDependencyError


class ModuleRegistry:
    """
    Registry of shhh modules keyed by ID.

    Registration order is remembered and used to break ties during
    dependency resolution, so results are deterministic.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._modules: Dict[str, Module] = {}
        # module ID -> registration sequence number
        self._order: Dict[str, int] = {}

    def register(self, module: Module) -> None:
        """
        Add a module to the registry.

        Re-registering an existing ID replaces the module but keeps the
        position claimed by the first registration.
        """
        if module.id not in self._order:
            self._order[module.id] = len(self._order)
        self._modules[module.id] = module

    def get(self, module_id: str) -> Optional[Module]:
        """Get a module by ID, or None if it is not registered."""
        return self._modules.get(module_id)

    def all(self) -> List[Module]:
        """Every registered module in registration order."""
        return [self._modules[module_id] for module_id in self._ordered_ids()]

    def by_category(self, category: Category) -> List[Module]:
        """Modules in the given category, in registration order."""
        return [module for module in self.all() if module.category == category]

    def list_modules(self) -> List[str]:
        """List the IDs of all registered modules."""
        return self._ordered_ids()

    def is_available(self, module_id: str) -> bool:
        """Check if a module is registered."""
        return module_id in self._modules

    def _ordered_ids(self) -> List[str]:
        return sorted(self._order, key=self._order.__getitem__)

    def resolve_deps(self, module_ids: Iterable[str]) -> List[str]:
        """
        Compute an execution order for the requested modules.

        The result contains the requested modules and all of their transitive
        dependencies, each exactly once, with every module placed after its
        dependencies. When several modules are ready at the same time the one
        registered first comes first.

        Args:
            module_ids: IDs of the modules to run

        Returns:
            Module IDs in execution order

        Raises:
            MissingDependencyError: If a module or dependency is not registered
            DependencyCycleError: If the dependency graph contains a cycle
        """
        needed: Set[str] = set()

        def collect(module_id: str) -> None:
            if module_id in needed:
                return
            module = self._modules.get(module_id)
            if module is None:
                raise MissingDependencyError(module_id)
            needed.add(module_id)
            for dep in module.dependencies:
                collect(dep)

        for module_id in module_ids:
            collect(module_id)

        in_degree: Dict[str, int] = {}
        for module_id in needed:
            deps = set(self._modules[module_id].dependencies)
            in_degree[module_id] = len(deps & needed)

        candidates = [module_id for module_id in self._ordered_ids() if module_id in needed]
        queue = [module_id for module_id in candidates if in_degree[module_id] == 0]

        ordered: List[str] = []
        while queue:
            current = queue.pop(0)
            ordered.append(current)

            # Scan in registration order so newly ready modules queue up stably.
            for module_id in candidates:
                if current in self._modules[module_id].dependencies:
                    in_degree[module_id] -= 1
                    if in_degree[module_id] == 0:
                        queue.append(module_id)

        if len(ordered) != len(needed):
            raise DependencyCycleError()

        return ordered
