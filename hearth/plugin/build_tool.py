"""
Build Tool Interface and Module Build Tool.

The registry core only needs two things from a build tool: the direct
dependency list of one unit, and a way to activate a batch of units.
ModuleBuildTool is the in-process implementation used by default: a build
unit is a Python source file loaded with importlib.

Key features:
- Unit declaration with direct dependencies
- Transitive closure and topological ordering (Kahn's algorithm)
- Module caching, dropped when a unit is re-declared
- Undeclared dependencies resolved as importable Python modules
- Per-unit registration entry point: register(registry)
"""

import importlib
import importlib.util
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol

from hearth.plugin.errors import PluginError

logger = logging.getLogger(__name__)

# Name of the function a unit module defines to register its plugin(s)
REGISTER_HOOK = "register"

_MODULE_PREFIX = "hearth_unit_"


class BuildError(PluginError):
    """Raised when a build unit cannot be declared, resolved or loaded."""

    pass


class DependencyError(BuildError):
    """Raised when the unit dependency graph cannot be ordered."""

    pass


class BuildTool(Protocol):
    """What the registry core requires from a build tool."""

    def declare_unit(
        self, name: str, path: Path, depends_on: Iterable[str] = ()
    ) -> None: ...

    def declared_dependencies(self, name: str) -> frozenset[str]: ...

    def activate(self, names: Iterable[str]) -> None: ...


@dataclass(frozen=True)
class BuildUnit:
    """
    A declared build unit.

    Attributes:
        name: Unit name
        path: Python source file implementing the unit
        depends_on: Names of units (or importable modules) it depends on
    """

    name: str
    path: Path
    depends_on: tuple[str, ...] = ()


class ModuleBuildTool:
    """
    Build tool whose units are Python files loaded with importlib.

    After a unit's module executes, its register(registry) function, if any,
    is called with the registry given at construction.
    """

    def __init__(self, registry: Any = None):
        """
        Initialize ModuleBuildTool.

        Args:
            registry: Object passed to each unit's register() entry point
        """
        self._registry = registry
        self._units: dict[str, BuildUnit] = {}
        self._modules: dict[str, ModuleType] = {}

    def declare_unit(
        self, name: str, path: Path, depends_on: Iterable[str] = ()
    ) -> None:
        """
        Declare (or re-declare) a build unit.

        Re-declaring a unit forgets its loaded module, so the next activation
        executes it again.

        Args:
            name: Unit name
            path: Python source file
            depends_on: Direct dependencies
        """
        if name in self._units:
            self._forget_module(name)
        self._units[name] = BuildUnit(name, Path(path), tuple(depends_on))

    def declared_dependencies(self, name: str) -> frozenset[str]:
        """
        Return the direct dependencies of a unit.

        Raises:
            BuildError: If the unit was never declared
        """
        unit = self._units.get(name)
        if unit is None:
            raise BuildError(f"Unknown build unit: {name}")
        return frozenset(unit.depends_on)

    def activate(self, names: Iterable[str]) -> None:
        """
        Load a batch of units and everything they depend on.

        Each unit is loaded at most once, after all of its dependencies.

        Args:
            names: Unit names to activate

        Raises:
            BuildError: If a unit is unknown or fails to load
            DependencyError: If the dependency graph has a cycle
        """
        requested = list(names)
        for name in requested:
            if name not in self._units:
                raise BuildError(f"Unknown build unit: {name}")

        for name in self._load_order(requested):
            if name in self._modules:
                continue
            if name in self._units:
                self._load_unit(self._units[name])
            else:
                self._import_external(name)

    def _load_order(self, names: list[str]) -> list[str]:
        """
        Resolve the transitive closure of names in dependency order.

        Returns:
            Unit names, dependencies first
        """
        graph: dict[str, list[str]] = {}
        in_degree: dict[str, int] = {}

        to_process = list(names)
        while to_process:
            current = to_process.pop(0)
            if current in graph:
                continue

            graph[current] = []
            in_degree.setdefault(current, 0)

            unit = self._units.get(current)
            if unit is None:
                # External module, no declared dependencies
                continue

            for dep in unit.depends_on:
                to_process.append(dep)

        for current in graph:
            unit = self._units.get(current)
            if unit is None:
                continue
            for dep in set(unit.depends_on):
                graph[dep].append(current)
                in_degree[current] += 1

        # Kahn's algorithm, sorted for deterministic order
        queue = [node for node in graph if in_degree[node] == 0]
        result = []

        while queue:
            queue.sort()
            node = queue.pop(0)
            result.append(node)

            for dependent in graph[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(result) != len(graph):
            cyclic = sorted(node for node in graph if in_degree[node] > 0)
            raise DependencyError(
                f"Circular dependency detected among units: {', '.join(cyclic)}"
            )

        return result

    def _load_unit(self, unit: BuildUnit) -> None:
        """Execute a unit's module and call its registration entry point."""
        if not unit.path.is_file():
            raise BuildError(f"Source file for unit {unit.name} not found: {unit.path}")

        module_name = _MODULE_PREFIX + unit.name.replace("-", "_")
        spec = importlib.util.spec_from_file_location(module_name, unit.path)
        if spec is None or spec.loader is None:
            raise BuildError(f"Failed to create module spec for {unit.path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        existing = set(sys.modules)

        unit_dir = str(unit.path.parent)
        sys.path.insert(0, unit_dir)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise BuildError(f"Failed to load unit {unit.name}: {e}") from e
        finally:
            if unit_dir in sys.path:
                sys.path.remove(unit_dir)
            self._drop_sibling_modules(unit, existing)

        self._modules[unit.name] = module
        logger.debug("Loaded build unit %s from %s", unit.name, unit.path)

        entry = getattr(module, REGISTER_HOOK, None)
        if not callable(entry):
            return

        try:
            entry(self._registry)
        except PluginError:
            self._forget_module(unit.name)
            raise
        except Exception as e:
            self._forget_module(unit.name)
            raise BuildError(f"Registration entry point of unit {unit.name} failed: {e}") from e

    def _drop_sibling_modules(self, unit: BuildUnit, existing: set[str]) -> None:
        """
        Remove modules a unit imported from its own directory from sys.modules.

        The unit keeps its references, but the next unit importing a module of
        the same name (or this unit, re-executed) loads its own copy.
        """
        unit_dir = unit.path.parent.resolve()
        for key in [key for key in sys.modules if key not in existing]:
            origin = getattr(sys.modules[key], "__file__", None)
            if origin is not None and Path(origin).resolve().is_relative_to(unit_dir):
                del sys.modules[key]
                logger.debug("Unit %s imported sibling module %s", unit.name, key)

    def _import_external(self, name: str) -> None:
        """Satisfy an undeclared dependency by importing a Python module."""
        try:
            self._modules[name] = importlib.import_module(name)
        except ImportError as e:
            raise BuildError(f"Dependency {name} is neither a declared unit nor an importable module") from e

    def _forget_module(self, name: str) -> None:
        """Drop a unit's cached module."""
        if self._modules.pop(name, None) is None:
            return
        sys.modules.pop(_MODULE_PREFIX + name.replace("-", "_"), None)

    def is_loaded(self, name: str) -> bool:
        """Return True if the unit (or external module) has been loaded."""
        return name in self._modules

    def loaded_units(self) -> list[str]:
        """Return loaded declared units in load order."""
        return [name for name in self._modules if name in self._units]

    def declared_units(self) -> list[str]:
        """Return declared unit names in declaration order."""
        return list(self._units)

    def reset(self) -> None:
        """Forget every declared unit and loaded module."""
        for name in list(self._modules):
            self._forget_module(name)
        self._units.clear()
