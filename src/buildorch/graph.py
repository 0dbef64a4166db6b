"""Task declarations and the validated task graph.

Declaration modules (see ``buildorch.components``) create ``TaskSpec`` objects
at module level with ``component()`` and ``meta()``. ``discover_tasks`` collects
them and ``TaskGraph`` checks that every dependency resolves and that the
graph is acyclic before anything runs.
"""

from __future__ import annotations

import importlib
import pkgutil
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from .errors import (
    DependencyCycleError,
    GraphError,
    UnknownTaskError,
    UnresolvedDependencyError,
)
from .logging import get_logger
from .sources import SourceProvider


log = get_logger("buildorch.graph")


class BuildSystem(str, Enum):
    CMAKE = "cmake"
    MESON = "meson"
    AUTOTOOLS = "autotools"


@dataclass(frozen=True)
class TaskSpec:
    name: str
    source_path: str | None = None
    provider: SourceProvider | None = None
    dependencies: tuple[str, ...] = ()
    build_system: BuildSystem = BuildSystem.CMAKE
    configure_args: tuple[str, ...] = field(default=())

    def __post_init__(self):
        if (self.source_path is None) != (self.provider is None):
            raise GraphError(
                f"Task {self.name!r} needs both a source path and a provider, or neither"
            )

    @property
    def is_meta(self) -> bool:
        return self.source_path is None


def component(
    name: str,
    path: str,
    provider: SourceProvider,
    deps: Iterable[str] = (),
    build_system: BuildSystem | str = BuildSystem.CMAKE,
    configure_args: Iterable[str] = (),
) -> TaskSpec:
    """Declare a buildable component checked out under ``<source_root>/<path>``."""
    return TaskSpec(
        name=name,
        source_path=path,
        provider=provider,
        dependencies=tuple(deps),
        build_system=BuildSystem(build_system),
        configure_args=tuple(configure_args),
    )


def meta(name: str, deps: Iterable[str]) -> TaskSpec:
    """Declare a task that only groups other tasks."""
    return TaskSpec(name=name, dependencies=tuple(deps))


def topo_sort(specs: dict[str, TaskSpec]) -> list[str]:
    """Order all tasks so that dependencies come first.

    Raises DependencyCycleError with the offending path if the graph has a cycle.
    """
    ordered: list[str] = []
    done: set[str] = set()
    stack: list[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in stack:
            raise DependencyCycleError(stack[stack.index(name):] + [name])
        stack.append(name)
        for dep in specs[name].dependencies:
            visit(dep)
        stack.pop()
        done.add(name)
        ordered.append(name)

    for name in specs:
        visit(name)
    return ordered


class TaskGraph:
    """Insertion-ordered, read-only mapping of task name to TaskSpec."""

    def __init__(self, specs: Iterable[TaskSpec]):
        self._specs: dict[str, TaskSpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise GraphError(f"Task declared twice: {spec.name}")
            self._specs[spec.name] = spec
        for spec in self._specs.values():
            for dep in spec.dependencies:
                if dep not in self._specs:
                    raise UnresolvedDependencyError(spec.name, dep)
        topo_sort(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __getitem__(self, name: str) -> TaskSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise UnknownTaskError(name) from None

    def __iter__(self) -> Iterator[TaskSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def names(self) -> list[str]:
        return list(self._specs)

    def dependencies_of(self, name: str) -> tuple[str, ...]:
        return self[name].dependencies

    def closure(self, name: str) -> list[str]:
        """Dependency closure of ``name`` in execution order, ending with ``name``."""
        ordered: list[str] = []
        seen: set[str] = set()

        def visit(n: str) -> None:
            if n in seen:
                return
            seen.add(n)
            for dep in self[n].dependencies:
                visit(dep)
            ordered.append(n)

        visit(name)
        return ordered


def discover_tasks(package: str = "buildorch.components") -> list[TaskSpec]:
    """Import all modules in a declarations package and collect its TaskSpecs.

    Specs are returned in module order, then in definition order within a module.
    """
    specs: list[TaskSpec] = []
    seen: set[int] = set()
    try:
        pkg = importlib.import_module(package)
    except ModuleNotFoundError as e:
        if e.name and (package == e.name or package.startswith(e.name + ".")):
            raise GraphError(
                f"Declarations package not found: {package}",
                hint="Set components_package in the settings file to an importable package.",
            ) from e
        raise _import_error(package, e) from e
    except Exception as e:  # noqa: BLE001
        raise _import_error(package, e) from e
    modules = [pkg]
    for m in pkgutil.iter_modules(getattr(pkg, "__path__", []), prefix=f"{package}."):
        try:
            modules.append(importlib.import_module(m.name))
        except Exception as e:  # noqa: BLE001
            raise _import_error(m.name, e) from e
    for mod in modules:
        for obj in vars(mod).values():
            if isinstance(obj, TaskSpec) and id(obj) not in seen:
                seen.add(id(obj))
                specs.append(obj)
    log.debug("Discovered %d tasks in %s", len(specs), package)
    return specs


def _import_error(module: str, err: Exception) -> GraphError:
    return GraphError(
        f"Failed to import declarations module {module}: {err}",
        hint="Fix the error in that module; every declarations module must import cleanly.",
    )


def load_graph(package: str = "buildorch.components") -> TaskGraph:
    return TaskGraph(discover_tasks(package))
