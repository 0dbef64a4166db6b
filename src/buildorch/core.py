from __future__ import annotations

import json
import shlex
import shutil
import time
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable
from uuid import uuid4

from .builders import build_commands
from .config import Settings
from .errors import DependencyCycleError, ExternalCommandError
from .graph import TaskGraph, TaskSpec
from .logging import attach_file_handler, detach_file_handler, get_logger
from .process import CommandResult, CommandRunner
from .sources import SyncPolicy, SyncResult


class TaskState(str, Enum):
    UNVISITED = "unvisited"
    DEPENDENCIES_RESOLVED = "dependencies_resolved"
    SOURCE_SYNCED = "source_synced"
    BUILD_DECIDED = "build_decided"
    DONE = "done"


_STATE_ORDER = list(TaskState)


class Outcome(str, Enum):
    PENDING = "pending"
    META = "meta"
    BUILT = "built"
    SKIPPED = "skipped"


@dataclass
class TaskRun:
    """Mutable per-run record of one task."""

    name: str
    state: TaskState = TaskState.UNVISITED
    executed: bool = False
    source_changed: bool = True
    outcome: Outcome = Outcome.PENDING

    def advance(self, state: TaskState) -> None:
        # States only move forward within a run
        if _STATE_ORDER.index(state) > _STATE_ORDER.index(self.state):
            self.state = state


@dataclass(frozen=True)
class BuildOptions:
    build_only: bool = False
    no_deps: bool = False
    reconfigure: bool = False
    verbose: bool = False
    strict: bool = False

    @property
    def policy(self) -> SyncPolicy:
        return SyncPolicy.STRICT if self.strict else SyncPolicy.LENIENT


class Orchestrator:
    """Executes requested tasks and their dependency closures, each at most once.

    One instance is one run: the per-task records live on the instance, so
    overlapping requests passed to ``run`` share the once-only guard.
    """

    def __init__(
        self,
        graph: TaskGraph,
        settings: Settings,
        runner: CommandRunner | None = None,
        overlay: dict[str, str] | None = None,
        options: BuildOptions | None = None,
        echo: Callable[[str], None] = print,
    ):
        self.graph = graph
        self.settings = settings
        self.options = options or BuildOptions()
        self.runner = runner or CommandRunner(verbose=self.options.verbose)
        self.overlay = overlay or {}
        self.echo = echo
        self.logger = get_logger("buildorch.orchestrator")
        self._runs: dict[str, TaskRun] = {}
        self._executed: list[str] = []
        self._visiting: list[str] = []

    def task_run(self, name: str) -> TaskRun:
        if name not in self._runs:
            self._runs[name] = TaskRun(name=name)
        return self._runs[name]

    @property
    def executed(self) -> list[str]:
        """Names of executed tasks, in completion order."""
        return list(self._executed)

    def _finish(self, run: TaskRun, outcome: Outcome) -> None:
        run.outcome = outcome
        run.executed = True
        run.advance(TaskState.DONE)
        self._executed.append(run.name)

    def _ordered_runs(self) -> list[TaskRun]:
        done = [self._runs[n] for n in self._executed]
        return done + [r for r in self._runs.values() if not r.executed]

    def source_dir(self, spec: TaskSpec) -> Path:
        return self.settings.source_root / spec.source_path

    def list_tasks(self) -> list[str]:
        lines = []
        for spec in self.graph:
            deps = ", ".join(spec.dependencies) or "no dependencies"
            source = str(spec.provider) if spec.provider else "meta task"
            lines.append(f"{spec.name}: {deps} [{source}]")
        self.echo("Available tasks:")
        for line in lines:
            self.echo(f"- {line}")
        return lines

    def ensure_dependencies(self, name: str) -> None:
        if self.options.no_deps:
            return
        self._visiting.append(name)
        try:
            for dep in self.graph.dependencies_of(name):
                if dep in self._visiting:
                    raise DependencyCycleError(
                        self._visiting[self._visiting.index(dep):] + [dep]
                    )
                self.run_task(dep)
        finally:
            self._visiting.pop()
        self.task_run(name).advance(TaskState.DEPENDENCIES_RESOLVED)

    def sync_source(self, name: str) -> None:
        spec = self.graph[name]
        run = self.task_run(name)
        if spec.is_meta:
            return
        step_logger = get_logger(f"buildorch.run.{name}")
        target = self.source_dir(spec)
        if not target.exists():
            target.mkdir(parents=True)
            step_logger.info("Fetch: %s -> %s", spec.provider, target)
            result = spec.provider.materialize(target, self.runner)
            if not result.succeeded:
                # No half-made checkout for the next run to "update"
                shutil.rmtree(target)
        else:
            step_logger.info("Update: %s", target)
            result = spec.provider.refresh(target, self.runner)
        self._check_sync(name, result)
        run.source_changed = result.changed
        run.advance(TaskState.SOURCE_SYNCED)

    def _check_sync(self, name: str, result: SyncResult) -> None:
        if result.succeeded:
            return
        if self.options.policy is SyncPolicy.STRICT:
            raise ExternalCommandError(
                list(result.args), result.returncode, result.output
            )
        get_logger(f"buildorch.run.{name}").warning(
            "Source sync failed with exit code %d, continuing", result.returncode
        )

    def build_and_install(self, name: str) -> None:
        spec = self.graph[name]
        run = self.task_run(name)
        if run.executed:
            return
        if spec.is_meta:
            self._finish(run, Outcome.META)
            return
        step_logger = get_logger(f"buildorch.run.{name}")
        opts = self.options
        source_dir = self.source_dir(spec)
        build_dir = source_dir / "build"
        if not source_dir.exists():
            step_logger.warning("Skip (no checkout at %s): %s", source_dir, name)
            self._finish(run, Outcome.SKIPPED)
            return
        unchanged = not run.source_changed and build_dir.exists()
        if not opts.build_only and not opts.reconfigure and unchanged:
            step_logger.info("Skip (source unchanged): %s", name)
            self._finish(run, Outcome.SKIPPED)
            return
        run.advance(TaskState.BUILD_DECIDED)

        if opts.reconfigure and build_dir.exists():
            step_logger.info("Removing build directory %s", build_dir)
            shutil.rmtree(build_dir)
        needs_configure = False
        if not build_dir.exists():
            build_dir.mkdir(parents=True)
            needs_configure = True

        extra = list(spec.configure_args)
        if name in self.overlay:
            extra += shlex.split(self.overlay[name])
        commands = build_commands(
            spec.build_system,
            source_dir,
            self.settings.install_prefix,
            self.settings.jobs,
            extra,
        )
        if needs_configure:
            self._external(name, "Configure", commands.configure, build_dir)
        self._external(name, "Compile", commands.compile, build_dir)
        self._external(name, "Install", commands.install, build_dir)
        self._finish(run, Outcome.BUILT)

    def _external(
        self, name: str, step: str, args: list[str], cwd: Path
    ) -> CommandResult:
        step_logger = get_logger(f"buildorch.run.{name}")
        step_logger.info("%s: %s", step, name)
        result = self.runner.run(args, cwd=cwd)
        if not result.succeeded:
            if self.options.policy is SyncPolicy.STRICT:
                raise ExternalCommandError(
                    list(result.args), result.returncode, result.output
                )
            step_logger.warning("%s step exited with code %d", step, result.returncode)
        return result

    def run_task(self, name: str) -> None:
        """Dependencies, then source sync, then build, unless already executed."""
        if self.task_run(name).executed:
            return
        self.ensure_dependencies(name)
        self.sync_source(name)
        self.build_and_install(name)

    def dispatch(self, name: str) -> None:
        if name not in self.graph:
            self.logger.warning("Unknown task: %s", name)
            self.echo(f"Unknown task: {name}")
            self.list_tasks()
            return
        if self.options.build_only:
            self.build_and_install(name)
            return
        if not self.options.no_deps:
            steps = " → ".join(self.graph.closure(name))
            self.logger.info("Selected steps for %s: %s", name, steps)
        self.run_task(name)

    def run(self, names: Iterable[str] = ()) -> list[TaskRun]:
        requested = list(names) or [self.settings.default_task]
        run_id = f"{time.strftime('%Y%m%d-%H%M%S')}-{uuid4().hex[:8]}"
        run_dir = self.settings.runs_dir / run_id
        # Everything logged under buildorch.* during the run also goes to run.log
        run_logger = get_logger("buildorch")
        handler = attach_file_handler(run_logger, run_dir / "run.log")
        self.logger.info("Requested: %s", ", ".join(requested))
        try:
            for name in requested:
                self.dispatch(name)
        finally:
            detach_file_handler(run_logger, handler)
            _write_state(
                run_dir,
                {
                    "run_id": run_id,
                    "requested": requested,
                    "options": asdict(self.options),
                    "tasks": [
                        {
                            "name": r.name,
                            "state": r.state.value,
                            "outcome": r.outcome.value,
                            "source_changed": r.source_changed,
                        }
                        for r in self._ordered_runs()
                    ],
                },
            )
        return [self._runs[n] for n in self._executed]


def _write_state(run_dir: Path, state: dict) -> None:
    run_dir.mkdir(parents=True, exist_ok=True)
    with open(run_dir / "state.json", "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2)
