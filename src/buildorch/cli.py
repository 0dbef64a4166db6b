from __future__ import annotations

import os
from typing import List, Optional

import typer
from dotenv import load_dotenv

from .config import Settings, load_overlay
from .core import BuildOptions, Orchestrator
from .errors import BuildOrchError
from .graph import TaskGraph, load_graph
from .logging import get_logger, set_verbose
from .process import CommandRunner


app = typer.Typer(
    add_completion=False, help="Fetch, configure, build and install components"
)
log = get_logger("buildorch.cli")


def _fail(err: BuildOrchError) -> None:
    typer.echo(f"Error: {err}", err=True)
    if err.hint:
        typer.echo(err.hint, err=True)
    raise typer.Exit(code=1)


def _load(config: Optional[str]) -> tuple[Settings, TaskGraph]:
    load_dotenv()
    settings = Settings.load(config or os.getenv("BUILDORCH_CONFIG"))
    return settings, load_graph(settings.components_package)


@app.command("list")
def list_tasks(
    config: Optional[str] = typer.Option(None, help="Path to YAML settings"),
):
    """List declared tasks with their dependencies and sources."""
    try:
        settings, graph = _load(config)
    except BuildOrchError as e:
        _fail(e)
    Orchestrator(graph, settings, echo=typer.echo).list_tasks()


@app.command()
def build(
    names: Optional[List[str]] = typer.Argument(
        None, help="Tasks to build (default: the aggregate task)"
    ),
    build_only: bool = typer.Option(False, "--build-only", help="Skip source sync"),
    no_deps: bool = typer.Option(
        False, "--no-deps", help="Only the named tasks, not their dependencies"
    ),
    reconfigure: bool = typer.Option(
        False, "--reconfigure", help="Discard build directories and configure again"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Stream external command output"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Stop on the first failed external command"
    ),
    list_only: bool = typer.Option(False, "--list", help="List tasks and exit"),
    config: Optional[str] = typer.Option(None, help="Path to YAML settings"),
    overlay: Optional[str] = typer.Option(None, help="Path to JSON configure overlay"),
):
    """Build the named tasks and everything they depend on."""
    try:
        settings, graph = _load(config)
        overrides = load_overlay(overlay or settings.overlay)
    except BuildOrchError as e:
        _fail(e)

    set_verbose(verbose)
    options = BuildOptions(
        build_only=build_only,
        no_deps=no_deps,
        reconfigure=reconfigure,
        verbose=verbose,
        strict=strict,
    )
    orch = Orchestrator(
        graph,
        settings,
        runner=CommandRunner(verbose=verbose),
        overlay=overrides,
        options=options,
        echo=typer.echo,
    )
    if list_only:
        orch.list_tasks()
        raise typer.Exit(code=0)
    try:
        runs = orch.run(names or [])
    except BuildOrchError as e:
        _fail(e)
    for r in runs:
        log.info("%s: %s", r.name, r.outcome.value)


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
