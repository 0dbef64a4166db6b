"""Local build orchestrator.

Fetches or updates component sources, then configures, compiles and installs
them after their declared dependencies. Tasks run one at a time, each at most
once per run.
"""

from .core import BuildOptions, Orchestrator  # re-export for convenience
from .graph import TaskGraph, TaskSpec, component, meta

__all__ = ["BuildOptions", "Orchestrator", "TaskGraph", "TaskSpec", "component", "meta"]
