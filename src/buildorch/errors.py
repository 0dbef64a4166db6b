"""Error types raised by buildorch.

Every error carries a ``hint`` with the step a user can take to fix it; the
CLI prints both.
"""


class BuildOrchError(Exception):
    """Base class for buildorch errors"""

    hint = ""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class ConfigError(BuildOrchError):
    hint = "Check the settings file for YAML syntax errors."


class OverlayError(ConfigError):
    hint = (
        "Fix or remove the overlay file. It must be a JSON object mapping task "
        'names to objects, e.g. {"mesa": {"configure": "-Dvulkan-drivers=amd"}}.'
    )


class GraphError(BuildOrchError):
    hint = "Fix the task declarations."


class UnknownTaskError(GraphError, KeyError):
    hint = "Run `buildorch list` to see the declared tasks."

    def __init__(self, name: str):
        super().__init__(f"Unknown task: {name}")
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class UnresolvedDependencyError(GraphError):
    def __init__(self, task: str, dependency: str):
        super().__init__(f"Task {task!r} depends on undeclared task {dependency!r}")
        self.task = task
        self.dependency = dependency


class DependencyCycleError(GraphError):
    def __init__(self, cycle: list[str]):
        super().__init__("Dependency cycle: " + " -> ".join(cycle))
        self.cycle = cycle


class ExternalCommandError(BuildOrchError):
    hint = "Re-run with --verbose to see the command output."

    def __init__(self, args: list[str], returncode: int, output: str = ""):
        super().__init__(
            f"Command failed with exit code {returncode}: {' '.join(args)}"
        )
        self.command = args
        self.returncode = returncode
        self.output = output
