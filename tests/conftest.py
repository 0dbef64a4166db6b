from dataclasses import dataclass
from pathlib import Path

import pytest

from buildorch.config import Settings
from buildorch.graph import TaskGraph, component, meta
from buildorch.process import CommandResult
from buildorch.sources import git


@dataclass(frozen=True)
class Call:
    args: tuple
    cwd: Path
    capture: bool

    @property
    def command(self) -> str:
        return " ".join(self.args)


class FakeRunner:
    """Records commands instead of running them.

    ``outputs`` maps a command prefix to the text it prints; commands starting
    with a prefix in ``failures`` exit with code 1.
    """

    def __init__(self, outputs=None, failures=()):
        self.verbose = False
        self.calls: list[Call] = []
        self.outputs = dict(outputs or {})
        self.failures = set(failures)

    def run(self, args, cwd, capture=False):
        args = tuple(str(a) for a in args)
        call = Call(args=args, cwd=Path(cwd), capture=capture)
        self.calls.append(call)
        output = next(
            (out for prefix, out in self.outputs.items() if call.command.startswith(prefix)),
            "",
        )
        code = 1 if any(call.command.startswith(p) for p in self.failures) else 0
        return CommandResult(args=args, returncode=code, output=output)

    def commands(self) -> list[str]:
        return [c.command for c in self.calls]

    def calls_in(self, path: Path) -> list[str]:
        return [c.command for c in self.calls if c.cwd == path or path in c.cwd.parents]


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        source_root=tmp_path / "src",
        install_prefix=tmp_path / "prefix",
        runs_dir=tmp_path / "runs",
        overlay=tmp_path / "overlay.json",
        jobs=2,
    )


@pytest.fixture
def abc_graph():
    """A (source) <- B (source) <- C (meta)."""
    return TaskGraph(
        [
            component("A", path="a", provider=git("https://example.org/a.git")),
            component("B", path="b", provider=git("https://example.org/b.git"), deps=["A"]),
            meta("C", deps=["B"]),
        ]
    )
