"""Version-control source locations and their fetch/update operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .process import CommandRunner


class SourceKind(str, Enum):
    GIT = "git"
    HG = "hg"


class SyncPolicy(str, Enum):
    LENIENT = "lenient"
    STRICT = "strict"


# Output phrases meaning the working tree was already current
_UP_TO_DATE = {
    SourceKind.GIT: ("Already up to date", "Already up-to-date"),
    SourceKind.HG: ("no changes found",),
}


@dataclass(frozen=True)
class SyncResult:
    succeeded: bool
    changed: bool
    output: str = ""
    args: tuple[str, ...] = ()
    returncode: int = 0


@dataclass(frozen=True)
class SourceProvider:
    kind: SourceKind
    location: str
    revision: str | None = None

    def _clone_args(self) -> list[str]:
        if self.kind is SourceKind.GIT:
            args = ["git", "clone"]
            if self.revision:
                args += ["--branch", self.revision]
            return args + [self.location, "."]
        args = ["hg", "clone"]
        if self.revision:
            args += ["-u", self.revision]
        return args + [self.location, "."]

    def _update_args(self) -> list[str]:
        if self.kind is SourceKind.GIT:
            return ["git", "pull", "--ff-only"]
        return ["hg", "pull", "--update"]

    def materialize(self, target_dir: Path, runner: CommandRunner) -> SyncResult:
        """First checkout into the freshly created, empty ``target_dir``.

        A new checkout always counts as changed content.
        """
        result = runner.run(self._clone_args(), cwd=target_dir)
        return SyncResult(
            succeeded=result.succeeded,
            changed=True,
            output=result.output,
            args=result.args,
            returncode=result.returncode,
        )

    def refresh(self, target_dir: Path, runner: CommandRunner) -> SyncResult:
        """Update an existing checkout.

        ``changed`` is False when the tool reports the tree was already current
        or when the update failed.
        """
        result = runner.run(self._update_args(), cwd=target_dir, capture=True)
        if not result.succeeded:
            return SyncResult(
                succeeded=False,
                changed=False,
                output=result.output,
                args=result.args,
                returncode=result.returncode,
            )
        current = any(phrase in result.output for phrase in _UP_TO_DATE[self.kind])
        return SyncResult(
            succeeded=True,
            changed=not current,
            output=result.output,
            args=result.args,
        )

    def __str__(self) -> str:
        if self.revision:
            return f"{self.kind.value}:{self.location}@{self.revision}"
        return f"{self.kind.value}:{self.location}"


def git(location: str, revision: str | None = None) -> SourceProvider:
    return SourceProvider(SourceKind.GIT, location, revision)


def hg(location: str, revision: str | None = None) -> SourceProvider:
    return SourceProvider(SourceKind.HG, location, revision)
