"""Configure/compile/install command lines per build system.

All commands run with the task's ``build`` directory as working directory, so
source paths are given relative to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .graph import BuildSystem


@dataclass(frozen=True)
class BuildCommands:
    configure: list[str]
    compile: list[str]
    install: list[str]


def build_commands(
    system: BuildSystem,
    source_dir: Path,
    prefix: Path,
    jobs: int,
    extra_configure: list[str] | tuple[str, ...] = (),
) -> BuildCommands:
    extra = list(extra_configure)
    if system is BuildSystem.CMAKE:
        return BuildCommands(
            configure=["cmake", str(source_dir), f"-DCMAKE_INSTALL_PREFIX={prefix}"]
            + extra,
            compile=["cmake", "--build", ".", "--parallel", str(jobs)],
            install=["cmake", "--install", "."],
        )
    if system is BuildSystem.MESON:
        return BuildCommands(
            configure=["meson", "setup", f"--prefix={prefix}"] + extra
            + [".", str(source_dir)],
            compile=["meson", "compile", "-j", str(jobs)],
            install=["meson", "install"],
        )
    if system is BuildSystem.AUTOTOOLS:
        return BuildCommands(
            configure=[str(source_dir / "configure"), f"--prefix={prefix}"] + extra,
            compile=["make", f"-j{jobs}"],
            install=["make", "install"],
        )
    raise ValueError(f"Unsupported build system: {system}")
