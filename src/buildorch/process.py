from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .logging import get_logger


log = get_logger("buildorch.process")


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs external commands one at a time, blocking until they exit.

    The working directory is always passed explicitly; the runner never changes
    the process working directory. In verbose mode output goes straight to the
    terminal unless the caller needs the text (``capture=True``), in which case
    it is captured and logged afterwards.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def run(
        self, args: Sequence[str], cwd: Path, capture: bool = False
    ) -> CommandResult:
        args = tuple(str(a) for a in args)
        log.debug("Exec (%s): %s", cwd, " ".join(args))
        stream = self.verbose and not capture
        try:
            proc = subprocess.run(
                args,
                cwd=cwd,
                stdout=None if stream else subprocess.PIPE,
                stderr=None if stream else subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except FileNotFoundError:
            log.error("Binary not found: %s", args[0])
            return CommandResult(args=args, returncode=127, output="NOT_FOUND")

        output = proc.stdout or ""
        if capture and self.verbose and output:
            log.info("%s output:\n%s", args[0], output.rstrip())
        if proc.returncode != 0:
            log.warning("%s exited with code %d", args[0], proc.returncode)
        return CommandResult(args=args, returncode=proc.returncode, output=output)
