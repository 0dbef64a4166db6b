from __future__ import annotations

"""Small helpers for reading values out of the parsed settings mapping."""

import os
from pathlib import Path
from typing import Dict


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def expand_path(p: str | Path) -> Path:
    return Path(os.path.expandvars(str(p))).expanduser()


def source_root(p: Dict) -> Path:
    return expand_path(_get(p, "paths", "source_root", default="~/src/buildorch"))


def install_prefix(p: Dict) -> Path:
    return expand_path(_get(p, "paths", "install_prefix", default="~/.local"))


def runs_dir(p: Dict) -> Path:
    default = source_root(p) / ".buildorch" / "runs"
    return expand_path(_get(p, "paths", "runs_dir", default=default))


def overlay_path(p: Dict) -> Path:
    return expand_path(
        _get(p, "paths", "overlay", default="~/.config/buildorch/overlay.json")
    )


def jobs(p: Dict) -> int:
    return int(_get(p, "build", "jobs", default=os.cpu_count() or 1))


def default_task(p: Dict) -> str:
    return str(_get(p, "default_task", default="all"))


def components_package(p: Dict) -> str:
    return str(_get(p, "components_package", default="buildorch.components"))
