"""Settings file and per-task configure overlay."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import yaml

from .errors import ConfigError, OverlayError
from .logging import get_logger
from . import utils


log = get_logger("buildorch.config")

DEFAULT_CONFIG = "buildorch.yaml"


def load_config(path: str | Path | None) -> dict:
    """Read the YAML settings file; a missing file means defaults."""
    p = Path(path or DEFAULT_CONFIG)
    if not p.exists():
        if path:
            raise ConfigError(
                f"Settings file not found: {p}",
                hint="Pass an existing file with --config or drop the option.",
            )
        log.debug("No settings file at %s, using defaults", p)
        return {}
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed settings file {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {p} must contain a mapping at top level")
    return data


@dataclass(frozen=True)
class Settings:
    source_root: Path
    install_prefix: Path
    runs_dir: Path
    overlay: Path
    jobs: int
    default_task: str = "all"
    components_package: str = "buildorch.components"

    @classmethod
    def from_params(cls, params: dict) -> "Settings":
        try:
            jobs = utils.jobs(params)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"build.jobs must be an integer: {e}") from e
        return cls(
            source_root=utils.source_root(params),
            install_prefix=utils.install_prefix(params),
            runs_dir=utils.runs_dir(params),
            overlay=utils.overlay_path(params),
            jobs=jobs,
            default_task=utils.default_task(params),
            components_package=utils.components_package(params),
        )

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Settings":
        return cls.from_params(load_config(path))


def load_overlay(path: str | Path) -> dict[str, str]:
    """Read the user overlay and return task name -> extra configure arguments.

    A missing file is an empty overlay. Anything unparseable raises OverlayError,
    since building with half-read overrides would produce wrong flags.
    """
    p = Path(path)
    if not p.exists():
        return {}
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise OverlayError(f"Malformed overlay file {p}: {e}") from e

    if not isinstance(data, dict):
        raise OverlayError(f"Overlay file {p} must contain a JSON object")
    overlay: dict[str, str] = {}
    for name, entry in data.items():
        if not isinstance(entry, dict):
            raise OverlayError(f"Overlay entry for {name!r} in {p} must be an object")
        configure = entry.get("configure")
        if configure is None:
            continue
        if not isinstance(configure, str):
            raise OverlayError(
                f"Overlay 'configure' for {name!r} in {p} must be a string"
            )
        overlay[name] = configure
    log.debug("Loaded overlay for %d tasks from %s", len(overlay), p)
    return overlay
