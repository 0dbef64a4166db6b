from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import os


_configured = False
_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    name = os.getenv("BUILDORCH_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, name, logging.INFO)
    logging.basicConfig(level=level, format=_FORMAT)
    # basicConfig is a no-op when the root logger already has handlers
    logging.getLogger("buildorch").setLevel(level)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    _ensure_base_logger()
    return logging.getLogger(name)


def attach_file_handler(logger: logging.Logger, log_file: Path) -> RotatingFileHandler:
    """Mirror ``logger`` (and its children) into ``log_file`` until detached."""
    target = os.path.abspath(log_file)
    for h in logger.handlers:
        if isinstance(h, RotatingFileHandler) and h.baseFilename == target:
            return h
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return handler


def detach_file_handler(logger: logging.Logger, handler: logging.Handler) -> None:
    logger.removeHandler(handler)
    handler.close()


def set_verbose(enabled: bool) -> None:
    """Show command lines and working directories of every external call."""
    _ensure_base_logger()
    if enabled:
        logging.getLogger("buildorch").setLevel(logging.DEBUG)
