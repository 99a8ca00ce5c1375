from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

from .settings import settings


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(formatter: logging.Formatter) -> logging.Handler | None:
    log_path = Path(settings.out_dir) / "logs" / "kernel.log.jsonl"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return None
    handler.setFormatter(formatter)
    return handler


def get_logger() -> logging.Logger:
    logger = logging.getLogger("ducknet")

    # Prevent duplicate handlers when the package is re-imported
    if getattr(logger, "_configured", False):
        return logger

    logger.setLevel(_parse_level(settings.log_level))
    logger.propagate = False

    formatter = jsonlogger.JsonFormatter()

    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    if settings.log_to_file:
        fh = _file_handler(formatter)
        if fh is not None:
            logger.addHandler(fh)

    logger._configured = True  # type: ignore[attr-defined]
    return logger


LOGGER: logging.Logger | None = None


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    global LOGGER
    if LOGGER is None:
        LOGGER = get_logger()
    # Structured: event is message + a top-level key
    LOGGER.log(level, event, extra={"event": event, **fields})
