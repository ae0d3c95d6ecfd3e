from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from .config import RelayRuntimeConfig


def _parse_level(value: Any, default: int) -> int:
    if isinstance(value, int):
        return value
    text = str(value or "").strip().upper()
    levels = logging.getLevelNamesMapping()
    if text in levels:
        return levels[text]
    return int(text) if text.isdigit() else default


def _file_handler(path: str) -> logging.Handler:
    p = Path(os.path.expanduser(path))
    p.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(p, encoding="utf-8")
    os.chmod(p, 0o600)
    return handler


def configure_logging(
    cfg: RelayRuntimeConfig,
    *,
    override_level: str | None = None,
    override_file: str | None = None,
) -> None:
    """Route rdvd logs to the console and/or a private log file."""
    level = _parse_level(override_level or cfg.log_level, logging.INFO)
    log_file = (override_file if override_file is not None else cfg.log_file) or None

    handlers: list[logging.Handler] = []
    if cfg.log_console:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(_file_handler(log_file))

    logging.basicConfig(
        level=level,
        format=cfg.log_format or "%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt=cfg.log_datefmt or None,
        handlers=handlers or [logging.NullHandler()],
        force=True,
    )

    # One line per HTTP request is only useful while debugging.
    logging.getLogger("aiohttp.access").setLevel(
        logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    )
    logging.captureWarnings(True)
