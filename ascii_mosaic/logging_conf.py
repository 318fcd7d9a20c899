#!/usr/bin/env python3
# ascii_mosaic/logging_conf.py
"""
Central logging setup for ASCII Mosaic.
Console output through basicConfig, plus an optional size-rotated log file
taken from the [logging] config section.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from ascii_mosaic.config import Config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
PACKAGE_LOGGER = "ascii_mosaic"


def _file_handler(path: str, max_bytes: int, keep: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=keep, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(cfg: Config, level_override: Optional[str] = None) -> None:
    """Configure root and package loggers. Safe to call more than once."""
    section = cfg["logging"]
    level = getattr(logging, (level_override or section["level"]).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    pkg = logging.getLogger(PACKAGE_LOGGER)
    pkg.setLevel(level)

    log_file = section.get("file")
    if log_file:
        for old in [h for h in pkg.handlers if isinstance(h, RotatingFileHandler)]:
            pkg.removeHandler(old)
            old.close()
        pkg.addHandler(_file_handler(log_file, int(section["rotate_bytes"]), int(section["rotate_keep"])))

    # Pillow logs plugin probing at DEBUG
    logging.getLogger("PIL").setLevel(max(level, logging.INFO))
