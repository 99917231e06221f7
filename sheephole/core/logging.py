from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from core.paths import get_logs_dir


def setup_logging(level: int = logging.INFO, logs_dir: Path | None = None, console: bool = True) -> logging.Logger:
    log_file = (logs_dir or get_logs_dir()) / "app.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("sheephole")
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(
        filename=log_file,
        maxBytes=1_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        stream_handler.setLevel(max(level, logging.WARNING))
        logger.addHandler(stream_handler)

    return logger
