"""Logging configuration for the smart bin backend."""

import logging
from datetime import datetime
from pathlib import Path

from smartbin.config import LOG_DIR, LOG_LEVEL

_configured = False

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "aiosqlite", "paho")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_dir: str | Path | None = LOG_DIR, level: str = LOG_LEVEL) -> None:
    """Log to the console and, when ``log_dir`` is set, to a dated file.

    paho callbacks run on their own thread, so the thread name is part of
    every record. Calling this more than once is a no-op.
    """
    global _configured
    if _configured:
        return
    _configured = True

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(threadName)-12s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(_resolve_level(level))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = None
    if log_dir:
        logs_path = Path(log_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        log_file = logs_path / f"smartbin-{datetime.now().strftime('%Y-%m-%d')}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging initialized at {level.upper()} - file: {log_file or 'none'}")
