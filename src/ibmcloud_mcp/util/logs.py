from __future__ import annotations

import logging
from pathlib import Path

from platformdirs import user_log_dir
from rich.console import Console
from rich.logging import RichHandler

APP_NAME = "ibmcloud-mcp"
ROOT_LOGGER = "ibmcloud_mcp"

FILE_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# stdout carries the protocol; every diagnostic goes to stderr.
stderr_console = Console(stderr=True)


def default_log_file() -> Path:
    return Path(user_log_dir(APP_NAME)) / "ibmcloud.log"


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> logging.Logger:
    """Attach a rich stderr handler and an append-only file handler to the package logger.

    Idempotent: handlers installed by an earlier call are replaced.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    lvl = logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO
    logger.setLevel(lvl)
    logger.propagate = False

    logger.addHandler(RichHandler(console=stderr_console, show_path=False, rich_tracebacks=False))

    path = log_file or default_log_file()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, mode="a", encoding="utf-8")
    except OSError as e:
        logger.warning("Log file %s unavailable, logging to stderr only: %s", path, e)
    else:
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
        logger.addHandler(fh)

    return logger
