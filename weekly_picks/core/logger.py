"""Logging for the weekly picks job and the query scripts.

Everything logs through the shared ``weekly_picks`` logger: a size-rotated
file under ``output/`` plus stderr, so a cron run leaves a trail and an
interactive run still shows progress.

Environment:
    WEEKLY_PICKS_LOG        log file path (default ``output/pipeline.log``)
    WEEKLY_PICKS_LOG_LEVEL  level name (default ``INFO``)
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "weekly_picks"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(module)s.%(funcName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# one weekly run writes a few hundred lines; keep roughly a year of them
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5


def setup_logger(
    name: str = LOGGER_NAME,
    log_file: Optional[Union[str, Path]] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """Return the named logger, attaching file and stderr handlers once.

    ``log_file`` and ``level`` fall back to the environment. Calling again
    for a logger that already has handlers only adjusts its level.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or os.getenv("WEEKLY_PICKS_LOG_LEVEL", "INFO")).upper())
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    log_path = Path(log_file or os.getenv("WEEKLY_PICKS_LOG", "output/pipeline.log"))
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)

    # the root logger may carry handlers from a host application
    logger.propagate = False
    return logger


logger = setup_logger()
