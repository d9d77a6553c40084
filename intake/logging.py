"""
Logging for the intake service.

Every module gets its logger from :func:`getLogger`, which writes to the
console at ``LOGLEVEL``. Errors are additionally written to the error log
configured by :func:`init_app`: a plain text file with one timestamped entry
(plus traceback, if any) per error.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import IO, Optional

from flask import Flask
from pytz import UTC

from . import config

PACKAGE_LOGGER = 'intake'
CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s: "%(message)s"'
ERROR_LOG_FORMAT = '[%(asctime)s] %(message)s'


class ISO8601Formatter(logging.Formatter):
    """Render log timestamps as ISO-8601 in UTC."""

    def formatTime(self, record: logging.LogRecord,
                   datefmt: Optional[str] = None) -> str:
        """Format the record creation time with millisecond precision."""
        created = datetime.fromtimestamp(record.created, tz=UTC)
        if datefmt:
            return created.strftime(datefmt)
        return created.isoformat(timespec='milliseconds') \
            .replace('+00:00', 'Z')


def getLogger(name: str, stream: IO[str] = sys.stderr) -> logging.Logger:
    """Get a logger that writes to the console at the configured level."""
    logger = logging.getLogger(name)
    logger.setLevel(int(config.LOGLEVEL))
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ISO8601Formatter(CONSOLE_FORMAT))
    logger.handlers = []
    logger.addHandler(handler)
    logger.propagate = True
    return logger


def init_app(app: Flask) -> None:
    """
    Attach the error log to the package logger.

    The log is opened in append mode and is never truncated. When
    ``ERROR_LOG_MAX_BYTES`` is set the file is rotated at that size, keeping
    ``ERROR_LOG_BACKUP_COUNT`` old files.
    """
    path = app.config['ERROR_LOG']
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            package_logger.removeHandler(handler)
            handler.close()

    handler = RotatingFileHandler(
        path,
        mode='a',
        maxBytes=int(app.config['ERROR_LOG_MAX_BYTES']),
        backupCount=int(app.config['ERROR_LOG_BACKUP_COUNT']),
        encoding='utf-8',
        delay=True
    )
    handler.setLevel(logging.ERROR)
    handler.setFormatter(ISO8601Formatter(ERROR_LOG_FORMAT))
    package_logger.addHandler(handler)
