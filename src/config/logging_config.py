# src/config/logging_config.py

"""Logging for a build run.

A build writes one ``logs/run_<YYYYMMDD_HHMMSS>.log`` file that receives
every ``charmed_site.*`` record at DEBUG. Only warnings and errors are
echoed to stderr, since the CLI runner prints its own progress lines.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER_NAME = "charmed_site"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO during a scrape
_QUIET_LOGGERS: tuple[str, ...] = ("asyncio", "urllib3", "curl_cffi")


def _existing_log_file(logger: logging.Logger) -> Path | None:
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def _with_format(
    handler: logging.Handler, level: int, fmt: str,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(settings: Settings | None = None) -> Path:
    """Attach the run-log and stderr handlers to ``charmed_site``.

    Safe to call more than once: a logger that is already configured
    keeps its handlers and the current log file path is returned.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    current = _existing_log_file(logger)
    if current is not None:
        return current

    logs_dir = (settings or Settings()).LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    logger.setLevel(logging.DEBUG)
    logger.addHandler(
        _with_format(
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.DEBUG,
            _FILE_FORMAT,
        )
    )
    logger.addHandler(
        _with_format(
            logging.StreamHandler(sys.stderr), logging.WARNING, _STDERR_FORMAT
        )
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Run log: %s", log_file)
    return log_file
