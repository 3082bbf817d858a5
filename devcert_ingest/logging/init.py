from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Console logging for devcert_ingest.

Lines look like ``<LABEL> <message>`` with LABEL one of
DEBUG|INFO|WARN|ERROR|SUMMARY. SUMMARY (25) is registered as its own level and
carries the single machine-readable result line of an ingestion run.

Library modules only call ``logging.getLogger(__name__)``; the package logger
configured here is their common ancestor.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "set_level",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "devcert_ingest"
SUMMARY_LEVEL = 25

_configured: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    _labels = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self._labels.get(record.levelno, record.levelname)
        return f"{label} {record.getMessage()}"


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Attach one labeled stdout handler to the package logger.

    Repeated calls return the already configured logger unchanged; call
    ``reset_logging`` first to rebuild it (tests swap ``sys.stdout``).
    """
    global _configured
    if _configured is not None:
        return _configured

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    package_logger = logging.getLogger(LOGGER_NAME)
    for old in list(package_logger.handlers):
        package_logger.removeHandler(old)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(LabeledFormatter())
    package_logger.addHandler(handler)
    # ルートへ伝播させない (二重出力防止)
    package_logger.propagate = False

    _configured = package_logger
    set_level(level)
    return package_logger


def set_level(level: int) -> None:
    """Change the threshold of the package logger and its handlers."""
    package_logger = get_logger()
    package_logger.setLevel(level)
    for handler in package_logger.handlers:
        handler.setLevel(level)


def get_logger() -> logging.Logger:
    return _configured if _configured is not None else setup_logging()


def log_summary(message: str) -> None:
    """Emit ``message`` at SUMMARY level; the formatter prepends the label."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    global _configured
    _configured = None
