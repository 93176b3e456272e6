"""Logging setup for the traffic client.

Log records go to ``<folder>/<instance_id>.log`` when the ``TRAFFIC_LOGFOLDER``
environment variable names a folder, and to standard output otherwise. In the
file case warnings and records logged with ``extra={"console": True}`` (the
traffic report) are echoed to standard error as well.
"""

import logging
import os
import sys
import time
from typing import Optional

LOG_FOLDER_ENV = "TRAFFIC_LOGFOLDER"
LOGGER_NAME = "traffic_gen"

CONSOLE = {"console": True}


class ConsoleFilter(logging.Filter):
    """Passes warnings and records flagged for the console."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.WARNING or getattr(record, "console", False)


class TimestampFormatter(logging.Formatter):
    """Prefixes records with a timestamp.

    Without a format the timestamp is seconds since the epoch with microsecond
    precision, otherwise it is rendered with ``time.strftime``.
    """

    def __init__(self, timestamp_format: Optional[str] = None) -> None:
        super().__init__("%(asctime)s - %(message)s")
        self.timestamp_format = timestamp_format

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        if not self.timestamp_format:
            return f"{record.created:.6f}"
        return time.strftime(self.timestamp_format, time.localtime(record.created))


def log_folder_from_env() -> Optional[str]:
    """Return the log folder named by the environment, if any."""
    folder = os.environ.get(LOG_FOLDER_ENV)
    return folder or None


def log_file_path(instance_id: str, log_folder: str, suffix: str = ".log") -> str:
    """Path of a per-instance file inside the log folder."""
    return os.path.join(log_folder, f"{instance_id}{suffix}")


def setup_logging(
    instance_id: str,
    timestamp_format: Optional[str] = None,
    log_folder: Optional[str] = None,
) -> logging.Logger:
    """Configure the package logger for one run.

    Args:
        instance_id: Identifier of the run, used to name the log file.
        timestamp_format: strftime format for timestamps.
        log_folder: Folder for the log file, None to log to standard output.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.INFO)
    logger.propagate = False

    formatter = TimestampFormatter(timestamp_format)

    if log_folder:
        os.makedirs(log_folder, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path(instance_id, log_folder))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.addFilter(ConsoleFilter())
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console_handler)
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
