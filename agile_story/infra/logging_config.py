"""
Logging setup for the CLI and the API server.

Everything in the package logs through children of the "agile_story"
logger. setup_logging() attaches a console handler and, optionally, a file
handler that starts a new file each calendar day:

    <log dir>/agile_story_<YYYYMMDD>_<HHMMSS of process start>.log
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER_NAME = "agile_story"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_process_started = datetime.now().strftime("%H%M%S")


def _today() -> str:
    return datetime.now().strftime("%Y%m%d")


class DailyRotatingFileHandler(logging.FileHandler):
    """
    FileHandler that reopens on a new file when the date changes.

    All files written by one process share the process start time suffix,
    so a long-running server leaves one file per day.
    """

    def __init__(self, log_dir: str = "logs", encoding: str = "utf-8"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._date = _today()
        super().__init__(self._path_for(self._date), mode="a", encoding=encoding)

    def _path_for(self, date: str) -> str:
        return str(self.log_dir / f"{LOGGER_NAME}_{date}_{_process_started}.log")

    def emit(self, record: logging.LogRecord) -> None:
        today = _today()
        if today != self._date:
            self.close()
            self._date = today
            self.baseFilename = self._path_for(today)
            self.stream = self._open()
        super().emit(record)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    log_to_file: bool = True,
) -> logging.Logger:
    """
    (Re)configure the "agile_story" logger.

    Safe to call more than once: previous handlers are closed and replaced.

    Args:
        log_level: Level name; unknown names fall back to INFO
        log_dir: Directory for log files (default: LOG_DIR env or "logs")
        log_to_file: Also write to the daily log file

    Returns:
        The configured logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [logging.StreamHandler()]
    if log_to_file:
        handlers.append(DailyRotatingFileHandler(log_dir=log_dir or os.getenv("LOG_DIR", "logs")))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    target = handlers[-1].baseFilename if log_to_file else "console only"
    logger.info(f"[Logging] Level {logging.getLevelName(level)}, output: {target}")
    return logger
