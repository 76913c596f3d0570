"""Logging utilities for the keyword pipeline."""

import logging
import time
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


ROOT_LOGGER = "keyword_funnel"

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: int | str = logging.INFO,
    log_file: Path | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Console output goes to stderr through Rich at `level`; when a log file
    is given it receives everything down to DEBUG, including webhook
    payloads.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Logs the start, outcome and duration of a pipeline step."""

    def __init__(self, logger: logging.Logger, context: str):
        self.logger = logger
        self.context = context
        self.elapsed: float = 0.0
        self._started: float = 0.0

    def __enter__(self):
        self.logger.info("Starting: %s", self.context)
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self._started
        if exc_type:
            self.logger.error("Failed: %s after %.2fs - %s", self.context, self.elapsed, exc_val)
        else:
            self.logger.info("Completed: %s in %.2fs", self.context, self.elapsed)
        return False
