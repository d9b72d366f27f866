"""Logging setup for defi-adapters.

Log records go to stderr; stdout is reserved for command output so it can be
piped as JSON.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that flood DEBUG output with request dumps.
NOISY_LOGGERS = ("web3", "urllib3")


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps the level name in an ANSI colour."""

    COLORS = {
        TRACE: "\033[90m",
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        *,
        use_color: bool = True,
    ):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno) if self.use_color else None
        if color is None:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{color}{self.BOLD}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _resolve_level(log_level: str) -> int:
    if log_level == "TRACE":
        return TRACE
    level = logging.getLevelName(log_level)
    return level if isinstance(level, int) else logging.INFO


def _wants_color(stream: TextIO) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(log_level: str | None = None, stream: TextIO | None = None) -> None:
    """Configure the root logger.

    Args:
        log_level: Level name; falls back to the LOG_LEVEL environment
            variable, then INFO
        stream: Destination for records, stderr when omitted

    At DEBUG the web3 and urllib3 loggers stay at WARNING; TRACE lets them
    through.
    """
    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = _resolve_level(level_name)
    stream = stream or sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        ColoredFormatter(LOG_FORMAT, DATE_FORMAT, use_color=_wants_color(stream))
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    noisy_level = TRACE if level <= TRACE else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
