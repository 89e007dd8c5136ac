# =============================================================================
# app/logging_config.py - Logging Setup
# =============================================================================
# Configures the root logger once at startup from LOG_LEVEL / LOG_COLORED.
# Modules keep using logging.getLogger(__name__) as usual.
# =============================================================================

import logging
import sys

from app.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# "silent" sits above CRITICAL so nothing passes
SILENT = logging.CRITICAL + 10

LEVELS = {
    "silent": SILENT,
    "warn": logging.WARNING,
    "debug": logging.DEBUG,
}

COLORS = {
    logging.DEBUG: "\033[36m",     # cyan
    logging.INFO: "\033[32m",      # green
    logging.WARNING: "\033[33m",   # yellow
    logging.ERROR: "\033[31m",     # red
    logging.CRITICAL: "\033[1;31m",
}
RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps the level name in ANSI colour codes."""

    def format(self, record: logging.LogRecord) -> str:
        color = COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{color}{original}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def configure_logging(settings: Settings) -> None:
    """
    Install a single stream handler on the root logger.

    Safe to call more than once; previous handlers are replaced. Level
    names are coloured only when LOG_COLORED is true.
    """
    handler = logging.StreamHandler(sys.stderr)
    formatter_class = ColoredFormatter if settings.LOG_COLORED else logging.Formatter
    handler.setFormatter(formatter_class(LOG_FORMAT))

    logging.basicConfig(
        level=LEVELS[settings.LOG_LEVEL],
        handlers=[handler],
        force=True,
    )

    # uvicorn installs its own handlers unless told otherwise; route them here
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
