"""Logging configuration for the engine and its maintenance scripts."""

import logging
import sys

from authz_engine.core.config import get_settings

# Driver loggers that flood DEBUG output with per-statement noise.
_QUIET_LOGGERS = ("aiosqlite", "asyncio", "redis")


def setup_logging(level: int | None = None) -> None:
    """Configure root logging to stdout.

    Level defaults to DEBUG when settings.debug is True, otherwise INFO.
    SQL statement logging stays controlled by settings.database_echo.
    """
    settings = get_settings()
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name (usually __name__)."""
    return logging.getLogger(name)
