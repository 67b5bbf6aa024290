"""
Logging setup for scripts and long-running simulations.

Library modules only create module-level loggers via logging.getLogger(__name__)
and never configure handlers. Entry points (actions/, main.py) call
setup_logging() once at startup.
"""

import logging

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | int = "INFO", fmt: str = DEFAULT_FORMAT) -> None:
    """
    Configure the root logger with a single stream handler.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or numeric logging level.
        fmt: Log record format string.

    Raises:
        ValueError: If level is a string that is not a known logging level name.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    logging.basicConfig(level=level, format=fmt, force=True)
