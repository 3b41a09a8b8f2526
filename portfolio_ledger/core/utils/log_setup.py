"""
Logging setup.

The library logs through loguru's global ``logger``; applications call
``configure_logging`` once at start-up to choose the level and sink.
"""

import sys
from typing import Any

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> | {extra}"
)


def configure_logging(level: str = "INFO", sink: Any = None) -> int:
    """Replace loguru's handlers with a single sink at ``level``.

    Args:
        level: Minimum log level name
        sink: Destination accepted by ``logger.add`` (defaults to stderr)

    Returns:
        The id of the installed handler
    """
    logger.remove()
    return logger.add(
        sink if sink is not None else sys.stderr, level=level.upper(), format=LOG_FORMAT
    )
