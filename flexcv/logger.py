"""Loguru sink configuration."""
import sys

from loguru import logger

from flexcv.constants import LOG_LEVEL

_CONFIGURED = False


def configure_logging(level=None, force=False):
    """Route loguru output to a single stderr sink. Runs once unless forced."""
    global _CONFIGURED
    if _CONFIGURED and not force:
        return logger

    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or LOG_LEVEL).upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function} | {message}",
        backtrace=False,
        diagnose=False,
    )
    _CONFIGURED = True
    logger.debug("Logger configured at level {}", (level or LOG_LEVEL).upper())
    return logger
