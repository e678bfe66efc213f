"""
Loguru configuration shared by the API, the watcher and the tests.
"""

import sys
from loguru import logger
from .config import settings


def setup_logging(level: str | None = None, serialize: bool | None = None):
    """
    Replace loguru's default sink with one driven by settings.

    Args:
        level: Minimum level (defaults to LOG_LEVEL)
        serialize: Emit JSON records instead of text (defaults to LOG_JSON)

    Returns:
        The configured loguru logger
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.log_level).upper(),
        serialize=settings.log_json if serialize is None else serialize,
        backtrace=False,
        diagnose=False,
    )
    logger.debug("Logging configured", app=settings.app_name, env=settings.app_env)
    return logger
