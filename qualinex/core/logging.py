"""
Logging setup for the API process.
"""

import logging
import sys
from functools import lru_cache

from .config import settings


@lru_cache(maxsize=1)
def configure_logging() -> None:
    """
    Configure root logging once per process.

    Application loggers follow ``settings.log_level``; chatty third-party
    loggers are held at WARNING.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    logging.getLogger("qualinex").setLevel(log_level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
