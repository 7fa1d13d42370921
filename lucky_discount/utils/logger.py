"""
Logging for Lucky Discount.

Every module logs through a child of the ``lucky`` logger. Level comes from
LOG_LEVEL (default INFO) and can be changed at runtime with ``set_level``.
"""
import logging
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("lucky")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(_handler)

# Uvicorn installs root handlers too; keep lines single
logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger under the ``lucky`` namespace.

    Args:
        name: Dotted suffix, e.g. ``"discount.claims"`` -> ``lucky.discount.claims``
    """
    if name:
        return logging.getLogger(f"lucky.{name}")
    return logger


def set_level(level: str) -> None:
    """Change the level of the whole ``lucky`` logger tree."""
    logger.setLevel(level.upper())
