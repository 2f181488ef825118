"""
Logging setup for the Glowify storefront.

All modules log through children of the ``glowify`` logger. Level comes from
LOG_LEVEL; setting LOG_FILE additionally appends records to that file.

Operation logs use a flat ``key=value`` layout so they stay greppable:

    orders: method=place_order product_id=12 quantity=2 result=success
"""
import logging
import os
import sys
from typing import Any

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("glowify")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if LOG_FILE:
        file_handler = logging.FileHandler(LOG_FILE)
        file_handler.setLevel(LOG_LEVEL)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

# Keep records out of the root logger (uvicorn configures its own)
logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional name for the logger (will be appended to 'glowify')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"glowify.{name}")
    return logger


def format_fields(**fields: Any) -> str:
    """Render keyword fields as ``k=v`` pairs, skipping None values."""
    return " ".join(f"{key}={value}" for key, value in fields.items() if value is not None)


def log_operation(log: logging.Logger, component: str, method: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one ``component: method=... k=v`` line."""
    log.log(level, "%s: method=%s %s", component, method, format_fields(**fields))
