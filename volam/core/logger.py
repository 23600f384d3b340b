import logging
import sys

from volam.core.config import settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] → %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Returns a stdout logger for a ranking engine module.

    The level comes from the LOG_LEVEL setting (INFO by default); per-item
    detail such as empathy tags is logged at DEBUG.

    Usage:
        logger = get_logger(__name__)
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(_resolve_level(settings.LOG_LEVEL))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))

        logger.addHandler(handler)
        logger.propagate = False

    return logger
