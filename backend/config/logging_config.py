"""Logging configuration for the character manager."""
import sys
from datetime import datetime
from typing import Optional

from loguru import logger

from utils.paths import get_writable_dir


SESSION_ID = datetime.now().strftime("%Y%m%d_%H%M%S")

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:{line} - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}"


def configure_logging(log_level: str = "INFO", log_filter: str = "", log_dir: Optional[str] = None):
    """
    Configure Loguru logging.

    Args:
        log_level: Console level
        log_filter: If set, only modules whose name contains it reach the console (at DEBUG)
        log_dir: Directory for the session and error logs
    """
    logger.remove()

    if log_filter:
        logger.add(
            sys.stderr,
            level="DEBUG",
            format=CONSOLE_FORMAT,
            filter=lambda record: log_filter in record["name"]
        )
    else:
        logger.add(sys.stderr, level=log_level.upper(), format=CONSOLE_FORMAT)

    target_dir = get_writable_dir("logs") if log_dir is None else log_dir

    logger.add(
        f"{target_dir}/app_{SESSION_ID}.log",
        rotation="5 MB",
        retention=5,
        level="DEBUG",
        format=FILE_FORMAT
    )

    logger.add(
        f"{target_dir}/error.log",
        rotation="10 MB",
        retention="14 days",
        level="ERROR",
        format=FILE_FORMAT
    )

    return logger
