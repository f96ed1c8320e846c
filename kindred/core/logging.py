import logging
import sys
from typing import Optional

from loguru import logger

from kindred.core.config import get_settings

log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure loguru sinks and the stdlib root logger used by SQLAlchemy."""
    settings = get_settings()
    level = (level or settings.LOG_LEVEL).upper()
    log_file = settings.LOG_FILE if log_file is None else log_file

    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=log_format)
    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_file:
        logger.add(log_file, rotation="10 MB", level="DEBUG")

    logger.info(f"Logging configured at {level}" + (f", file sink {log_file}" if log_file else ""))
