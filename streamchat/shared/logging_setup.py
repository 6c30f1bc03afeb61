"""
Loguru sink configuration shared by the CLI and the demo server.
"""
import sys
from typing import Optional

from loguru import logger


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Replaces loguru's default stderr sink.
    With `log_file` set, logs go to that file only, so a Live terminal view
    is not torn by interleaved log lines.
    """
    logger.remove()
    if log_file:
        logger.add(log_file, level=level.upper(), enqueue=False, backtrace=False)
    else:
        logger.add(sys.stderr, level=level.upper())
