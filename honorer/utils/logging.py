"""Logging configuration."""

import sys
from pathlib import Path
from typing import Any, Optional, TextIO, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    sink: Union[TextIO, Path, str, Any] = None,
    log_file: Optional[Path] = None,
) -> None:
    """Configure loguru for an honorer application.

    Removes existing handlers, then adds a console handler and, when
    ``log_file`` is given, a rotating file handler.

    Args:
        level: Minimum level of the console handler
        sink: Console sink (defaults to stderr)
        log_file: Optional log file, always at DEBUG
    """
    logger.remove()

    logger.add(
        sink if sink is not None else sys.stderr,
        format=CONSOLE_FORMAT,
        level=level.upper(),
        colorize=sink is None,
    )

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="10 MB",
            retention="1 week",
        )
