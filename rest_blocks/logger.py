"""
Package logging.

Every pipeline stage logs through a child of the "rest_blocks" logger
(``get_module_logger("resolver")`` -> "rest_blocks.resolver"). Only the
package logger carries handlers. Records go to stderr so the CLI can keep
stdout for block JSON.
"""

import logging
import os
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "rest_blocks"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(level: Union[int, str]) -> int:
    # Accept "debug" / "WARNING" as well as logging constants
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        return resolved
    return level


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again re-levels the existing handlers, and adds a file
    handler when ``log_file`` names one that is not attached yet.

    Args:
        name: Logger name
        level: Logging level, as a constant or a name such as "debug"
        log_file: Optional file to log to as well as stderr

    Returns:
        The configured logger
    """
    level = _level(level)
    package_logger = logging.getLogger(name)
    package_logger.setLevel(level)

    if not package_logger.handlers:
        package_logger.addHandler(_handler(logging.StreamHandler(sys.stderr), level))
    for handler in package_logger.handlers:
        handler.setLevel(level)

    if log_file:
        attached = {getattr(h, "baseFilename", None) for h in package_logger.handlers}
        if os.path.abspath(log_file) not in attached:
            package_logger.addHandler(_handler(logging.FileHandler(log_file), level))

    return package_logger


logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """Child logger for one stage, e.g. 'resolver' or 'pipeline'."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{module_name}")
