"""
Package-wide verbosity on the classic five-level scale.

``FATAL`` (0) to ``DEBUG`` (4) map onto stdlib logging levels. The level can be set for the
whole ``biophylo`` package or for a single module, either by module name or by passing a
class, in which case the logger of the module defining the class is used.
"""

import logging
from typing import Dict, Optional, Union

from biophylo.exceptions import OutOfBoundsError

FATAL, ERROR, WARN, INFO, DEBUG = range(5)

LEVELS: Dict[int, int] = {
    FATAL: logging.CRITICAL,
    ERROR: logging.ERROR,
    WARN: logging.WARNING,
    INFO: logging.INFO,
    DEBUG: logging.DEBUG,
}

PACKAGE = "biophylo"


def _logger_name(target: Union[None, str, type]) -> str:
    if target is None:
        return PACKAGE
    if isinstance(target, type):
        return target.__module__
    if target == PACKAGE or target.startswith(PACKAGE + "."):
        return target
    return f"{PACKAGE}.{target}"


def set_verbosity(level: int, target: Union[None, str, type] = None) -> None:
    """Set the verbosity for the package, a module name or a class."""
    if level not in LEVELS:
        raise OutOfBoundsError(f"Verbosity must be between {FATAL} and {DEBUG}, got {level!r}")
    logging.getLogger(_logger_name(target)).setLevel(LEVELS[level])


def get_verbosity(target: Union[None, str, type] = None) -> int:
    effective = logging.getLogger(_logger_name(target)).getEffectiveLevel()
    for verbosity in (DEBUG, INFO, WARN, ERROR):
        if effective <= LEVELS[verbosity]:
            return verbosity
    return FATAL


def setup_console_logging(level: int = WARN, fmt: Optional[str] = None) -> logging.Logger:
    """Attach one console handler to the package logger."""
    logger = logging.getLogger(PACKAGE)
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(fmt or "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(handler)
    set_verbosity(level)
    return logger
