"""
Logging configuration for Netly.

Everything is logged under the ``src`` logger and written to stderr: stdout
carries the relayed byte stream and must stay clean. By default only
warnings and errors are shown; ``netly -v`` switches to debug output with
source line numbers.
"""

import logging
import sys
from typing import Optional, TextIO


NETLY_LOGGER = "src"

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEBUG_FORMAT = '%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s'

EXTERNAL_LOGGERS = ('asyncio', 'textual', 'rich')


def setup_logger(
    name: str,
    level: int = logging.WARNING,
    debug: bool = False,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Attach a single stderr handler to ``name`` and set its level.

    Calling it again reconfigures the existing handler instead of adding a
    second one.

    Args:
        name: Logger name
        level: Logging level for the logger and its handler
        debug: Include source line numbers in each record
        stream: Output stream, stderr by default

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        logger.addHandler(logging.StreamHandler(stream or sys.stderr))

    formatter = logging.Formatter(DEBUG_FORMAT if debug else DEFAULT_FORMAT)
    for handler in logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    return logger


def silence_external_loggers() -> None:
    """Keep library loggers at WARNING even when Netly runs verbose."""
    for name in EXTERNAL_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for a command line run.

    Args:
        verbose: Log debug output (``-v``) instead of warnings only

    Returns:
        The Netly package logger
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = setup_logger(NETLY_LOGGER, level=level, debug=verbose)
    silence_external_loggers()
    return logger
