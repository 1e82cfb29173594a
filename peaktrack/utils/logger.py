"""
Logging utilities for peaktrack.

Library modules log through child loggers of "peaktrack" (for example
"peaktrack.processing.analysis.tracking") and never install handlers.
Applications and notebooks call `setup_logger` once to see that output.
"""

import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'


def setup_logger(
    name: str = "peaktrack",
    level: int = logging.INFO,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Attach a console handler to a peaktrack logger.

    Calling it again for the same logger only updates the level.

    Args:
        name: Logger name; "peaktrack" covers every module of the package
        level: Logging level (default: INFO)
        stream: Output stream (default: sys.stdout)

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger
