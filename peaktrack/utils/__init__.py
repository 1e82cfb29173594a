"""
Utils package - Common utilities for peaktrack.
"""

from .constants import (
    DEFAULT_SMOOTHING_SIGMA,
    DEFAULT_SMOOTHING_SIZE,
    MATCHING_MODES,
    DEFAULT_MATCHING,
    TRACK_VARIABLE_PREFIX,
)

from .logger import setup_logger

__all__ = [
    # Defaults
    "DEFAULT_SMOOTHING_SIGMA",
    "DEFAULT_SMOOTHING_SIZE",
    "MATCHING_MODES",
    "DEFAULT_MATCHING",
    "TRACK_VARIABLE_PREFIX",
    # Logging
    "setup_logger",
]
