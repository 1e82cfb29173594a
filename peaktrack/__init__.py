"""
peaktrack - Extrema detection and tracking for swept 2D measurements.

Find the peaks (or valleys) of a field measured as a function of a signal
axis and a swept control axis, and link them into continuous tracks across
the control axis.
"""

from .processing import (
    smooth_field,
    find_extrema,
    track_extrema,
    find_and_track_extrema,
    tracks_to_dataset,
)

__version__ = "0.1.0"

__all__ = [
    "smooth_field",
    "find_extrema",
    "track_extrema",
    "find_and_track_extrema",
    "tracks_to_dataset",
]
