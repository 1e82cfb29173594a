"""
peaktrack Processing Module

Smoothing, extrema detection and extrema tracking for 2D fields.
"""

# Smoothing
from .smoothing import (
    gaussian_kernel,
    smooth_field
)

# Analysis
from .analysis.extrema import (
    find_local_extrema,
    find_extrema
)

from .analysis.tracking import (
    TrackingState,
    predict_positions,
    distance_matrix,
    match_extrema,
    track_extrema,
    find_and_track_extrema,
    tracks_to_dataset
)

__all__ = [
    # Smoothing
    'gaussian_kernel',
    'smooth_field',
    # Extrema detection
    'find_local_extrema',
    'find_extrema',
    # Extrema tracking
    'TrackingState',
    'predict_positions',
    'distance_matrix',
    'match_extrema',
    'track_extrema',
    'find_and_track_extrema',
    'tracks_to_dataset',
]
