"""
peaktrack Processing Analysis Submodule

Extrema detection and extrema tracking for 2D fields.
"""

from .extrema import (
    find_local_extrema,
    find_extrema
)

from .tracking import (
    TrackingState,
    predict_positions,
    distance_matrix,
    match_extrema,
    track_extrema,
    find_and_track_extrema,
    tracks_to_dataset
)

__all__ = [
    'find_local_extrema',
    'find_extrema',
    # Tracking
    'TrackingState',
    'predict_positions',
    'distance_matrix',
    'match_extrema',
    'track_extrema',
    'find_and_track_extrema',
    'tracks_to_dataset'
]
