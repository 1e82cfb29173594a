"""
Extrema Tracking Defaults Module

Centralized location for the default parameters used by extrema detection and
tracking. Every value here can be overridden per call through keyword
arguments; change them here to alter the package-wide defaults.

Usage
-----
    from peaktrack.utils.constants import DEFAULT_SMOOTHING_SIGMA

    smoothed = smooth_field(image, sigma=DEFAULT_SMOOTHING_SIGMA)
"""

# =============================================================================
# Smoothing
# =============================================================================

# Gaussian sigma in pixels, ordered (signal axis, control axis).
# Heavier along the signal axis so noise within one slice does not produce
# spurious extrema, light along the control axis so slices stay independent.
DEFAULT_SMOOTHING_SIGMA: tuple = (3.0, 1.0)

# Kernel support in pixels, ordered (signal axis, control axis).
# A size of 1 disables smoothing along that axis.
DEFAULT_SMOOTHING_SIZE: tuple = (5, 1)


# =============================================================================
# Tracking
# =============================================================================

# Assignment strategy used for each slice transition
MATCHING_MODES: tuple = ("greedy", "rowwise", "optimal")
DEFAULT_MATCHING: str = "greedy"

# Variable name prefix used when tracks are converted to an xarray.Dataset
TRACK_VARIABLE_PREFIX: str = "track_"


# =============================================================================
# Module exports
# =============================================================================

__all__ = [
    'DEFAULT_SMOOTHING_SIGMA',
    'DEFAULT_SMOOTHING_SIZE',
    'MATCHING_MODES',
    'DEFAULT_MATCHING',
    'TRACK_VARIABLE_PREFIX',
]
