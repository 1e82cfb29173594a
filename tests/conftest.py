"""
Pytest configuration and shared fixtures for peaktrack tests.

Provides synthetic fields and extrema sets.
"""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest
import xarray as xr

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Field Fixtures
# =============================================================================


def gaussian_lines(freq: np.ndarray, bus: np.ndarray, centers, width: float = 0.05) -> np.ndarray:
    """Sum of Gaussian lines; centers[k](bus) gives the center of line k."""
    f = freq[:, None]
    image = np.zeros((len(freq), len(bus)))
    for center in centers:
        image += np.exp(-((f - center(bus)[None, :]) ** 2) / width)
    return image


@pytest.fixture
def freq_coords() -> np.ndarray:
    """Signal axis coordinates."""
    return np.linspace(0.0, 10.0, 201)


@pytest.fixture
def bus_coords() -> np.ndarray:
    """Control axis coordinates."""
    return np.linspace(0.0, 1.0, 11)


@pytest.fixture
def two_line_field(freq_coords, bus_coords) -> xr.DataArray:
    """Two separated peaks moving towards each other as 'bus' increases."""
    image = gaussian_lines(
        freq_coords, bus_coords,
        centers=[lambda b: 3.0 + b, lambda b: 7.0 - b]
    )
    return xr.DataArray(
        image,
        coords={'freq': freq_coords, 'bus': bus_coords},
        dims=('freq', 'bus'),
        name='transmission'
    )


# =============================================================================
# Extrema Fixtures
# =============================================================================


def extrema_from_slices(slices):
    """
    Build (idxs, vals) matrices from a list of slices.

    slices[k] is a list of signal values found at control index k, with
    control value k / 10.
    """
    idx_cols = []
    val_cols = []
    for k, signal_values in enumerate(slices):
        for s in signal_values:
            idx_cols.append((0, k))
            val_cols.append((s, k / 10))
    idxs = np.array(idx_cols, dtype=int).reshape(-1, 2).T
    vals = np.array(val_cols, dtype=float).reshape(-1, 2).T
    return idxs, vals


@pytest.fixture
def birth_death_extrema():
    """Slice A = {1.0}, B = {1.0, 5.0}, C = {5.0}."""
    idxs = np.array([[0, 0, 4, 4], [0, 1, 1, 2]])
    vals = np.array([[1.0, 1.0, 5.0, 5.0], [0.0, 0.1, 0.1, 0.2]])
    return idxs, vals


@pytest.fixture
def crossing_extrema():
    """Two lines s = 2c and s = 7 - 2c crossing between c = 1 and c = 3."""
    control = np.arange(5, dtype=float)
    rising = 2.0 * control
    falling = 7.0 - 2.0 * control
    idxs = np.array([np.zeros(10, dtype=int), np.repeat(np.arange(5), 2)])
    vals = np.array([np.column_stack((rising, falling)).ravel(), np.repeat(control, 2)])
    return idxs, vals


@pytest.fixture
def make_extrema():
    """Factory fixture wrapping `extrema_from_slices`."""
    return extrema_from_slices
