"""
Extrema Detection Module

This module locates local extrema (peaks or valleys) in a 2D field sampled on
a signal axis and a control axis. Each control-axis position is a slice; the
extrema of every slice are pooled into one pair of index/value matrices that
can be handed to `track_extrema`.

Features:
---------
- Local maxima/minima search over an arbitrary subset of axes
- Per-axis suppression of extrema on the array boundary
- Pre-smoothing, by default a Gaussian heavier along the signal axis, or any
  caller-supplied kernel or smoothing operator
- Physical coordinates taken from the xarray coordinates of the field

Usage:
------
    from peaktrack.processing.analysis.extrema import find_extrema

    # data: xr.DataArray with dims ('freq', 'bus')
    idxs, vals = find_extrema(data, 'freq')

    # idxs[0] / vals[0]: signal axis (freq) index / value
    # idxs[1] / vals[1]: control axis (bus) index / value
"""

import logging

import numpy as np
import xarray as xr
from numpy.typing import NDArray
from scipy.ndimage import maximum_filter
from typing import Optional, Sequence, Tuple, Union

from ..smoothing import Smoother, smooth_field
from ...utils.constants import DEFAULT_SMOOTHING_SIGMA, DEFAULT_SMOOTHING_SIZE

logger = logging.getLogger(__name__)


# ==============================================================================
# Local Extrema Search
# ==============================================================================

def find_local_extrema(
    image: NDArray,
    region: Sequence[int],
    include_edges: Union[bool, Sequence[bool]] = False,
    maxima: bool = True
) -> NDArray:
    """
    Find local extrema of a 2D array.

    A point is a local maximum (minimum) when it is strictly greater (smaller)
    than every neighbour in its 3x3 neighbourhood restricted to the axes in
    `region`. Axes not in `region` are not compared along, so with
    `region=(0,)` each column is searched independently.

    Parameters
    ----------
    image : NDArray
        2D input array.
    region : sequence of int
        Axes along which neighbours are compared.
    include_edges : bool or sequence of 2 bools
        Per-axis flag. When False, points on the first or last index of
        that axis are never reported. A scalar applies to both axes.
    maxima : bool
        If True, find maxima, else find minima.

    Returns
    -------
    NDArray
        (N, 2) integer array of grid indices, in row-major order.

    Examples
    --------
    >>> image = np.array([[0, 0], [3, 1], [1, 2], [0, 0]])
    >>> find_local_extrema(image, region=(0,), include_edges=(False, True))
    array([[1, 0],
           [2, 1]])
    """
    image = np.asarray(image, dtype=np.float64)
    if image.ndim != 2:
        raise ValueError(f"Expected 2D array, got shape {image.shape}")

    region = tuple(region)
    for ax in region:
        if ax not in (0, 1):
            raise ValueError(f"region axes must be 0 or 1, got {region}")

    edges = np.broadcast_to(np.asarray(include_edges, dtype=bool), (2,))

    # Minima are maxima of the negated field; NaN/inf can never be extrema
    work = image if maxima else -image
    finite = np.isfinite(work)
    work = np.where(finite, work, -np.inf)

    footprint = np.ones([3 if ax in region else 1 for ax in range(2)], dtype=bool)
    footprint[tuple(s // 2 for s in footprint.shape)] = False

    if footprint.any():
        neighbour_max = maximum_filter(work, footprint=footprint, mode='constant', cval=-np.inf)
        mask = finite & (work > neighbour_max)
    else:
        mask = finite.copy()

    for ax in range(2):
        if not edges[ax]:
            index = [slice(None), slice(None)]
            index[ax] = 0
            mask[tuple(index)] = False
            index[ax] = -1
            mask[tuple(index)] = False

    return np.argwhere(mask)


# ==============================================================================
# Extrema Detection
# ==============================================================================

def _resolve_axes(data: xr.DataArray, axis: Union[str, int]) -> Tuple[str, str]:
    """Return (signal_dim, control_dim) names for a 2D DataArray."""
    dims = list(data.dims)

    if isinstance(axis, (int, np.integer)):
        if axis < 0:
            axis = data.ndim + axis
        if axis < 0 or axis >= data.ndim:
            raise ValueError(f"axis index {axis} out of range for {data.ndim}D data")
        signal_dim = dims[axis]
    else:
        signal_dim = axis
        if signal_dim not in dims:
            raise ValueError(f"axis '{signal_dim}' not found. Available: {data.dims}")

    control_dim = [d for d in dims if d != signal_dim][0]
    return signal_dim, control_dim


def find_extrema(
    data: Union[xr.DataArray, np.ndarray],
    axis: Union[str, int],
    maxima: bool = True,
    smoothing_sigma: Sequence[float] = DEFAULT_SMOOTHING_SIGMA,
    smoothing_size: Sequence[int] = DEFAULT_SMOOTHING_SIZE,
    smoother: Optional[Smoother] = None
) -> Tuple[NDArray, NDArray]:
    """
    Look for extrema in a 2D field.

    The field is smoothed, then searched for extrema along `axis` within
    every slice of the other (control) axis. Extrema on the boundary of the
    signal axis are discarded as artifacts of the finite window; extrema on
    the first or last control slice are kept.

    Parameters
    ----------
    data : xr.DataArray or np.ndarray
        2D field. For a bare ndarray the dimensions are named 'dim_0' and
        'dim_1' and the coordinates are the grid indices.
    axis : str or int
        The signal axis, along which to look for extrema.
    maxima : bool, optional
        If True, find maxima, else find minima. Default: True.
    smoothing_sigma : sequence of 2 floats, optional
        Gaussian sigma ordered (signal, control). Default: (3, 1).
    smoothing_size : sequence of 2 ints, optional
        Kernel support ordered (signal, control). Default: (5, 1).
    smoother : NDArray or callable, optional
        Replaces the Gaussian: a 2D kernel array ordered (signal, control),
        or a callable taking the (signal, control) field and returning the
        smoothed field. Default: None.

    Returns
    -------
    idxs : NDArray
        2 x N integer matrix of grid indices where the N extrema are found.
        The second row corresponds to the control axis.
    vals : NDArray
        2 x N matrix of axis values where the N extrema are found.
        The second row corresponds to the control axis.

    Notes
    -----
    Columns are ordered by control index, then signal index.

    Examples
    --------
    >>> f = np.linspace(4, 6, 201)
    >>> b = np.linspace(0, 1, 11)
    >>> data = xr.DataArray(np.exp(-(f[:, None] - 5 - 0.2 * b) ** 2 / 0.01),
    ...                     coords={'freq': f, 'bus': b}, dims=('freq', 'bus'))
    >>> idxs, vals = find_extrema(data, 'freq')
    >>> idxs.shape
    (2, 11)
    """
    if not isinstance(data, xr.DataArray):
        data = xr.DataArray(np.asarray(data))

    if data.ndim != 2:
        raise ValueError(f"Expected 2D data, got {data.ndim}D with dims {data.dims}")

    signal_dim, control_dim = _resolve_axes(data, axis)

    field = data.transpose(signal_dim, control_dim)
    image = field.values.astype(np.float64)
    signal_coords = np.asarray(field.get_index(signal_dim), dtype=np.float64)
    control_coords = np.asarray(field.get_index(control_dim), dtype=np.float64)

    # Smoothing keeps noise within a slice from producing spurious extrema
    smoothed = smooth_field(image, sigma=smoothing_sigma, size=smoothing_size, kernel=smoother)

    found = find_local_extrema(smoothed, region=(0,), include_edges=(False, True), maxima=maxima)

    # Group by slice: control index first, then signal index
    order = np.lexsort((found[:, 0], found[:, 1]))
    idxs = found[order].T.astype(int)

    vals = np.vstack((signal_coords[idxs[0]], control_coords[idxs[1]]))

    logger.debug(
        f"Found {idxs.shape[1]} {'maxima' if maxima else 'minima'} along '{signal_dim}' "
        f"over {image.shape[1]} '{control_dim}' slices"
    )

    return idxs, vals


__all__ = [
    'find_local_extrema',
    'find_extrema',
]
