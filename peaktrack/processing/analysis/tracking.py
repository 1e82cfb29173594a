"""
Extrema Tracking Module

Often the result of a measurement or simulation is a signal with some number of
peaks (or generically, extrema) that move around continuously as a function of a
control parameter. Peaks can vanish or appear spontaneously as the control
parameter changes. The control parameter is swept discretely, so the
measurement yields a set of extrema for each value of the control parameter.

This module clusters those discrete observations into tracks across all values
of the control parameter. It exploits the fact that the samples are low-noise,
discretized samples of continuous lines, which generic clustering (k-means,
hierarchical clustering) does not.

Algorithm:
----------
Slices are visited in order. For each transition between consecutive slices:

1. Optionally extrapolate every previous extremum along the displacement it
   showed in the last transition (linear prediction).
2. Build the distance matrix between previous and next extrema in
   (signal value, control value) space.
3. Pair up min(p, n) extrema greedily.
4. Paired next extrema inherit the track id; unpaired next extrema start new
   tracks (births); unpaired previous extrema stop growing (deaths).

Usage:
------
    from peaktrack.processing.analysis import find_extrema, track_extrema

    idxs, vals = find_extrema(data, 'freq')
    tracks = track_extrema(range(data.sizes['bus']), idxs, vals)

    for track_id, points in tracks.items():
        print(track_id, points[:, 0])  # signal values along the track
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import xarray as xr
from numpy.typing import NDArray
from scipy.optimize import linear_sum_assignment

from .extrema import find_extrema, _resolve_axes
from ..smoothing import Smoother
from ...utils.constants import (
    DEFAULT_MATCHING,
    DEFAULT_SMOOTHING_SIGMA,
    DEFAULT_SMOOTHING_SIZE,
    MATCHING_MODES,
    TRACK_VARIABLE_PREFIX,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# Tracking State
# ==============================================================================

@dataclass
class TrackingState:
    """
    Extrema of the most recently processed slice.

    Attributes
    ----------
    positions : np.ndarray
        (m, 2) array of (signal value, control value).
    ids : np.ndarray
        (m,) array of the track id each extremum belongs to.
    deltas : np.ndarray
        (m, 2) displacement each extremum showed in the transition that
        produced it. NaN rows for extrema that were not paired (births,
        or the first slice).
    """
    positions: np.ndarray
    ids: np.ndarray
    deltas: np.ndarray

    @classmethod
    def empty_history(cls, positions: np.ndarray) -> "TrackingState":
        """State for a slice with no previous transition."""
        m = len(positions)
        return cls(
            positions=positions,
            ids=np.zeros(m, dtype=int),
            deltas=np.full((m, 2), np.nan)
        )


# ==============================================================================
# Transition Steps
# ==============================================================================

def predict_positions(
    positions: NDArray,
    deltas: NDArray,
    control_step: float
) -> NDArray:
    """
    Extrapolate extrema along their last observed displacement.

    The displacement from the previous transition is rescaled to the new
    control-axis step before being added:

        predicted = position + delta * control_step / delta[control]

    Rows whose delta is NaN (never paired) or has no control component are
    returned unchanged.

    Parameters
    ----------
    positions : NDArray
        (m, 2) array of (signal value, control value).
    deltas : NDArray
        (m, 2) array of displacements from the previous transition.
    control_step : float
        Control-axis distance to the next slice.

    Returns
    -------
    NDArray
        (m, 2) array of predicted positions.

    Examples
    --------
    >>> predict_positions(np.array([[3.0, 1.0]]), np.array([[2.0, 1.0]]), 0.5)
    array([[4. , 1.5]])
    """
    positions = np.asarray(positions, dtype=np.float64)
    deltas = np.asarray(deltas, dtype=np.float64)

    predicted = positions.copy()
    valid = np.all(np.isfinite(deltas), axis=1) & (deltas[:, 1] != 0)

    if np.any(valid):
        scale = control_step / deltas[valid, 1]
        predicted[valid] += deltas[valid] * scale[:, None]

    return predicted


def distance_matrix(prev_positions: NDArray, next_positions: NDArray) -> NDArray:
    """Euclidean distances, shape (p, n), between two sets of (signal, control) points."""
    prev_positions = np.asarray(prev_positions, dtype=np.float64).reshape(-1, 2)
    next_positions = np.asarray(next_positions, dtype=np.float64).reshape(-1, 2)
    diff = prev_positions[:, None, :] - next_positions[None, :, :]
    return np.sqrt(np.sum(diff ** 2, axis=-1))


def match_extrema(distances: NDArray, matching: str = DEFAULT_MATCHING) -> NDArray:
    """
    Pair previous extrema (rows) with next extrema (columns).

    Parameters
    ----------
    distances : NDArray
        (p, n) distance matrix.
    matching : {"greedy", "rowwise", "optimal"}
        - "greedy": one-to-one. The globally smallest remaining distance is
          paired first and its row and column are removed. Ties go to the
          lowest row, then the lowest column.
        - "rowwise": each extremum on the smaller side picks its nearest
          counterpart. Two extrema may pick the same counterpart.
        - "optimal": one-to-one assignment minimising the summed distance of
          this transition (scipy.optimize.linear_sum_assignment).

    Returns
    -------
    NDArray
        (min(p, n), 2) integer array of (previous index, next index) pairs,
        sorted by the index on the smaller side.
    """
    if matching not in MATCHING_MODES:
        raise ValueError(f"matching must be one of {MATCHING_MODES}, got '{matching}'")

    distances = np.asarray(distances, dtype=np.float64)
    if distances.ndim != 2:
        raise ValueError(f"Expected 2D distance matrix, got shape {distances.shape}")

    p, n = distances.shape
    npairs = min(p, n)
    if npairs == 0:
        return np.empty((0, 2), dtype=int)

    if matching == "greedy":
        remaining = distances.copy()
        pairs = []
        for _ in range(npairs):
            i, j = np.unravel_index(np.argmin(remaining), remaining.shape)
            pairs.append((i, j))
            remaining[i, :] = np.inf
            remaining[:, j] = np.inf
        pairs = np.array(pairs, dtype=int)

    elif matching == "rowwise":
        if p <= n:
            pairs = np.column_stack((np.arange(p), np.argmin(distances, axis=1)))
        else:
            pairs = np.column_stack((np.argmin(distances, axis=0), np.arange(n)))

    else:  # optimal
        rows, cols = linear_sum_assignment(distances)
        pairs = np.column_stack((rows, cols))

    key = pairs[:, 0] if p <= n else pairs[:, 1]
    return pairs[np.argsort(key, kind='stable')].astype(int)


# ==============================================================================
# Tracking
# ==============================================================================

def _validate_extrema(idxs: NDArray, vals: NDArray) -> Tuple[NDArray, NDArray]:
    """Check that idxs and vals are matching 2 x N matrices."""
    idxs = np.asarray(idxs)
    vals = np.asarray(vals, dtype=np.float64)

    if idxs.ndim != 2 or idxs.shape[0] != 2:
        raise ValueError(f"idxs must be a 2 x N matrix, got shape {idxs.shape}")
    if vals.ndim != 2 or vals.shape[0] != 2:
        raise ValueError(f"vals must be a 2 x N matrix, got shape {vals.shape}")
    if idxs.shape[1] != vals.shape[1]:
        raise ValueError(
            f"idxs and vals must have the same number of columns, "
            f"got {idxs.shape[1]} and {vals.shape[1]}"
        )

    return idxs, vals


def track_extrema(
    idxrange: Sequence[int],
    idxs: NDArray,
    vals: NDArray,
    follow_trajectory: bool = True,
    matching: str = DEFAULT_MATCHING
) -> Dict[int, NDArray]:
    """
    Cluster per-slice extrema into tracks across the control axis.

    Parameters
    ----------
    idxrange : sequence of int
        Control-axis indices to use for tracking, in traversal order
        (usually a contiguous ``range``). Each element is paired with the
        element that follows it in `idxrange`, not with ``index + 1``; the
        two agree for a contiguous increasing range, and a reversed or
        strided range is traversed slice by slice as given.
    idxs : NDArray
        2 x N matrix of grid indices where the N extrema are found. The
        second row corresponds to the control axis.
    vals : NDArray
        2 x N matrix of axis values where the N extrema are found. The
        second row corresponds to the control axis.
    follow_trajectory : bool, optional
        Use the last change in peak position to estimate where the next peak
        should be (linear extrapolation). The estimate is used in the
        distance matrix instead of the previous peak position. This helps
        when lines intersect. Default: True.
    matching : {"greedy", "rowwise", "optimal"}, optional
        Pairing strategy per transition, see `match_extrema`.
        Default: "greedy".

    Returns
    -------
    dict of int -> np.ndarray
        Track id (1, 2, ...) -> (k, 2) array of (signal value, control value)
        rows in traversal order. Ids are inserted in increasing order.

    Raises
    ------
    ValueError
        If `idxrange` is empty, if `idxs`/`vals` are not matching 2 x N
        matrices, or if `matching` is unknown.

    Notes
    -----
    - The first transition numbers its pairs 1..npairs; first-slice extrema
      left unpaired then get the following ids so that every visited
      extremum belongs to a track.
    - A slice without extrema is not an error: all of the other side are
      births (or deaths).
    - With a single index in `idxrange`, each extremum of that slice becomes
      a track of length 1.
    - With matching="rowwise" an extremum can be claimed twice, and then
      appears in two tracks (or twice in one track).

    Examples
    --------
    >>> idxs = np.array([[0, 0, 1, 0], [0, 1, 1, 2]])
    >>> vals = np.array([[1.0, 1.0, 5.0, 5.0], [0.0, 0.1, 0.1, 0.2]])
    >>> tracks = track_extrema(range(3), idxs, vals)
    >>> sorted(len(t) for t in tracks.values())
    [2, 2]
    """
    if matching not in MATCHING_MODES:
        raise ValueError(f"matching must be one of {MATCHING_MODES}, got '{matching}'")

    idxs, vals = _validate_extrema(idxs, vals)

    indices = [int(i) for i in idxrange]
    if len(indices) == 0:
        raise ValueError("idxrange must contain at least one control-axis index")

    def slice_values(index: int) -> NDArray:
        return vals[:, idxs[1] == index].T

    tracks: Dict[int, List[NDArray]] = {}
    next_id = 1

    state = TrackingState.empty_history(slice_values(indices[0]))

    if len(indices) == 1:
        for i, position in enumerate(state.positions):
            tracks[next_id] = [position]
            state.ids[i] = next_id
            next_id += 1

    for step, next_index in enumerate(indices[1:]):
        first_pass = step == 0
        nextvals = slice_values(next_index)
        p, n = len(state.positions), len(nextvals)

        # Values to use in the distance matrix calculation
        prevdist = state.positions
        if follow_trajectory and not first_pass and p and n:
            control_step = nextvals[0, 1] - state.positions[0, 1]
            prevdist = predict_positions(state.positions, state.deltas, control_step)

        pairs = match_extrema(distance_matrix(prevdist, nextvals), matching)

        next_ids = np.zeros(n, dtype=int)
        next_deltas = np.full((n, 2), np.nan)

        for i, j in pairs:
            if first_pass:
                track_id = next_id
                next_id += 1
                tracks[track_id] = [state.positions[i]]
            else:
                track_id = int(state.ids[i])
            tracks[track_id].append(nextvals[j])
            next_ids[j] = track_id
            next_deltas[j] = nextvals[j] - state.positions[i]

        if first_pass:
            for i in np.setdiff1d(np.arange(p), pairs[:, 0]):
                tracks[next_id] = [state.positions[i]]
                next_id += 1

        unpaired = np.setdiff1d(np.arange(n), pairs[:, 1])
        for j in unpaired:
            tracks[next_id] = [nextvals[j]]
            next_ids[j] = next_id
            next_id += 1

        logger.debug(
            f"Slice {next_index}: {p} -> {n} extrema, {len(pairs)} paired, "
            f"{len(unpaired)} born, {p - len(np.unique(pairs[:, 0]))} ended"
        )

        # Retain the track ids for the next round
        state = TrackingState(positions=nextvals, ids=next_ids, deltas=next_deltas)

    logger.info(
        f"Tracked {idxs.shape[1]} extrema over {len(indices)} slices into {len(tracks)} tracks"
    )

    return {track_id: np.vstack(points) for track_id, points in tracks.items()}


# ==============================================================================
# Convenience Wrappers
# ==============================================================================

def find_and_track_extrema(
    data: Union[xr.DataArray, np.ndarray],
    axis: Union[str, int],
    maxima: bool = True,
    idxrange: Optional[Sequence[int]] = None,
    follow_trajectory: bool = True,
    matching: str = DEFAULT_MATCHING,
    smoothing_sigma: Sequence[float] = DEFAULT_SMOOTHING_SIGMA,
    smoothing_size: Sequence[int] = DEFAULT_SMOOTHING_SIZE,
    smoother: Optional[Smoother] = None
) -> Dict[int, NDArray]:
    """
    Detect extrema in a 2D field and track them across the control axis.

    Parameters
    ----------
    data : xr.DataArray or np.ndarray
        2D field.
    axis : str or int
        The signal axis, along which to look for extrema.
    maxima : bool, optional
        If True, track maxima, else minima. Default: True.
    idxrange : sequence of int, optional
        Control-axis indices to track over. Default: the whole control axis.
    follow_trajectory, matching
        See `track_extrema`.
    smoothing_sigma, smoothing_size, smoother
        See `find_extrema`.

    Returns
    -------
    dict of int -> np.ndarray
        Same as `track_extrema`.
    """
    if not isinstance(data, xr.DataArray):
        data = xr.DataArray(np.asarray(data))

    idxs, vals = find_extrema(
        data, axis, maxima=maxima,
        smoothing_sigma=smoothing_sigma,
        smoothing_size=smoothing_size,
        smoother=smoother
    )

    if idxrange is None:
        _, control_dim = _resolve_axes(data, axis)
        idxrange = range(data.sizes[control_dim])

    return track_extrema(idxrange, idxs, vals, follow_trajectory=follow_trajectory, matching=matching)


def tracks_to_dataset(
    tracks: Dict[int, NDArray],
    signal_name: str = "signal",
    control_name: str = "control"
) -> xr.Dataset:
    """
    Convert tracks into an xarray Dataset indexed by control value.

    Each track becomes a variable named ``track_<id>`` holding its signal
    values. Control values where a track has no observation are NaN.

    Parameters
    ----------
    tracks : dict of int -> np.ndarray
        Output of `track_extrema`.
    signal_name : str, optional
        Stored as the `long_name` attribute of every variable.
    control_name : str, optional
        Name of the control dimension. Default: "control".

    Returns
    -------
    xr.Dataset
        Dataset with one dimension, `control_name`, sorted ascending.

    Raises
    ------
    ValueError
        If a track holds more than one observation for the same control
        value (possible only with matching="rowwise").
    """
    arrays = []
    names = []
    for track_id, points in tracks.items():
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(np.unique(points[:, 1])) != len(points):
            raise ValueError(f"Track {track_id} has several observations for one control value")

        arrays.append(xr.DataArray(
            points[:, 0],
            coords={control_name: points[:, 1]},
            dims=(control_name,),
            attrs={'track_id': int(track_id), 'long_name': signal_name}
        ))
        names.append(f"{TRACK_VARIABLE_PREFIX}{track_id}")

    if not arrays:
        return xr.Dataset(attrs={'signal_name': signal_name})

    aligned = xr.align(*arrays, join='outer')
    dataset = xr.Dataset(dict(zip(names, aligned)), attrs={'signal_name': signal_name})
    return dataset.sortby(control_name)


__all__ = [
    'TrackingState',
    'predict_positions',
    'distance_matrix',
    'match_extrema',
    'track_extrema',
    'find_and_track_extrema',
    'tracks_to_dataset',
]
