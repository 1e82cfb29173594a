"""
Field Smoothing Module

Smoothing applied to a 2D field before extrema are searched for. By default
this is a Gaussian truncated to a caller-supplied support, so that smoothing
can be made much heavier along one axis than the other (or disabled entirely
along an axis with a support of 1). Any other kernel array, or a callable
smoothing operator, can be supplied instead.

Usage:
------
    from peaktrack.processing.smoothing import smooth_field

    # Default kernel: sigma (3, 1), support (5, 1)
    smoothed = smooth_field(image)

    # Smooth both axes
    smoothed = smooth_field(image, sigma=(2.0, 1.0), size=(7, 3))

    # 3-point box average along the first axis
    smoothed = smooth_field(image, kernel=np.full((3, 1), 1 / 3))
"""

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import correlate, gaussian_filter
from scipy.signal.windows import gaussian
from typing import Callable, Optional, Sequence, Tuple, Union

from ..utils.constants import DEFAULT_SMOOTHING_SIGMA, DEFAULT_SMOOTHING_SIZE

Smoother = Union[NDArray, Callable[[NDArray], NDArray]]


def _validate_gaussian_params(
    sigma: Union[float, Sequence[float]],
    size: Union[int, Sequence[int]]
) -> Tuple[NDArray, NDArray]:
    """Broadcast sigma/size to two axes and check the sizes are odd."""
    sigmas = np.broadcast_to(np.asarray(sigma, dtype=float), (2,))
    sizes = np.broadcast_to(np.asarray(size), (2,))

    for s in sizes:
        if s < 1 or s % 2 == 0 or int(s) != s:
            raise ValueError(f"Kernel size must be a positive odd integer, got {tuple(sizes)}")

    return sigmas, sizes.astype(int)


def gaussian_kernel(
    sigma: Union[float, Sequence[float]] = DEFAULT_SMOOTHING_SIGMA,
    size: Union[int, Sequence[int]] = DEFAULT_SMOOTHING_SIZE
) -> NDArray:
    """
    Build a separable 2D Gaussian kernel.

    Parameters
    ----------
    sigma : float or sequence of 2 floats
        Standard deviation in pixels along each axis. A scalar applies
        to both axes. Non-positive values disable smoothing on that axis.
    size : int or sequence of 2 ints
        Kernel support in pixels along each axis. Must be odd and positive.

    Returns
    -------
    NDArray
        Kernel of shape `size`, summing to 1.

    Examples
    --------
    >>> kernel = gaussian_kernel((3, 1), (5, 1))
    >>> kernel.shape
    (5, 1)
    """
    sigmas, sizes = _validate_gaussian_params(sigma, size)

    weights = []
    for s, n in zip(sigmas, sizes):
        if s > 0:
            w = gaussian(n, std=s)
        else:
            w = np.zeros(n)
            w[n // 2] = 1.0
        weights.append(w / w.sum())

    return np.outer(weights[0], weights[1])


def smooth_field(
    image: NDArray,
    sigma: Union[float, Sequence[float]] = DEFAULT_SMOOTHING_SIGMA,
    size: Union[int, Sequence[int]] = DEFAULT_SMOOTHING_SIZE,
    kernel: Optional[Smoother] = None
) -> NDArray:
    """
    Smooth a 2D field.

    Borders are handled by replicating the edge values, so a constant field
    stays constant and edge samples are not pulled towards zero.

    Parameters
    ----------
    image : NDArray
        2D input field.
    sigma : float or sequence of 2 floats
        Gaussian sigma per axis, in the axis order of `image`.
        Ignored when `kernel` is given.
    size : int or sequence of 2 ints
        Gaussian support per axis, in the axis order of `image`.
        Ignored when `kernel` is given.
    kernel : NDArray or callable, optional
        A 2D kernel array correlated with the field, or a callable taking
        the 2D field and returning a smoothed field of the same shape.
        Default: None (truncated Gaussian from `sigma` and `size`).

    Returns
    -------
    NDArray
        Smoothed float64 field with the same shape as `image`.
    """
    image = np.asarray(image, dtype=np.float64)
    if image.ndim != 2:
        raise ValueError(f"Expected 2D array, got shape {image.shape}")

    if kernel is None:
        sigmas, sizes = _validate_gaussian_params(sigma, size)
        return gaussian_filter(
            image,
            sigma=tuple(sigmas),
            radius=tuple(int(r) for r in (sizes - 1) // 2),
            mode='nearest'
        )

    if callable(kernel):
        smoothed = np.asarray(kernel(image), dtype=np.float64)
        if smoothed.shape != image.shape:
            raise ValueError(
                f"Smoothing operator changed the field shape from {image.shape} to {smoothed.shape}"
            )
        return smoothed

    kernel = np.asarray(kernel, dtype=np.float64)
    if kernel.ndim != 2:
        raise ValueError(f"Expected 2D kernel, got shape {kernel.shape}")
    return correlate(image, kernel, mode='nearest')


__all__ = [
    'Smoother',
    'gaussian_kernel',
    'smooth_field'
]
