"""
Tests for field smoothing.

Tests for peaktrack/processing/smoothing.py
"""

from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_allclose

from peaktrack.processing.smoothing import gaussian_kernel, smooth_field


class TestGaussianKernel:
    """Test gaussian_kernel function."""

    def test_default_shape_and_normalization(self):
        """Default kernel is (5, 1) and sums to one."""
        kernel = gaussian_kernel()

        assert kernel.shape == (5, 1)
        assert kernel.sum() == pytest.approx(1.0)

    def test_symmetric_and_peaked_at_center(self):
        """Kernel is symmetric with its maximum at the center."""
        kernel = gaussian_kernel((2.0, 1.0), (7, 3))

        assert_allclose(kernel, kernel[::-1, ::-1])
        assert np.unravel_index(np.argmax(kernel), kernel.shape) == (3, 1)

    def test_size_one_is_identity_along_axis(self):
        """A support of 1 along an axis applies no smoothing along it."""
        kernel = gaussian_kernel((3.0, 5.0), (1, 1))

        assert_allclose(kernel, [[1.0]])

    def test_non_positive_sigma_is_delta(self):
        """Zero sigma gives a delta kernel."""
        kernel = gaussian_kernel(0.0, (3, 3))

        expected = np.zeros((3, 3))
        expected[1, 1] = 1.0
        assert_allclose(kernel, expected)

    @pytest.mark.parametrize("size", [(4, 1), (5, 0), (-1, 1)])
    def test_invalid_size_raises(self, size):
        """Even or non-positive sizes are rejected."""
        with pytest.raises(ValueError, match="odd"):
            gaussian_kernel((1.0, 1.0), size)


class TestSmoothField:
    """Test smooth_field function."""

    def test_shape_preserved(self):
        """Output has the input shape."""
        image = np.random.default_rng(0).random((20, 7))

        assert smooth_field(image).shape == (20, 7)

    def test_constant_field_unchanged(self):
        """Replicated borders keep a constant field constant."""
        image = np.full((10, 4), 3.5)

        assert_allclose(smooth_field(image, sigma=(2.0, 2.0), size=(5, 3)), image)

    def test_default_smooths_signal_axis_only(self):
        """The default kernel spreads an impulse along axis 0 only."""
        image = np.zeros((11, 5))
        image[5, 2] = 1.0

        smoothed = smooth_field(image)

        assert_allclose(smoothed[:, [0, 1, 3, 4]], 0.0)
        assert np.count_nonzero(smoothed[:, 2]) == 5
        assert smoothed[:, 2].sum() == pytest.approx(1.0)

    def test_non_2d_raises(self):
        """Only 2D input is accepted."""
        with pytest.raises(ValueError, match="2D"):
            smooth_field(np.zeros(10))

    def test_default_matches_explicit_gaussian_kernel(self):
        """The default filter equals correlating with the truncated Gaussian kernel."""
        image = np.random.default_rng(1).random((30, 6))

        assert_allclose(smooth_field(image), smooth_field(image, kernel=gaussian_kernel()))
        assert_allclose(
            smooth_field(image, sigma=(2.0, 1.5), size=(7, 3)),
            smooth_field(image, kernel=gaussian_kernel((2.0, 1.5), (7, 3)))
        )


class TestCustomSmoother:
    """Test smooth_field with a caller-supplied kernel or operator."""

    def test_box_kernel(self):
        """A box kernel averages each sample with its neighbours."""
        image = np.zeros((7, 2))
        image[3, 0] = 3.0

        smoothed = smooth_field(image, kernel=np.full((3, 1), 1.0 / 3.0))

        assert_allclose(smoothed[:, 0], [0.0, 0.0, 1.0, 1.0, 1.0, 0.0, 0.0])
        assert_allclose(smoothed[:, 1], 0.0)

    def test_callable_operator(self):
        """A callable receives the float field and its result is returned."""
        image = np.arange(12).reshape(4, 3)

        smoothed = smooth_field(image, kernel=lambda field: field * 2.0)

        assert smoothed.dtype == np.float64
        assert_allclose(smoothed, image * 2.0)

    def test_callable_changing_shape_raises(self):
        """An operator must return a field of the input shape."""
        with pytest.raises(ValueError, match="shape"):
            smooth_field(np.zeros((4, 3)), kernel=lambda field: field[1:])

    def test_non_2d_kernel_raises(self):
        """Kernel arrays must be 2D."""
        with pytest.raises(ValueError, match="2D kernel"):
            smooth_field(np.zeros((4, 3)), kernel=np.ones(3) / 3.0)
