"""
Tests for bilinear sampling and resampling.
"""

import numpy as np
import pytest

from climate_generator.sampling import (latitude_grid, resample_scalar, resample_vector,
                                        sample_bilinear, sample_bilinear_px,
                                        sample_bilinear_vector)


class TestBilinearSampling:
    """Point sampling of scalar and vector grids."""

    @pytest.mark.parametrize("shape", [(1, 1), (1, 5), (4, 1), (3, 7), (16, 16)])
    def test_corners_are_exact(self, shape):
        """Sampling at (0, 0) and (1, 1) must return the corner cells exactly."""
        data = np.random.default_rng(3).random(shape)
        assert sample_bilinear(data, 0.0, 0.0) == data[0, 0]
        assert sample_bilinear(data, 1.0, 1.0) == data[-1, -1]
        assert sample_bilinear(data, 1.0, 0.0) == data[0, -1]
        assert sample_bilinear(data, 0.0, 1.0) == data[-1, 0]

    def test_vector_corners_are_exact(self):
        data = np.random.default_rng(4).random((3, 4, 2))
        assert sample_bilinear_vector(data, 0.0, 0.0) == (data[0, 0, 0], data[0, 0, 1])
        assert sample_bilinear_vector(data, 1.0, 1.0) == (data[-1, -1, 0], data[-1, -1, 1])

    def test_centre_of_quad_is_average(self):
        data = np.array([[0.0, 1.0], [2.0, 3.0]])
        assert sample_bilinear(data, 0.5, 0.5) == pytest.approx(1.5)

    def test_coordinates_are_clamped(self):
        """Out-of-range coordinates read the nearest edge."""
        data = np.random.default_rng(5).random((4, 6))
        assert sample_bilinear(data, -3.0, -0.5) == data[0, 0]
        assert sample_bilinear(data, 7.0, 2.0) == data[-1, -1]
        assert sample_bilinear_px(data, 100.0, -4.0) == data[0, -1]

    def test_integer_pixel_coordinates_are_exact(self):
        data = np.random.default_rng(6).random((5, 5))
        for y in range(5):
            for x in range(5):
                assert sample_bilinear_px(data, float(x), float(y)) == data[y, x]


class TestResampling:
    """Grid-to-grid resampling."""

    def test_same_shape_is_an_exact_copy(self):
        data = np.random.default_rng(7).random((8, 8))
        out = resample_scalar(data, 8, 8)
        assert np.array_equal(out, data)
        assert out is not data
        out[0, 0] = -1.0
        assert data[0, 0] != -1.0

    def test_corners_survive_upsampling(self):
        data = np.random.default_rng(8).random((4, 5))
        out = resample_scalar(data, 9, 11)
        assert out.shape == (9, 11)
        assert out[0, 0] == data[0, 0]
        assert out[-1, -1] == data[-1, -1]
        assert out[0, -1] == data[0, -1]
        assert out[-1, 0] == data[-1, 0]

    def test_linear_field_is_reproduced(self):
        """Bilinear interpolation of a plane is the same plane."""
        yy, xx = np.mgrid[0:6, 0:6]
        data = (xx + 2.0 * yy) / 15.0
        out = resample_scalar(data, 11, 11)
        v, _ = latitude_grid(11, 11)
        u = v.T
        expected = (u * 5 + 2.0 * v * 5) / 15.0
        assert np.allclose(out, expected)

    def test_vector_resampling_keeps_constant_field(self):
        data = np.zeros((4, 4, 2))
        data[..., 0] = 0.25
        data[..., 1] = -0.5
        out = resample_vector(data, 7, 3)
        assert out.shape == (7, 3, 2)
        assert np.allclose(out[..., 0], 0.25)
        assert np.allclose(out[..., 1], -0.5)

    def test_latitude_grid_spans_poles(self):
        v, lat = latitude_grid(5, 3)
        assert v[0, 0] == 0.0 and v[-1, 0] == 1.0
        assert lat[0, 0] == -90.0 and lat[-1, 2] == 90.0
        assert lat[2, 1] == 0.0
