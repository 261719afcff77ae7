"""
Tests for the sliding box blur and adaptive smoothing.
"""

import numpy as np
import pytest

from climate_generator.errors import InvalidConfiguration
from climate_generator.smoothing import adaptive_smooth, box_blur


def brute_force_blur(src, radius):
    height, width = src.shape
    out = np.empty_like(src)
    for y in range(height):
        for x in range(width):
            window = src[max(0, y - radius):y + radius + 1, max(0, x - radius):x + radius + 1]
            out[y, x] = window.mean()
    return out


class TestBoxBlur:
    """Running-sum box blur."""

    @pytest.mark.parametrize("radius", [1, 2, 5, 40])
    def test_matches_truncated_window_mean(self, radius):
        src = np.random.default_rng(radius).random((13, 17))
        assert np.allclose(box_blur(src, radius), brute_force_blur(src, radius))

    def test_constant_field_is_unchanged(self):
        src = np.full((9, 9), 0.3)
        assert np.allclose(box_blur(src, 3, iterations=4), 0.3)

    def test_iterations_compound(self):
        src = np.random.default_rng(1).random((10, 10))
        twice = box_blur(src, 2, iterations=2)
        assert np.allclose(twice, brute_force_blur(brute_force_blur(src, 2), 2))


class TestAdaptiveSmooth:
    """Edge-aware blending of a vector field."""

    def test_zero_blend_without_edges_is_identity(self):
        vectors = np.random.default_rng(2).normal(size=(8, 8, 2))
        out = adaptive_smooth(vectors, 2, 1, 0.0, edge_adaptive=False)
        assert np.array_equal(out, vectors)

    def test_full_blend_returns_blur(self):
        vectors = np.random.default_rng(3).normal(size=(8, 8, 2))
        out = adaptive_smooth(vectors, 2, 1, 1.0, edge_adaptive=False)
        assert np.allclose(out[..., 0], brute_force_blur(vectors[..., 0], 2))

    def test_sharp_edges_get_smoothed_harder(self):
        vectors = np.zeros((16, 16, 2))
        vectors[:, 8:, 0] = 1.0
        plain = adaptive_smooth(vectors, 2, 1, 0.2, edge_adaptive=False)
        adaptive = adaptive_smooth(vectors, 2, 1, 0.2, edge_adaptive=True, edge_boost=0.8, edge_sensitivity=0.1)
        # Right at the seam the adaptive result sits closer to the blur.
        assert adaptive[5, 8, 0] < plain[5, 8, 0]
        assert adaptive[5, 7, 0] > plain[5, 7, 0]

    @pytest.mark.parametrize("kwargs", [
        dict(radius=0, iterations=1),
        dict(radius=2, iterations=0),
        dict(radius=2, iterations=1, edge_sensitivity=0.0),
    ])
    def test_invalid_settings_are_rejected(self, kwargs):
        args = dict(base_blend=0.4)
        args.update(kwargs)
        with pytest.raises(InvalidConfiguration):
            adaptive_smooth(np.zeros((4, 4, 2)), **args)
