# climate_generator/smoothing.py

"""
================================================================================
ADAPTIVE WIND SMOOTHING
================================================================================
Box-blurs a vector field with a sliding running sum and blends the blur back
into the original. Where the field changes sharply the blend is boosted, so
seams left by earlier refiners get smoothed harder than calm areas.

Data Contract:
---------------
- Inputs:
    - vectors: (H, W, 2) float array.
    - radius, iterations: Blur window half-width and repeat count.
    - base_blend, edge_boost, edge_sensitivity: Blend controls.
- Outputs:
    - A new (H, W, 2) array.
- Side Effects: None.
- Invariants:
    - Each blur pass costs O(1) per pixel regardless of radius.
    - Windows are truncated at the borders and averaged over the pixels
      they actually cover, so a constant field stays constant.
================================================================================
"""

import numpy as np
from numba import njit

from .errors import InvalidConfiguration


@njit
def _blur_rows(src, radius):
    height, width = src.shape
    out = np.empty((height, width))
    for y in range(height):
        total = 0.0
        count = 0
        # Prime the window with columns 0..radius.
        for x in range(min(radius, width - 1) + 1):
            total += src[y, x]
            count += 1
        for x in range(width):
            out[y, x] = total / count
            leaving = x - radius
            entering = x + radius + 1
            if leaving >= 0:
                total -= src[y, leaving]
                count -= 1
            if entering < width:
                total += src[y, entering]
                count += 1
    return out


@njit
def _blur_columns(src, radius):
    height, width = src.shape
    out = np.empty((height, width))
    for x in range(width):
        total = 0.0
        count = 0
        for y in range(min(radius, height - 1) + 1):
            total += src[y, x]
            count += 1
        for y in range(height):
            out[y, x] = total / count
            leaving = y - radius
            entering = y + radius + 1
            if leaving >= 0:
                total -= src[leaving, x]
                count -= 1
            if entering < height:
                total += src[entering, x]
                count += 1
    return out


def box_blur(src: np.ndarray, radius: int, iterations: int = 1) -> np.ndarray:
    """Separable box blur of a scalar grid, repeated `iterations` times."""
    out = np.ascontiguousarray(src, dtype=np.float64)
    for _ in range(iterations):
        out = _blur_columns(_blur_rows(out, radius), radius)
    return out


def adaptive_smooth(
    vectors: np.ndarray, radius: int, iterations: int, base_blend: float,
    edge_adaptive: bool = True, edge_boost: float = 0.5, edge_sensitivity: float = 1.0
) -> np.ndarray:
    """Blends each vector toward its box-blurred neighbourhood."""
    if radius < 1:
        raise InvalidConfiguration(f"smooth radius must be at least 1, got {radius}")
    if iterations < 1:
        raise InvalidConfiguration(f"smooth iterations must be at least 1, got {iterations}")
    if edge_sensitivity <= 0:
        raise InvalidConfiguration(f"edge sensitivity must be positive, got {edge_sensitivity}")

    original = np.asarray(vectors, dtype=np.float64)
    blurred = np.stack(
        [box_blur(original[..., c], radius, iterations) for c in range(2)], axis=-1
    )

    blend = np.full(original.shape[:2], float(base_blend))
    if edge_adaptive:
        edge = np.clip(np.linalg.norm(original - blurred, axis=-1) / edge_sensitivity, 0.0, 1.0)
        blend = blend + edge_boost * edge
    blend = np.clip(blend, 0.0, 1.0)[..., np.newaxis]

    return original + (blurred - original) * blend
