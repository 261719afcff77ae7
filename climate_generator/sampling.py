# climate_generator/sampling.py

"""
================================================================================
GRID SAMPLING PRIMITIVES
================================================================================
Bilinear sampling and resampling of scalar and vector fields. Every stage reads
its upstream data through these functions, so fields generated at different
resolutions line up without seams.

Data Contract:
---------------
- Inputs:
    - data: A 2D (H, W) scalar array or a 3D (H, W, 2) vector array, indexed
      [row, column] with row 0 at the south edge.
    - u, v: Normalized coordinates. They are clamped to [0, 1] and scaled by
      (dimension - 1), so u = 1 addresses the last column exactly.
    - x, y: Pixel coordinates, clamped to the grid.
- Outputs:
    - Interpolated float values, or new float64 arrays for resampling.
- Side Effects: None. Inputs are never written to.
- Invariants: Resampling to the source shape returns an exact copy.
================================================================================
"""

import math

import numpy as np
from numba import njit


@njit
def lerp(a, b, t):
    "Linear interpolation."
    return a + (b - a) * t


@njit
def clamp01(value):
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


@njit
def smoothstep(t):
    t = clamp01(t)
    return t * t * (3.0 - 2.0 * t)


@njit
def axis_coordinate(index, size):
    """Normalized coordinate of a pixel centre along an axis of `size` pixels."""
    if size <= 1:
        return 0.0
    return index / (size - 1)


@njit
def _footprint(x, size):
    # Clamp to the grid and split into (lower index, upper index, fraction).
    fx = float(x)
    if fx < 0.0:
        fx = 0.0
    limit = float(size - 1)
    if fx > limit:
        fx = limit
    i0 = int(math.floor(fx))
    i1 = min(i0 + 1, size - 1)
    return i0, i1, fx - i0


@njit
def sample_bilinear_px(data, x, y):
    """Bilinear sample of a scalar grid at pixel coordinates."""
    x0, x1, tx = _footprint(x, data.shape[1])
    y0, y1, ty = _footprint(y, data.shape[0])
    bottom = lerp(data[y0, x0], data[y0, x1], tx)
    top = lerp(data[y1, x0], data[y1, x1], tx)
    return lerp(bottom, top, ty)


@njit
def sample_bilinear(data, u, v):
    """Bilinear sample of a scalar grid at normalized coordinates."""
    x = clamp01(u) * (data.shape[1] - 1)
    y = clamp01(v) * (data.shape[0] - 1)
    return sample_bilinear_px(data, x, y)


@njit
def sample_bilinear_vector_px(data, x, y):
    """Bilinear sample of a (H, W, 2) vector grid at pixel coordinates."""
    x0, x1, tx = _footprint(x, data.shape[1])
    y0, y1, ty = _footprint(y, data.shape[0])
    bottom_x = lerp(data[y0, x0, 0], data[y0, x1, 0], tx)
    top_x = lerp(data[y1, x0, 0], data[y1, x1, 0], tx)
    bottom_y = lerp(data[y0, x0, 1], data[y0, x1, 1], tx)
    top_y = lerp(data[y1, x0, 1], data[y1, x1, 1], tx)
    return lerp(bottom_x, top_x, ty), lerp(bottom_y, top_y, ty)


@njit
def sample_bilinear_vector(data, u, v):
    """Bilinear sample of a vector grid at normalized coordinates."""
    x = clamp01(u) * (data.shape[1] - 1)
    y = clamp01(v) * (data.shape[0] - 1)
    return sample_bilinear_vector_px(data, x, y)


@njit
def _resample_scalar(data, height, width):
    out = np.empty((height, width))
    src_h, src_w = data.shape
    for py in range(height):
        sy = axis_coordinate(py, height) * (src_h - 1)
        for px in range(width):
            sx = axis_coordinate(px, width) * (src_w - 1)
            out[py, px] = sample_bilinear_px(data, sx, sy)
    return out


@njit
def _resample_vector(data, height, width):
    out = np.empty((height, width, 2))
    src_h = data.shape[0]
    src_w = data.shape[1]
    for py in range(height):
        sy = axis_coordinate(py, height) * (src_h - 1)
        for px in range(width):
            sx = axis_coordinate(px, width) * (src_w - 1)
            vx, vy = sample_bilinear_vector_px(data, sx, sy)
            out[py, px, 0] = vx
            out[py, px, 1] = vy
    return out


def resample_scalar(data: np.ndarray, height: int, width: int) -> np.ndarray:
    """Returns a new (height, width) float64 grid bilinearly sampled from `data`."""
    data = np.ascontiguousarray(data, dtype=np.float64)
    if data.shape == (height, width):
        return data.copy()
    return _resample_scalar(data, height, width)


def resample_vector(data: np.ndarray, height: int, width: int) -> np.ndarray:
    """Returns a new (height, width, 2) float64 grid bilinearly sampled from `data`."""
    data = np.ascontiguousarray(data, dtype=np.float64)
    if data.shape[:2] == (height, width):
        return data.copy()
    return _resample_vector(data, height, width)


def latitude_grid(height: int, width: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Returns (v, latitude_deg) grids of shape (height, width). v runs from 0 at
    the south pole (row 0) to 1 at the north pole.
    """
    if height > 1:
        v = np.arange(height, dtype=np.float64) / (height - 1)
    else:
        v = np.zeros(1)
    v_grid = np.repeat(v[:, np.newaxis], width, axis=1)
    return v_grid, (v_grid - 0.5) * 180.0
