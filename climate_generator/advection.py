# climate_generator/advection.py

"""
================================================================================
WIND ADVECTION
================================================================================
Shifts a scalar field downwind: every pixel looks back along the local wind,
samples the field there and blends that upwind value into its own.

Data Contract:
---------------
- Inputs:
    - field: (H, W) scalar grid in [0, 1].
    - wind: (h, w, 2) vector grid, any resolution.
    - shift_px, speed_power, blend, offset, floor, ceiling: Advection settings.
- Outputs:
    - A new (height, width) grid in [floor, ceiling] (defaults to the field's
      own resolution).
- Side Effects: None.
- Invariants:
    - Zero wind with zero offset leaves an in-range field unchanged.
    - Upwind sample points are clamped to the grid.
================================================================================
"""

import math

import numpy as np
from numba import njit

from .errors import InvalidConfiguration
from .sampling import resample_scalar, resample_vector, sample_bilinear_px


@njit
def _advect(field, wind, shift_px, speed_power, blend, min_speed):
    height, width = field.shape
    out = np.empty((height, width))
    for y in range(height):
        for x in range(width):
            wx = wind[y, x, 0]
            wy = wind[y, x, 1]
            speed = math.sqrt(wx * wx + wy * wy)
            here = field[y, x]
            if speed <= min_speed:
                upwind = here
            else:
                shift = shift_px * speed ** speed_power
                ux = x - wx / speed * shift
                uy = y - wy / speed * shift
                upwind = sample_bilinear_px(field, ux, uy)
            out[y, x] = here + (upwind - here) * blend
    return out


def advect_scalar(
    field: np.ndarray, wind: np.ndarray, shift_px: float, speed_power: float,
    blend: float, offset: float = 0.0, floor: float = 0.0, ceiling: float = 1.0,
    resolution: tuple = None, min_speed: float = 1e-6
) -> np.ndarray:
    """
    Advects `field` along `wind`. Both inputs are bilinearly resampled onto
    `resolution` (height, width) first; by default the field's own grid.
    """
    if floor > ceiling:
        raise InvalidConfiguration(f"advection floor {floor} is above ceiling {ceiling}")
    if shift_px < 0:
        raise InvalidConfiguration(f"advection shift must be non-negative, got {shift_px}")
    height, width = resolution if resolution is not None else field.shape

    local = resample_scalar(field, height, width)
    vectors = resample_vector(wind, height, width)
    mixed = _advect(local, vectors, float(shift_px), float(speed_power),
                    float(blend), float(min_speed)) + offset
    return np.clip(np.clip(mixed, 0.0, 1.0), floor, ceiling)
