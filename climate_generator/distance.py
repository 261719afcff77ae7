# climate_generator/distance.py

"""
================================================================================
COASTAL DISTANCE FIELDS
================================================================================
Distance fields used to fade ocean influence inland and gyre influence
offshore.

Data Contract:
---------------
- Inputs:
    - water: Boolean (H, W) mask, True below sea level.
- Outputs:
    - chamfer_distance(): int64 distance-to-water in pixels. 0 on water,
      COAST_DISTANCE_SENTINEL where no water was reached.
    - shore_distance(): float64 4-neighbour hop count from the nearest coastal
      water pixel, travelling through water only. inf on land and on water
      that never touches a coast.
    - coastal_factor(): 1 on water fading linearly to 0 at `coast_range`.
- Side Effects: None.
- Invariants: Distances never increase when extra water is added.
================================================================================
"""

import numpy as np
from numba import njit
from scipy.ndimage import binary_dilation, binary_erosion

from . import config as DEFAULTS

# 8-neighbourhood used for "touches" tests.
_NEIGHBOURHOOD_8 = np.ones((3, 3), dtype=bool)


@njit
def _chamfer(water, sweeps, sentinel):
    height, width = water.shape
    dist = np.empty((height, width), dtype=np.int64)
    for y in range(height):
        for x in range(width):
            dist[y, x] = 0 if water[y, x] else sentinel

    for _ in range(sweeps):
        # Forward pass: rows already visited are below, columns to the left.
        for y in range(height):
            for x in range(width):
                d = dist[y, x]
                if d == 0:
                    continue
                if y > 0:
                    d = min(d, dist[y - 1, x] + 1)
                    if x > 0:
                        d = min(d, dist[y - 1, x - 1] + 1)
                    if x < width - 1:
                        d = min(d, dist[y - 1, x + 1] + 1)
                if x > 0:
                    d = min(d, dist[y, x - 1] + 1)
                dist[y, x] = d

        # Backward pass.
        for y in range(height - 1, -1, -1):
            for x in range(width - 1, -1, -1):
                d = dist[y, x]
                if d == 0:
                    continue
                if y < height - 1:
                    d = min(d, dist[y + 1, x] + 1)
                    if x < width - 1:
                        d = min(d, dist[y + 1, x + 1] + 1)
                    if x > 0:
                        d = min(d, dist[y + 1, x - 1] + 1)
                if x < width - 1:
                    d = min(d, dist[y, x + 1] + 1)
                dist[y, x] = d
    return dist


def chamfer_distance(water: np.ndarray, sweeps: int = DEFAULTS.COAST_DISTANCE_SWEEPS,
                     sentinel: int = DEFAULTS.COAST_DISTANCE_SENTINEL) -> np.ndarray:
    """Approximate distance to the nearest water pixel, unit cost per 8-neighbour step."""
    return _chamfer(np.ascontiguousarray(water, dtype=np.bool_), int(sweeps), int(sentinel))


def coastal_factor(distance: np.ndarray, coast_range: float) -> np.ndarray:
    """1 - clamp01(distance / max(1, coast_range))"""
    return 1.0 - np.clip(distance / max(1.0, float(coast_range)), 0.0, 1.0)


def coastal_water_mask(water: np.ndarray) -> np.ndarray:
    """Water pixels with at least one land pixel among their 8 neighbours."""
    # Outside the grid counts as water, so map edges are not coasts.
    interior = binary_erosion(water, structure=_NEIGHBOURHOOD_8, border_value=1)
    return water & ~interior


def shoreline_land_mask(water: np.ndarray) -> np.ndarray:
    """Land pixels with at least one water pixel among their 8 neighbours."""
    return ~water & binary_dilation(water, structure=_NEIGHBOURHOOD_8)


@njit
def _shore_bfs(water, coastal):
    height, width = water.shape
    dist = np.full((height, width), np.inf)
    queue_y = np.empty(height * width, dtype=np.int64)
    queue_x = np.empty(height * width, dtype=np.int64)
    head = 0
    tail = 0
    for y in range(height):
        for x in range(width):
            if coastal[y, x]:
                dist[y, x] = 0.0
                queue_y[tail] = y
                queue_x[tail] = x
                tail += 1

    while head < tail:
        y = queue_y[head]
        x = queue_x[head]
        head += 1
        nd = dist[y, x] + 1.0
        for k in range(4):
            if k == 0:
                ny, nx = y, x + 1
            elif k == 1:
                ny, nx = y, x - 1
            elif k == 2:
                ny, nx = y + 1, x
            else:
                ny, nx = y - 1, x
            if nx < 0 or ny < 0 or nx >= width or ny >= height:
                continue
            if not water[ny, nx] or dist[ny, nx] <= nd:
                continue
            dist[ny, nx] = nd
            queue_y[tail] = ny
            queue_x[tail] = nx
            tail += 1
    return dist


def shore_distance(water: np.ndarray) -> np.ndarray:
    """Hop distance through water from the nearest water pixel touching land."""
    water = np.ascontiguousarray(water, dtype=np.bool_)
    return _shore_bfs(water, coastal_water_mask(water))
