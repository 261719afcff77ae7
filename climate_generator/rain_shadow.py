# climate_generator/rain_shadow.py

"""
================================================================================
RAIN SHADOW MARCHING
================================================================================
Simulates a parcel of air crossing the map along one prevailing direction.
The parcel recharges over ocean, rains out on the windward side of rising
terrain and carries a moisture deficit into the lee, so humidity drops behind
mountain ranges.

Data Contract:
---------------
- Inputs:
    - humidity, elevation: (H, W) float arrays on the same grid.
    - water: Boolean (H, W) mask.
    - direction: A WindDirection. North is the high-row edge.
- Outputs:
    - New humidity clamped to [floor, ceiling].
    - Air moisture carried by the parcel after each pixel.
- Side Effects: None.
- Invariants:
    - Lines (rows or columns) are independent of each other.
    - Only rising terrain (positive elevation delta along the march) causes
      rain-out; descending terrain never adds moisture.
================================================================================
"""

from enum import Enum

import numpy as np
from numba import njit

from .errors import InvalidConfiguration, ResolutionMismatch


class WindDirection(str, Enum):
    WEST_TO_EAST = "west_to_east"
    EAST_TO_WEST = "east_to_west"
    SOUTH_TO_NORTH = "south_to_north"
    NORTH_TO_SOUTH = "north_to_south"


def _to_marching(a: np.ndarray, direction: WindDirection) -> np.ndarray:
    # Reorient so every line is a row marched by increasing column.
    if direction == WindDirection.WEST_TO_EAST:
        view = a
    elif direction == WindDirection.EAST_TO_WEST:
        view = a[:, ::-1]
    elif direction == WindDirection.SOUTH_TO_NORTH:
        view = a.T
    else:
        view = a.T[:, ::-1]
    return np.ascontiguousarray(view)


def _from_marching(a: np.ndarray, direction: WindDirection) -> np.ndarray:
    if direction == WindDirection.WEST_TO_EAST:
        view = a
    elif direction == WindDirection.EAST_TO_WEST:
        view = a[:, ::-1]
    elif direction == WindDirection.SOUTH_TO_NORTH:
        view = a.T
    else:
        view = a[:, ::-1].T
    return np.ascontiguousarray(view)


@njit
def _march(humidity, elevation, water, start_air, ocean_recharge, ridge_sensitivity,
           windward_boost, leeward_loss, persistence, min_air):
    lines, steps = humidity.shape
    out = np.empty((lines, steps))
    air_trace = np.empty((lines, steps))
    for i in range(lines):
        air = start_air
        prev_elevation = elevation[i, 0]
        for j in range(steps):
            e = elevation[i, j]
            h = humidity[i, j]

            # 1. Ocean recharges the parcel.
            if water[i, j]:
                air = air + (1.0 - air) * ocean_recharge

            # 2. Rising terrain rains out on the windward side.
            ridge = max(0.0, e - prev_elevation) * ridge_sensitivity
            if ridge > 0.0:
                h += windward_boost * ridge
                air -= leeward_loss * ridge
                if air < min_air:
                    air = min_air

            # 3. A dry parcel keeps the ground downwind dry.
            h *= 1.0 + (air - 1.0) * persistence

            out[i, j] = h
            air_trace[i, j] = air
            prev_elevation = e
    return out, air_trace


def march_rain_shadow(
    humidity: np.ndarray, elevation: np.ndarray, water: np.ndarray,
    direction: WindDirection = WindDirection.WEST_TO_EAST,
    ocean_recharge: float = 0.5, starting_air_moisture: float = 1.0,
    ridge_sensitivity: float = 1.0, windward_rain_boost: float = 0.4,
    leeward_dry_loss: float = 0.6, shadow_persistence: float = 0.6,
    min_air_moisture: float = 0.05, floor: float = 0.02, ceiling: float = 1.0
) -> tuple[np.ndarray, np.ndarray]:
    """Returns (humidity, air_moisture) after marching every line."""
    direction = WindDirection(direction)
    if floor > ceiling:
        raise InvalidConfiguration(f"humidity floor {floor} is above ceiling {ceiling}")
    for name, other in (("elevation", elevation), ("water", water)):
        if other.shape != humidity.shape:
            raise ResolutionMismatch(humidity.shape, other.shape, name)

    out, air = _march(
        _to_marching(np.asarray(humidity, dtype=np.float64), direction),
        _to_marching(np.asarray(elevation, dtype=np.float64), direction),
        _to_marching(np.asarray(water, dtype=np.bool_), direction),
        float(starting_air_moisture), float(ocean_recharge), float(ridge_sensitivity),
        float(windward_rain_boost), float(leeward_dry_loss), float(shadow_persistence),
        float(min_air_moisture)
    )
    out = np.clip(_from_marching(out, direction), floor, ceiling)
    return out, _from_marching(air, direction)
