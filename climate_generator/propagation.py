# climate_generator/propagation.py

"""
================================================================================
INLAND WIND PROPAGATION
================================================================================
Carries the coastal wind inland. Every land pixel touching water becomes a
source that injects the strongest neighbouring water wind; a breadth-first
flood then spreads it across land, decaying each step and weakening behind
mountains. Every pixel accumulates all contributions that improve on the
strongest one it has already seen, and the final inland wind is their
strength-weighted average.

Data Contract:
---------------
- Inputs:
    - wind: (H, W, 2) wind vectors (usually after coastal gyres).
    - water: Boolean (H, W) mask.
    - elevation: (H, W) normalized elevation.
    - Propagation settings (see propagate_inland).
- Outputs:
    - PropagationResult with the accumulated vector sum, weight sum and the
      number of queue nodes processed.
- Side Effects: None.
- Invariants:
    - Strength strictly decreases along every path (decay > 0 or a block),
      and a pixel only re-enters the queue with a strictly larger strength,
      so the flood always terminates.
    - Water pixels never receive contributions.
================================================================================
"""

import math
from dataclasses import dataclass

import numpy as np
from numba import njit

from .distance import shoreline_land_mask
from .errors import InvalidConfiguration

# Queue record layout: y, x, hop distance, strength, wind x, wind y.
_QUEUE_FIELDS = 6

# Neighbour order as (dx, dy). Order matters for tie-breaking.
_STEPS = np.array([[1, 0], [-1, 0], [0, 1], [0, -1]], dtype=np.int64)


@dataclass
class PropagationResult:
    accum: np.ndarray
    weight: np.ndarray
    processed: int

    def average(self) -> np.ndarray:
        """Strength-weighted mean vector; zero where nothing arrived."""
        out = np.zeros_like(self.accum)
        reached = self.weight > 0
        out[reached] = self.accum[reached] / self.weight[reached][:, np.newaxis]
        return out


@njit
def _grow(queue):
    grown = np.empty((queue.shape[0] * 2, queue.shape[1]))
    grown[:queue.shape[0]] = queue
    return grown


@njit
def _propagate(wind, water, elevation, sources, inject_strength, max_range,
               mountain_height, block_strength, decay, epsilon):
    height, width = water.shape
    accum = np.zeros((height, width, 2))
    weight = np.zeros((height, width))
    best = np.zeros((height, width))
    queue = np.empty((max(16, height * width), _QUEUE_FIELDS))
    head = 0
    tail = 0

    # 1. Seed every shoreline land pixel with its strongest water neighbour.
    for y in range(height):
        for x in range(width):
            if not sources[y, x]:
                continue
            best_mag = -1.0
            best_x = 0.0
            best_y = 0.0
            for dy in range(-1, 2):
                for dx in range(-1, 2):
                    if dx == 0 and dy == 0:
                        continue
                    ny = y + dy
                    nx = x + dx
                    if nx < 0 or ny < 0 or nx >= width or ny >= height:
                        continue
                    if not water[ny, nx]:
                        continue
                    mag = math.sqrt(wind[ny, nx, 0] ** 2 + wind[ny, nx, 1] ** 2)
                    # Strict comparison keeps the first neighbour on ties.
                    if mag > best_mag:
                        best_mag = mag
                        best_x = wind[ny, nx, 0]
                        best_y = wind[ny, nx, 1]
            if best_mag < 0.0:
                continue
            ix = best_x * inject_strength
            iy = best_y * inject_strength
            strength = math.sqrt(ix * ix + iy * iy)
            if strength <= 0.0:
                continue

            accum[y, x, 0] += ix
            accum[y, x, 1] += iy
            weight[y, x] += strength
            best[y, x] = strength

            if tail == queue.shape[0]:
                queue = _grow(queue)
            queue[tail, 0] = y
            queue[tail, 1] = x
            queue[tail, 2] = 0
            queue[tail, 3] = strength
            queue[tail, 4] = ix
            queue[tail, 5] = iy
            tail += 1

    # 2. Breadth-first flood over land.
    processed = 0
    while head < tail:
        y = int(queue[head, 0])
        x = int(queue[head, 1])
        dist = int(queue[head, 2])
        strength = queue[head, 3]
        wx = queue[head, 4]
        wy = queue[head, 5]
        head += 1
        processed += 1

        if dist >= max_range:
            continue
        mag = math.sqrt(wx * wx + wy * wy)

        for k in range(_STEPS.shape[0]):
            nx = x + _STEPS[k, 0]
            ny = y + _STEPS[k, 1]
            if nx < 0 or ny < 0 or nx >= width or ny >= height:
                continue
            if water[ny, nx]:
                continue

            block = 1.0
            if elevation[ny, nx] >= mountain_height:
                block = max(0.0, 1.0 - block_strength)
            if block <= 0.0:
                continue

            next_strength = strength * (1.0 - decay) * block
            if next_strength <= epsilon or next_strength <= best[ny, nx]:
                continue
            best[ny, nx] = next_strength

            nvx = 0.0
            nvy = 0.0
            if mag > 0.0:
                nvx = wx / mag * next_strength
                nvy = wy / mag * next_strength
            accum[ny, nx, 0] += nvx
            accum[ny, nx, 1] += nvy
            weight[ny, nx] += next_strength

            if tail == queue.shape[0]:
                queue = _grow(queue)
            queue[tail, 0] = ny
            queue[tail, 1] = nx
            queue[tail, 2] = dist + 1
            queue[tail, 3] = next_strength
            queue[tail, 4] = nvx
            queue[tail, 5] = nvy
            tail += 1

    return accum, weight, processed


def propagate_inland(
    wind: np.ndarray, water: np.ndarray, elevation: np.ndarray,
    inject_strength: float, max_range: int, mountain_height: float,
    block_strength: float, decay: float, epsilon: float
) -> PropagationResult:
    """
    Floods coastal wind across land.

    Args:
        inject_strength: Multiplier on the water wind picked up at the shore.
        max_range: Hop distance at which a branch stops spreading.
        mountain_height: Elevation at or above which a target pixel blocks.
        block_strength: 0 lets wind pass mountains freely, 1 stops it.
        decay: Fraction of strength lost per hop, in [0, 1).
        epsilon: Strength at or below which a branch is dropped.
    """
    if max_range < 0:
        raise InvalidConfiguration(f"max_range must be non-negative, got {max_range}")
    if not 0.0 <= decay < 1.0:
        raise InvalidConfiguration(f"decay must be in [0, 1), got {decay}")
    if not 0.0 <= block_strength <= 1.0:
        raise InvalidConfiguration(f"block_strength must be in [0, 1], got {block_strength}")
    if inject_strength < 0.0:
        raise InvalidConfiguration(f"inject_strength must be non-negative, got {inject_strength}")
    if epsilon < 0.0:
        raise InvalidConfiguration(f"epsilon must be non-negative, got {epsilon}")

    water = np.ascontiguousarray(water, dtype=np.bool_)
    accum, weight, processed = _propagate(
        np.ascontiguousarray(wind, dtype=np.float64), water,
        np.ascontiguousarray(elevation, dtype=np.float64),
        shoreline_land_mask(water), float(inject_strength), int(max_range),
        float(mountain_height), float(block_strength), float(decay), float(epsilon)
    )
    return PropagationResult(accum, weight, int(processed))


def blend_inland(base_wind: np.ndarray, water: np.ndarray, result: PropagationResult,
                 blend: float) -> np.ndarray:
    """Pulls reached land pixels toward the propagated average; water keeps its wind."""
    t = min(max(blend, 0.0), 1.0)
    out = np.array(base_wind, dtype=np.float64)
    target = result.average()
    reached = (result.weight > 0) & ~water
    out[reached] = out[reached] + (target[reached] - out[reached]) * t
    return out
