# climate_generator/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides seeded fractal Perlin noise for the climate layers that
need a stochastic perturbation (humidity variation, wind direction jitter and
calm zones). It is designed to be a pure, stateless utility.

Data Contract:
---------------
- Inputs:
    - seed: Integer seed. Identical seeds give bit-identical maps.
    - height, width: Output grid shape.
    - frequency: Number of base features across the map.
    - octaves, persistence, lacunarity: Standard fractal noise parameters.
- Outputs:
    - A float64 NumPy array of noise values in [0, 1].
- Side Effects: None.
- Invariants: Octave amplitudes are normalized, so adding octaves never
  pushes values outside [0, 1].
================================================================================
"""

import math

import numpy as np
from numba import njit

from .errors import InvalidConfiguration

# Pre-defined gradient vectors for performance.
_GRADIENT_VECTORS = np.array([[0, 1], [0, -1], [1, 0], [-1, 0]])


@njit
def _lerp(a, b, x):
    "Linear interpolation."
    return a + x * (b - a)


@njit
def _fade(t):
    "6t^5 - 15t^4 + 10t^3"
    return t * t * t * (t * (t * 6 - 15) + 10)


@njit
def _gradient(h, x, y):
    """Calculates the dot product between a gradient vector and coordinates."""
    g = _GRADIENT_VECTORS[h % 4]
    # Use explicit indexing for Numba compatibility
    return g[0] * x + g[1] * y


@njit
def perlin_2d(p, x, y):
    """Single octave of 2D Perlin noise at one point, roughly in [-1, 1]."""
    xi = int(math.floor(x))
    yi = int(math.floor(y))
    xf = x - xi
    yf = y - yi

    u = _fade(xf)
    v = _fade(yf)

    px0 = xi % 256
    px1 = (px0 + 1) % 256
    py0 = yi % 256
    py1 = (py0 + 1) % 256

    # Numba requires scalar indexing
    g00 = _gradient(p[p[px0] + py0], xf, yf)
    g01 = _gradient(p[p[px0] + py1], xf, yf - 1)
    g10 = _gradient(p[p[px1] + py0], xf - 1, yf)
    g11 = _gradient(p[p[px1] + py1], xf - 1, yf - 1)

    return _lerp(_lerp(g00, g10, u), _lerp(g01, g11, u), v)


@njit
def fractal_noise_2d(p, x, y, octaves, persistence, lacunarity):
    """Amplitude-normalized sum of Perlin octaves at one point."""
    total = 0.0
    amplitude = 1.0
    frequency = 1.0
    amplitude_sum = 0.0
    for _ in range(octaves):
        total += perlin_2d(p, x * frequency, y * frequency) * amplitude
        amplitude_sum += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    return total / amplitude_sum


@njit
def _noise_grid(p, height, width, frequency, offset_x, offset_y, octaves, persistence, lacunarity):
    out = np.empty((height, width))
    for i in range(height):
        v = i / (height - 1) if height > 1 else 0.0
        for j in range(width):
            u = j / (width - 1) if width > 1 else 0.0
            n = fractal_noise_2d(
                p, u * frequency + offset_x, v * frequency + offset_y,
                octaves, persistence, lacunarity
            )
            # Map [-1, 1] to [0, 1].
            n = (n + 1.0) * 0.5
            if n < 0.0:
                n = 0.0
            elif n > 1.0:
                n = 1.0
            out[i, j] = n
    return out


def make_permutation_table(seed: int) -> np.ndarray:
    """Builds the doubled 512-entry permutation table for a seed."""
    p = np.arange(256, dtype=int)
    rng = np.random.default_rng(seed % (2 ** 32))
    rng.shuffle(p)
    return np.stack([p, p]).flatten()


def validate_noise_settings(frequency: float, octaves: int, persistence: float, lacunarity: float):
    if frequency <= 0:
        raise InvalidConfiguration(f"noise frequency must be positive, got {frequency}")
    if octaves < 1:
        raise InvalidConfiguration(f"noise octaves must be at least 1, got {octaves}")
    if not 0 < persistence < 1:
        raise InvalidConfiguration(f"noise persistence must be in (0, 1), got {persistence}")
    if lacunarity <= 1:
        raise InvalidConfiguration(f"noise lacunarity must be greater than 1, got {lacunarity}")


def generate_noise_map(
    height: int, width: int, seed: int,
    frequency: float, octaves: int, persistence: float, lacunarity: float,
    offset_range: int = 100000
) -> np.ndarray:
    """
    Generates a (height, width) fractal noise map in [0, 1].

    The seed drives both the permutation table and a lattice offset, so two
    seeds never share the same noise pattern shifted by a few pixels.
    """
    validate_noise_settings(frequency, octaves, persistence, lacunarity)
    p = make_permutation_table(seed)
    rng = np.random.default_rng((seed + 1) % (2 ** 32))
    offset_x, offset_y = rng.integers(-offset_range, offset_range, size=2)
    return _noise_grid(
        p, height, width, float(frequency), float(offset_x), float(offset_y),
        int(octaves), float(persistence), float(lacunarity)
    )
