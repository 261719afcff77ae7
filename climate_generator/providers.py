# climate_generator/providers.py

"""
================================================================================
TERRAIN AND SEED PROVIDERS
================================================================================
The climate stages never build terrain themselves. They consume an elevation
source and a seed source through the small interfaces defined here. The
classes below are in-memory implementations that any terrain system can feed.

Data Contract:
---------------
- HeightmapElevation:
    - Input: A 2D array of normalized elevations in [0, 1], row 0 = south.
    - sample(u, v) -> float, grid(height, width) -> (height, width) array.
- SeedSource:
    - Input: An integer seed. 0 means "draw a fresh random seed every call".
    - resolve() -> int, never 0.
- Side Effects: SeedSource logs the seed it drew when the sentinel is used.
================================================================================
"""

import logging

import numpy as np

from . import config as DEFAULTS
from .errors import InvalidConfiguration
from .sampling import resample_scalar, sample_bilinear

# Largest seed drawn for the random sentinel.
_MAX_RANDOM_SEED = 2 ** 31 - 1


class HeightmapElevation:
    """Elevation provider backed by a normalized height array."""

    def __init__(self, heights: np.ndarray):
        heights = np.array(heights, dtype=np.float64)
        if heights.ndim != 2 or heights.size == 0:
            raise InvalidConfiguration(f"heightmap must be a non-empty 2D array, got shape {heights.shape}")
        heights.setflags(write=False)
        self._heights = heights

    @property
    def shape(self) -> tuple:
        return self._heights.shape

    @property
    def heights(self) -> np.ndarray:
        return self._heights

    def sample(self, u: float, v: float) -> float:
        return float(sample_bilinear(self._heights, u, v))

    def grid(self, height: int, width: int) -> np.ndarray:
        """Elevation resampled onto a (height, width) grid."""
        return resample_scalar(self._heights, height, width)


class SeedSource:
    """Hands out the world seed, honouring the random-seed sentinel."""

    def __init__(self, seed: int = DEFAULTS.DEFAULT_SEED, logger: logging.Logger = None):
        self.seed = int(seed)
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self) -> int:
        if self.seed != 0:
            return self.seed
        drawn = int(np.random.default_rng().integers(1, _MAX_RANDOM_SEED))
        self.logger.info(f"Seed 0 requested, using random seed {drawn}")
        return drawn
