"""
Shared fixtures for the climate generator tests.
"""

import logging
import os
import sys

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from climate_generator.providers import HeightmapElevation, SeedSource
from climate_generator.tectonics import PlateClassification, PlateType, voronoi_partition

GRID = 32


@pytest.fixture
def logger():
    return logging.getLogger("climate_generator.tests")


@pytest.fixture
def small_config():
    """Settings scaled down for 32px test worlds."""
    return {
        'seed': 2024,
        'map_resolution': GRID,
        'wind_resolution': GRID,
        'coast_range_px': 8,
        'coastal_influence_range_px': 8,
        'min_basin_pixel_count': 10,
        'big_basin_pixel_count': 200,
        'min_shared_border_for_merge': 4,
        'max_inland_range_px': 16,
        'smooth_radius': 2,
        'temperature_advection_shift_px': 2.0,
        'humidity_advection_shift_px': 2.0,
    }


@pytest.fixture
def island_heights():
    """A single round island in the middle of an ocean, peaking above the snow line."""
    yy, xx = np.mgrid[0:GRID, 0:GRID]
    r = np.hypot(xx - (GRID - 1) / 2, yy - (GRID - 1) / 2) / (GRID / 2)
    return np.clip(1.0 - r * 1.4, 0.0, 1.0) * 0.95


@pytest.fixture
def world(island_heights, logger):
    """Providers for the island world: elevation, regions, plates, seed."""
    regions = voronoi_partition(GRID, GRID, 5, seed=7)
    return {
        'elevation': HeightmapElevation(island_heights),
        'regions': regions,
        'plates': PlateClassification(default=PlateType.OCEANIC),
        'seed_source': SeedSource(2024, logger),
    }
