# climate_generator/tectonics.py

"""
================================================================================
REGION PARTITION & PLATE CLASSIFICATION
================================================================================
The coastal gyre refiner groups ocean pixels by the tectonic region they
belong to. This module defines the two interfaces it consumes (a per-pixel
region partition and a region -> plate type lookup) and a Voronoi-based
reference partition for callers that do not bring their own.

Data Contract:
---------------
- Inputs:
    - region_map: Integer array (H, W) of region ids, row 0 = south.
    - plate_types: Mapping of region id -> PlateType.
- Outputs:
    - RegionPartition / PlateClassification objects.
    - voronoi_partition(): A RegionPartition built from seeded Voronoi cells.
- Side Effects: None.
- Invariants: Regions missing from a classification are continental. Only
  oceanic regions take part in ocean basins; boundary regions do not.
================================================================================
"""

from enum import Enum

import numpy as np
from scipy.spatial import cKDTree

from .errors import InvalidConfiguration


class PlateType(str, Enum):
    OCEANIC = "oceanic"
    CONTINENTAL = "continental"
    BOUNDARY = "boundary"


class RegionPartition:
    """A fixed-resolution map assigning every pixel to a region id."""

    def __init__(self, region_map: np.ndarray):
        region_map = np.array(region_map, dtype=np.int64)
        if region_map.ndim != 2 or region_map.size == 0:
            raise InvalidConfiguration(f"region map must be a non-empty 2D array, got shape {region_map.shape}")
        region_map.setflags(write=False)
        self._region_map = region_map

    @property
    def shape(self) -> tuple:
        return self._region_map.shape

    @property
    def region_map(self) -> np.ndarray:
        return self._region_map

    def region_id_at(self, x: int, y: int) -> int:
        return int(self._region_map[y, x])

    def all_region_ids(self) -> list:
        return [int(r) for r in np.unique(self._region_map)]


class PlateClassification:
    """Looks up the plate type of a region, defaulting to continental."""

    def __init__(self, plate_types: dict = None, default: PlateType = PlateType.CONTINENTAL):
        self._plate_types = {int(k): PlateType(v) for k, v in (plate_types or {}).items()}
        self.default = PlateType(default)

    def classify(self, region_id: int) -> PlateType:
        return self._plate_types.get(int(region_id), self.default)

    def is_oceanic(self, region_id: int) -> bool:
        return self.classify(region_id) == PlateType.OCEANIC


def generate_region_points(height: int, width: int, num_regions: int, seed: int) -> np.ndarray:
    """Generates the centre points for the Voronoi regions deterministically."""
    rng = np.random.default_rng(seed)
    points_x = rng.uniform(0, width, num_regions)
    points_y = rng.uniform(0, height, num_regions)
    return np.column_stack((points_x, points_y))


def voronoi_partition(height: int, width: int, num_regions: int, seed: int) -> RegionPartition:
    """Assigns every pixel to its nearest seeded region centre."""
    if num_regions < 1:
        raise InvalidConfiguration(f"num_regions must be at least 1, got {num_regions}")
    tree = cKDTree(generate_region_points(height, width, num_regions, seed))

    yy, xx = np.mgrid[0:height, 0:width]
    query_points = np.column_stack((xx.ravel(), yy.ravel()))
    _, indices = tree.query(query_points, k=1)
    return RegionPartition(indices.reshape((height, width)))


def random_plate_types(region_ids, oceanic_fraction: float, seed: int) -> PlateClassification:
    """Marks a seeded random subset of regions as oceanic."""
    rng = np.random.default_rng(seed)
    rolls = rng.random(len(region_ids))
    plate_types = {
        int(region_id): PlateType.OCEANIC if roll < oceanic_fraction else PlateType.CONTINENTAL
        for region_id, roll in zip(region_ids, rolls)
    }
    return PlateClassification(plate_types)
