"""
Tests for union-find and ocean basin clustering.
"""

import numpy as np
import pytest
from scipy.ndimage import label

from climate_generator.basins import UnionFind, cluster_basins, count_shared_borders
from climate_generator.distance import chamfer_distance
from climate_generator.providers import HeightmapElevation
from climate_generator.tectonics import PlateClassification, PlateType, RegionPartition


def block_regions(size=64, block=8):
    """Square grid of block x block regions, ids row-major from the south-west."""
    yy, xx = np.mgrid[0:size, 0:size]
    per_row = size // block
    return (yy // block) * per_row + xx // block


class TestUnionFind:
    """Disjoint-set forest."""

    def test_union_and_find(self):
        forest = UnionFind(range(6))
        forest.union(0, 1)
        forest.union(2, 3)
        forest.union(1, 3)
        assert forest.find(0) == forest.find(2)
        assert forest.find(4) != forest.find(0)
        assert not forest.union(0, 3), "Already joined"

    def test_deep_chain_does_not_recurse(self):
        """Path compression is iterative, so very deep trees are fine."""
        n = 200000
        forest = UnionFind(range(n))
        for i in range(1, n):
            forest._parent[i] = i - 1
        assert forest.find(n - 1) == 0
        assert forest._parent[n - 1] == 0

    def test_groups(self):
        forest = UnionFind([5, 3, 9])
        forest.union(9, 3)
        groups = sorted(forest.groups().values())
        assert groups == [[3, 9], [5]]


class TestClusterBasins:
    """Merging oceanic regions into basins."""

    def test_single_ocean_is_one_basin(self):
        region_map = np.zeros((64, 64), dtype=int)
        water = np.ones((64, 64), dtype=bool)
        layout = cluster_basins(region_map, [0], water, 50)

        assert len(layout.basins) == 1
        basin = layout.basins[0]
        assert basin.basin_id == 1
        assert basin.pixel_count == 4096
        assert basin.centroid == pytest.approx((31.5, 31.5))
        assert np.all(layout.basin_map == 1)

    def test_zero_threshold_gives_connected_components(self):
        region_map = block_regions()
        rng = np.random.default_rng(11)
        oceanic_ids = [r for r in range(64) if rng.random() < 0.5]
        water = np.ones(region_map.shape, dtype=bool)

        layout = cluster_basins(region_map, oceanic_ids, water, 0)

        _, expected = label(np.isin(region_map, oceanic_ids))
        assert len(layout.basins) == expected

    def test_infinite_threshold_keeps_regions_apart(self):
        region_map = block_regions()
        oceanic_ids = list(range(0, 64, 3))
        water = np.ones(region_map.shape, dtype=bool)

        layout = cluster_basins(region_map, oceanic_ids, water, float('inf'))

        assert len(layout.basins) == len(oceanic_ids)
        assert all(len(b.region_ids) == 1 for b in layout.basins)

    def test_threshold_is_inclusive(self):
        """Adjacent 8x8 blocks share exactly 8 border pairs."""
        region_map = block_regions()
        water = np.ones(region_map.shape, dtype=bool)
        assert len(cluster_basins(region_map, [0, 1], water, 8).basins) == 1
        assert len(cluster_basins(region_map, [0, 1], water, 9).basins) == 2

    def test_only_water_of_oceanic_regions_counts(self):
        region_map = np.zeros((10, 10), dtype=int)
        region_map[:, 5:] = 1
        water = np.ones((10, 10), dtype=bool)
        water[:, :2] = False

        layout = cluster_basins(region_map, [0], water, 0)

        assert len(layout.basins) == 1
        assert layout.basins[0].pixel_count == 30
        assert layout.basins[0].centroid == pytest.approx((3.0, 4.5))
        assert np.all(layout.basin_map[:, 5:] == 0), "Continental region has no basin"
        assert np.all(layout.basin_map[:, :2] == 0), "Land has no basin"
        assert layout.mask_for(1).sum() == 30

    def test_empty_oceanic_region_reports_zero_pixels(self):
        region_map = np.zeros((4, 4), dtype=int)
        layout = cluster_basins(region_map, [0, 7], np.ones((4, 4), dtype=bool), 0)
        empty = layout.basin(layout.region_to_basin[7])
        assert empty.pixel_count == 0
        assert empty.centroid == (0.0, 0.0)

    def test_shared_border_counts(self):
        region_map = np.zeros((6, 6), dtype=int)
        region_map[:, 3:] = 1
        oceanic = np.array([True, True])
        assert count_shared_borders(region_map, oceanic) == {(0, 1): 6}
        assert count_shared_borders(region_map, np.array([True, False])) == {}


class TestRegionIds:
    """Region ids are arbitrary integers."""

    def halves(self, left, right):
        region_map = np.full((4, 4), left, dtype=np.int64)
        region_map[:, 2:] = right
        return region_map

    def test_sparse_large_ids(self):
        big = 3_000_000_000
        region_map = self.halves(7, big)
        water = np.ones((4, 4), dtype=bool)

        merged = cluster_basins(region_map, [7, big], water, 0)
        assert len(merged.basins) == 1
        assert merged.basins[0].region_ids == frozenset({7, big})
        assert merged.basins[0].pixel_count == 16
        assert merged.region_to_basin == {7: 1, big: 1}

        apart = cluster_basins(region_map, [7, big], water, float('inf'))
        assert [b.region_ids for b in apart.basins] == [frozenset({7}), frozenset({big})]
        assert np.all(apart.basin_map[:, 2:] == 2)

    def test_negative_ids(self):
        region_map = self.halves(-5, 2)
        layout = cluster_basins(region_map, [-5], np.ones((4, 4), dtype=bool), 0)

        assert len(layout.basins) == 1
        basin = layout.basins[0]
        assert basin.region_ids == frozenset({-5})
        assert basin.pixel_count == 8
        assert basin.centroid == pytest.approx((0.5, 1.5))
        assert np.all(layout.basin_map[:, 2:] == 0)

    def test_boundary_regions_are_not_oceanic(self):
        partition = RegionPartition(self.halves(1, 2))
        plates = PlateClassification({1: "boundary", 2: "oceanic"})
        assert plates.classify(1) == PlateType.BOUNDARY
        assert not plates.is_oceanic(1)

        oceanic_ids = [r for r in partition.all_region_ids() if plates.is_oceanic(r)]
        layout = cluster_basins(partition.region_map, oceanic_ids, np.ones((4, 4), dtype=bool), 0)

        assert len(layout.basins) == 1
        assert layout.basins[0].region_ids == frozenset({2})
        assert 1 not in layout.region_to_basin
        assert np.all(layout.basin_map[:, :2] == 0), "Boundary region has no basin"


class TestFlatOceanWorld:
    """A 64x64 world of flat elevation 0.1 below a sea level of 0.3."""

    def test_everything_is_one_open_ocean(self):
        elevation = HeightmapElevation(np.full((64, 64), 0.1)).grid(64, 64)
        water = elevation < 0.3
        assert water.all()

        assert np.all(chamfer_distance(water) == 0), "Every pixel is water"

        layout = cluster_basins(np.zeros((64, 64), dtype=int), [0], water, 50)
        assert len(layout.basins) == 1
        assert layout.basins[0].pixel_count == 4096
        assert layout.basins[0].centroid == pytest.approx((31.5, 31.5))
