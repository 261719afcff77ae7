# climate_generator/basins.py

"""
================================================================================
OCEAN BASIN CLUSTERING
================================================================================
Groups oceanic regions into ocean basins. Two oceanic regions belong to the
same basin when they share a long enough border, directly or through a chain
of other oceanic regions.

Data Contract:
---------------
- Inputs:
    - region_map: Integer (H, W) region ids. Ids may be sparse or negative.
    - oceanic_ids: Iterable of region ids classified as oceanic.
    - water: Boolean (H, W) mask of pixels below sea level.
    - min_shared_border: Border length (in 4-neighbour pixel pairs) at or
      above which two regions merge.
- Outputs:
    - BasinLayout with one Basin per cluster, a per-pixel basin id map
      (0 = no basin) and a region -> basin lookup.
- Side Effects: None.
- Invariants:
    - Basin ids are dense, starting at 1, ordered by smallest member region.
    - Only water pixels of oceanic regions belong to a basin.
    - A threshold of 0 yields the connected components of the oceanic
      region adjacency graph; an infinite threshold yields one basin per
      oceanic region.
================================================================================
"""

from dataclasses import dataclass

import numpy as np


class UnionFind:
    """Disjoint-set forest with union by size and iterative path compression."""

    def __init__(self, items=()):
        self._parent = {}
        self._size = {}
        for item in items:
            self.add(item)

    def add(self, item):
        if item not in self._parent:
            self._parent[item] = item
            self._size[item] = 1

    def find(self, item):
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        # Second walk points every visited node straight at the root.
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a, b) -> bool:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False
        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]
        return True

    def groups(self) -> dict:
        """Maps each root to the sorted list of its members."""
        result = {}
        for item in self._parent:
            result.setdefault(self.find(item), []).append(item)
        return {root: sorted(members) for root, members in result.items()}


@dataclass(frozen=True)
class Basin:
    basin_id: int
    region_ids: frozenset
    centroid: tuple  # (x, y) in pixels
    pixel_count: int


@dataclass
class BasinLayout:
    basins: list
    basin_map: np.ndarray
    region_to_basin: dict

    def mask_for(self, basin_id: int) -> np.ndarray:
        return self.basin_map == basin_id

    def basin(self, basin_id: int) -> Basin:
        return self.basins[basin_id - 1]


def count_shared_borders(region_map: np.ndarray, oceanic: np.ndarray) -> dict:
    """
    Counts 4-neighbour pixel pairs between every pair of distinct oceanic
    regions. `region_map` holds indices into the `oceanic` lookup. Keys are
    (smaller index, larger index).
    """
    pairs = []
    # 1. Horizontal neighbours, then vertical neighbours.
    for a, b in ((region_map[:, :-1], region_map[:, 1:]), (region_map[:-1, :], region_map[1:, :])):
        a = a.ravel()
        b = b.ravel()
        boundary = (a != b) & oceanic[a] & oceanic[b]
        if np.any(boundary):
            pairs.append(np.column_stack((np.minimum(a[boundary], b[boundary]),
                                          np.maximum(a[boundary], b[boundary]))))
    if not pairs:
        return {}

    # 2. Tally unordered pairs.
    unique_pairs, counts = np.unique(np.concatenate(pairs), axis=0, return_counts=True)
    return {(int(p[0]), int(p[1])): int(c) for p, c in zip(unique_pairs, counts)}


def cluster_basins(region_map: np.ndarray, oceanic_ids, water: np.ndarray,
                   min_shared_border: float) -> BasinLayout:
    """Clusters oceanic regions into basins and measures each basin's water."""
    region_map = np.asarray(region_map, dtype=np.int64)
    height, width = region_map.shape
    oceanic_ids = np.array(sorted({int(r) for r in oceanic_ids}), dtype=np.int64)

    # 1. Compact region ids to dense indices; any int is a valid id.
    all_ids = np.union1d(np.unique(region_map), oceanic_ids)
    dense_map = np.searchsorted(all_ids, region_map)
    oceanic = np.isin(all_ids, oceanic_ids)
    oceanic_index = np.flatnonzero(oceanic).tolist()

    # 2. Merge regions whose shared border is long enough.
    forest = UnionFind(oceanic_index)
    for (a, b), border in count_shared_borders(dense_map, oceanic).items():
        if border >= min_shared_border:
            forest.union(a, b)

    # 3. Dense basin ids in order of each group's smallest member.
    groups = sorted(forest.groups().values(), key=lambda members: members[0])
    lookup = np.zeros(len(all_ids), dtype=np.int64)
    region_to_basin = {}
    for basin_id, members in enumerate(groups, start=1):
        lookup[members] = basin_id
        for index in members:
            region_to_basin[int(all_ids[index])] = basin_id
    basin_map = np.where(water, lookup[dense_map], 0)

    # 4. Per-basin pixel counts and centroids over water pixels.
    num_basins = len(groups)
    flat = basin_map.ravel()
    yy, xx = np.mgrid[0:height, 0:width]
    counts = np.bincount(flat, minlength=num_basins + 1)
    sum_x = np.bincount(flat, weights=xx.ravel(), minlength=num_basins + 1)
    sum_y = np.bincount(flat, weights=yy.ravel(), minlength=num_basins + 1)

    basins = []
    for basin_id, members in enumerate(groups, start=1):
        count = int(counts[basin_id])
        if count > 0:
            centroid = (sum_x[basin_id] / count, sum_y[basin_id] / count)
        else:
            centroid = (0.0, 0.0)
        region_ids = frozenset(int(all_ids[index]) for index in members)
        basins.append(Basin(basin_id, region_ids, centroid, count))

    return BasinLayout(basins, basin_map, region_to_basin)
