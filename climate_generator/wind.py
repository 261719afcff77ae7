# climate_generator/wind.py

"""
================================================================================
WIND STAGES
================================================================================
Builds the near-surface wind field in four steps:

    base_wind         planetary belts, seeded jitter and calm zones, ridges
    coastal_gyre      rotation around ocean basins near their coasts
    inland_advection  coastal wind carried inland across land
    wind_smoothing    adaptive blur that hides seams between the above

Vectors are (x = east, y = north). Rows grow northward.

Data Contract:
---------------
- Inputs:
    - Elevation provider, region partition, plate classification, seed
      source, configuration, logger.
- Outputs:
    - 'wind' (H, W, 2) and 'speed' (H, W) in [0, 1] from every stage.
    - 'basin_map' (H, W) int from coastal_gyre (0 = no basin).
    - 'inland_weight' (H, W) from inland_advection.
- Side Effects: Logs via the injected logger.
- Invariants: The region partition must share the wind grid exactly.
================================================================================
"""

import logging
import math

import numpy as np
from numba import njit

from .basins import cluster_basins
from .distance import shore_distance
from .errors import ResolutionMismatch
from .noise import generate_noise_map, validate_noise_settings
from .propagation import blend_inland, propagate_inland
from .sampling import latitude_grid, resample_vector
from .smoothing import adaptive_smooth
from .stage import ClimateStage, TerrainStage, wind_speed

# Below this total belt weight the latitude falls back to its own band.
_MIN_BELT_WEIGHT = 1e-4
# Squared radial length under which a basin pixel has no usable tangent.
_MIN_RADIAL_SQUARED = 1e-4


def belt_wind(lat_deg: np.ndarray, strength: float, centers=(15.0, 45.0, 75.0),
              falloff: float = 50.0) -> np.ndarray:
    """
    Blends trade winds, westerlies and polar easterlies by latitude and
    returns vectors of length `strength`.
    """
    abs_lat = np.abs(lat_deg)
    toward_equator = np.where(lat_deg > 0, -1.0, 1.0)
    toward_pole = -toward_equator
    ones = np.ones_like(lat_deg)

    # 1. One direction per belt.
    belts = (
        np.stack([-ones, toward_equator * 0.3], axis=-1),     # trades
        np.stack([ones, toward_pole * 0.2], axis=-1),         # westerlies
        np.stack([-0.7 * ones, toward_equator * 0.2], axis=-1),  # polar easterlies
    )

    # 2. Triangular weights around each belt centre.
    weights = [np.clip(1.0 - np.abs(abs_lat - c) / falloff, 0.0, 1.0) for c in centers]
    total = sum(weights)
    degenerate = total < _MIN_BELT_WEIGHT
    if np.any(degenerate):
        band = np.digitize(abs_lat, [30.0, 60.0])
        weights = [np.where(degenerate, (band == i).astype(float), w) for i, w in enumerate(weights)]
        total = np.where(degenerate, 1.0, total)

    blended = sum(w[..., np.newaxis] * b for w, b in zip(weights, belts)) / total[..., np.newaxis]

    # 3. Unit direction times strength.
    length = np.linalg.norm(blended, axis=-1, keepdims=True)
    return np.divide(blended, length, out=np.zeros_like(blended), where=length > 0) * strength


def jitter_and_calm(wind: np.ndarray, angle_noise: np.ndarray, calm_noise: np.ndarray,
                    direction_jitter: float, calm_strength: float) -> np.ndarray:
    """Rotates each vector by a noise-driven angle and damps it in calm zones."""
    angle = (angle_noise - 0.5) * 2.0 * direction_jitter * np.pi
    cos_a = np.cos(angle)
    sin_a = np.sin(angle)
    rotated = np.stack([
        wind[..., 0] * cos_a - wind[..., 1] * sin_a,
        wind[..., 0] * sin_a + wind[..., 1] * cos_a,
    ], axis=-1)
    calm = np.clip(1.0 - calm_strength * calm_noise, 0.0, 1.0)
    return rotated * calm[..., np.newaxis]


@njit
def _ridge_blocking(wind, elevation, look_distance, block_height, block_strength):
    height, width = elevation.shape
    out = wind.copy()
    for y in range(height):
        for x in range(width):
            wx = wind[y, x, 0]
            wy = wind[y, x, 1]
            mag = math.sqrt(wx * wx + wy * wy)
            if mag <= 0.0:
                continue
            # Walk upwind.
            dx = -wx / mag
            dy = -wy / mag
            slowdown = 1.0
            for step in range(1, look_distance + 1):
                sx = int(math.floor(x + dx * step + 0.5))
                sy = int(math.floor(y + dy * step + 0.5))
                if sx < 0 or sy < 0 or sx >= width or sy >= height:
                    break
                e = elevation[sy, sx]
                if e >= block_height:
                    slowdown -= (e - block_height) * block_strength
            e = elevation[y, x]
            if e >= block_height:
                slowdown -= 0.5 * (e - block_height) * block_strength
            if slowdown < 0.0:
                slowdown = 0.0
            elif slowdown > 1.0:
                slowdown = 1.0
            out[y, x, 0] = wx * slowdown
            out[y, x, 1] = wy * slowdown
    return out


def ridge_blocking(wind: np.ndarray, elevation: np.ndarray, look_distance: int,
                   block_height: float, block_strength: float) -> np.ndarray:
    """Slows wind that has just crossed, or is crossing, high terrain."""
    return _ridge_blocking(
        np.ascontiguousarray(wind, dtype=np.float64),
        np.ascontiguousarray(elevation, dtype=np.float64),
        int(look_distance), float(block_height), float(block_strength)
    )


def gyre_wind(
    wind: np.ndarray, water: np.ndarray, layout, shore: np.ndarray,
    base_strength: float, min_basin_pixels: int, big_basin_pixels: int,
    influence_range: float, gyre_strength: float
) -> np.ndarray:
    """
    Bends water wind toward a rotation around its basin centroid, strongest
    near the coast and in large basins. Land and water outside an eligible
    basin keep their wind.
    """
    height, width = water.shape
    basin_map = layout.basin_map
    num_basins = len(layout.basins)

    # 1. Per-basin lookup tables, index 0 = no basin.
    counts = np.zeros(num_basins + 1)
    centroid_x = np.zeros(num_basins + 1)
    centroid_y = np.zeros(num_basins + 1)
    for basin in layout.basins:
        counts[basin.basin_id] = basin.pixel_count
        centroid_x[basin.basin_id], centroid_y[basin.basin_id] = basin.centroid

    count = counts[basin_map]
    eligible = water & (basin_map > 0) & (count >= min_basin_pixels)

    # 2. Tangent of the rotation; opposite sense in each hemisphere.
    yy, xx = np.mgrid[0:height, 0:width]
    rx = xx - centroid_x[basin_map]
    ry = yy - centroid_y[basin_map]
    r_squared = rx * rx + ry * ry
    eligible &= r_squared >= _MIN_RADIAL_SQUARED
    northern = yy > height * 0.5
    tx = np.where(northern, -ry, ry)
    ty = np.where(northern, rx, -rx)
    length = np.sqrt(np.where(eligible, r_squared, 1.0))
    tangent = np.stack([tx / length, ty / length], axis=-1) * base_strength

    # 3. Weight by coastal proximity and basin size.
    coastal = np.maximum(0.0, 1.0 - shore / influence_range)
    basin_factor = np.clip(count / big_basin_pixels, 0.0, 1.0)
    weight = np.clip(coastal * basin_factor * gyre_strength, 0.0, 1.0)[..., np.newaxis]

    out = np.array(wind, dtype=np.float64)
    blended = out + (tangent - out) * weight
    out[eligible] = blended[eligible]
    return out


class BaseWindStage(TerrainStage):
    name = "base_wind"
    resolution_key = "wind_resolution"
    settings_keys = (
        'wind_resolution', 'sea_level', 'base_wind_strength', 'trade_wind_center_deg',
        'westerlies_center_deg', 'polar_easterlies_center_deg', 'wind_belt_falloff_deg',
        'direction_jitter', 'calm_zones_strength', 'wind_noise_frequency',
        'wind_noise_octaves', 'wind_noise_persistence', 'wind_noise_lacunarity',
        'wind_angle_seed_offset', 'wind_calm_seed_offset', 'noise_offset_range',
        'mountain_block_height', 'mountain_block_strength', 'ridge_look_distance',
    )
    output_names = ('wind', 'speed')

    def __init__(self, config: dict, logger: logging.Logger, elevation=None, seed_source=None):
        super().__init__(config, logger, elevation)
        self.seed_source = seed_source

    def validate(self):
        super().validate()
        s = self.settings
        self._check(s['wind_belt_falloff_deg'] > 0, "wind_belt_falloff_deg must be positive")
        self._check(s['ridge_look_distance'] >= 0, "ridge_look_distance must be non-negative")
        self._check(s['base_wind_strength'] >= 0, "base_wind_strength must be non-negative")
        validate_noise_settings(s['wind_noise_frequency'], s['wind_noise_octaves'],
                                s['wind_noise_persistence'], s['wind_noise_lacunarity'])

    def compute(self) -> dict:
        s = self.settings
        seed = self.require_provider(self.seed_source, "seed").resolve()
        elevation, _ = self.terrain()
        n = self.resolution

        # 1. Planetary belts.
        _, lat_deg = latitude_grid(n, n)
        centers = (s['trade_wind_center_deg'], s['westerlies_center_deg'], s['polar_easterlies_center_deg'])
        wind = belt_wind(lat_deg, s['base_wind_strength'], centers, s['wind_belt_falloff_deg'])

        # 2. Seeded direction jitter and calm zones.
        noise_args = (s['wind_noise_frequency'], s['wind_noise_octaves'],
                      s['wind_noise_persistence'], s['wind_noise_lacunarity'])
        angle_noise = generate_noise_map(n, n, seed + s['wind_angle_seed_offset'], *noise_args,
                                         offset_range=s['noise_offset_range'])
        calm_noise = generate_noise_map(n, n, seed + s['wind_calm_seed_offset'], *noise_args,
                                        offset_range=s['noise_offset_range'])
        wind = jitter_and_calm(wind, angle_noise, calm_noise, s['direction_jitter'], s['calm_zones_strength'])

        # 3. Ridges slow the wind behind and on top of them.
        wind = ridge_blocking(wind, elevation, s['ridge_look_distance'],
                              s['mountain_block_height'], s['mountain_block_strength'])
        return {'wind': wind, 'speed': wind_speed(wind)}


class CoastalGyreStage(TerrainStage):
    name = "coastal_gyre"
    resolution_key = "wind_resolution"
    settings_keys = (
        'wind_resolution', 'sea_level', 'base_wind_strength', 'min_shared_border_for_merge',
        'coastal_influence_range_px', 'global_coastal_gyre_strength',
        'min_basin_pixel_count', 'big_basin_pixel_count',
    )
    output_names = ('wind', 'speed', 'basin_map')

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage,
                 elevation=None, regions=None, plates=None):
        super().__init__(config, logger, elevation)
        self.source = source
        self.regions = regions
        self.plates = plates
        self.layout = None

    @property
    def upstream(self) -> tuple:
        return (self.source,)

    def validate(self):
        super().validate()
        s = self.settings
        self._check(s['coastal_influence_range_px'] > 0, "coastal_influence_range_px must be positive")
        self._check(s['big_basin_pixel_count'] > 0, "big_basin_pixel_count must be positive")
        self._check(s['min_shared_border_for_merge'] >= 0, "min_shared_border_for_merge must be non-negative")

    def compute(self) -> dict:
        s = self.settings
        n = self.resolution
        regions = self.require_provider(self.regions, "region partition")
        plates = self.require_provider(self.plates, "plate classification")
        if tuple(regions.shape) != (n, n):
            raise ResolutionMismatch((n, n), tuple(regions.shape), "region partition")

        wind = resample_vector(self.require(self.source)['wind'], n, n)
        _, water = self.terrain()

        # 1. Cluster oceanic regions into basins.
        oceanic_ids = [r for r in regions.all_region_ids() if plates.is_oceanic(r)]
        layout = cluster_basins(regions.region_map, oceanic_ids, water, s['min_shared_border_for_merge'])
        eligible = sum(1 for b in layout.basins if b.pixel_count >= s['min_basin_pixel_count'])
        self.logger.info(
            f"{self.name}: {len(layout.basins)} ocean basins from {len(oceanic_ids)} oceanic regions, "
            f"{eligible} large enough for gyres."
        )

        # 2. Rotate coastal water wind around each basin.
        wind = gyre_wind(
            wind, water, layout, shore_distance(water), s['base_wind_strength'],
            s['min_basin_pixel_count'], s['big_basin_pixel_count'],
            s['coastal_influence_range_px'], s['global_coastal_gyre_strength']
        )
        self.layout = layout
        return {'wind': wind, 'speed': wind_speed(wind), 'basin_map': layout.basin_map}


class InlandWindStage(TerrainStage):
    name = "inland_advection"
    resolution_key = "wind_resolution"
    settings_keys = (
        'wind_resolution', 'sea_level', 'inland_mountain_height', 'inland_block_strength',
        'max_inland_range_px', 'decay_per_step', 'coast_inject_strength',
        'inland_blend_strength', 'propagation_epsilon',
    )
    output_names = ('wind', 'speed', 'inland_weight')

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage, elevation=None):
        super().__init__(config, logger, elevation)
        self.source = source

    @property
    def upstream(self) -> tuple:
        return (self.source,)

    def validate(self):
        super().validate()
        s = self.settings
        self._check(s['max_inland_range_px'] >= 0, "max_inland_range_px must be non-negative")
        self._check(0.0 <= s['decay_per_step'] < 1.0, "decay_per_step must be in [0, 1)")
        self._check_unit('inland_block_strength')
        self._check(s['coast_inject_strength'] >= 0, "coast_inject_strength must be non-negative")
        self._check(s['propagation_epsilon'] >= 0, "propagation_epsilon must be non-negative")

    def compute(self) -> dict:
        s = self.settings
        n = self.resolution
        wind = resample_vector(self.require(self.source)['wind'], n, n)
        elevation, water = self.terrain()

        result = propagate_inland(
            wind, water, elevation, s['coast_inject_strength'], s['max_inland_range_px'],
            s['inland_mountain_height'], s['inland_block_strength'], s['decay_per_step'],
            s['propagation_epsilon']
        )
        reached = int(np.count_nonzero(result.weight))
        self.logger.info(f"{self.name}: processed {result.processed} nodes, reached {reached} land pixels.")

        wind = blend_inland(wind, water, result, s['inland_blend_strength'])
        return {'wind': wind, 'speed': wind_speed(wind), 'inland_weight': result.weight}


class WindSmoothingStage(ClimateStage):
    name = "wind_smoothing"
    settings_keys = (
        'wind_resolution', 'smooth_radius', 'smooth_blend', 'smooth_iterations',
        'edge_adaptive', 'edge_boost', 'edge_sensitivity',
    )
    output_names = ('wind', 'speed')

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage):
        super().__init__(config, logger)
        self.source = source

    @property
    def upstream(self) -> tuple:
        return (self.source,)

    def validate(self):
        s = self.settings
        self._check_resolution('wind_resolution')
        self._check(s['smooth_radius'] >= 1, "smooth_radius must be at least 1")
        self._check(s['smooth_iterations'] >= 1, "smooth_iterations must be at least 1")
        self._check(s['edge_sensitivity'] > 0, "edge_sensitivity must be positive")

    def compute(self) -> dict:
        s = self.settings
        n = int(s['wind_resolution'])
        wind = resample_vector(self.require(self.source)['wind'], n, n)
        wind = adaptive_smooth(
            wind, s['smooth_radius'], s['smooth_iterations'], s['smooth_blend'],
            s['edge_adaptive'], s['edge_boost'], s['edge_sensitivity']
        )
        return {'wind': wind, 'speed': wind_speed(wind)}
