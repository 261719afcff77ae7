# climate_generator/humidity.py

"""
================================================================================
HUMIDITY STAGES
================================================================================
Builds the normalized humidity field in five steps:

    base_humidity            latitude bands, circulation cells, seeded noise
    humidity_ocean_altitude  ocean saturation near coasts, drying with height
    mountain_drying          extra drying of high land
    rain_shadow              windward rain-out and dry lee sides
    humidity_advection       moisture carried by the final wind

Data Contract:
---------------
- Inputs:
    - Seed source, elevation provider, final wind stage, configuration, logger.
- Outputs:
    - 'humidity' (H, W) in [0, 1] from every stage.
    - 'noise' (H, W) in [0, 1] from base_humidity.
    - 'air_moisture' (H, W) from rain_shadow.
- Side Effects: Logs via the injected logger.
- Invariants: Given the same seed and configuration the output is
  deterministic.
================================================================================
"""

import logging

import numpy as np

from .advection import advect_scalar
from .distance import chamfer_distance, coastal_factor
from .noise import generate_noise_map, validate_noise_settings
from .rain_shadow import WindDirection, march_rain_shadow
from .sampling import latitude_grid, resample_scalar
from .stage import ClimateStage, TerrainStage


def circulation_cells(abs_lat: np.ndarray, cells) -> np.ndarray:
    """
    Wet/dry circulation cell value for each absolute latitude. `cells` is a
    sequence of (latitude, value) anchors in increasing latitude; values are
    smoothstep-interpolated between anchors and held past the last one.
    """
    result = np.full(abs_lat.shape, float(cells[-1][1]))
    for (lat0, value0), (lat1, value1) in zip(cells[:-1], cells[1:]):
        inside = (abs_lat >= lat0) & (abs_lat < lat1)
        t = np.clip((abs_lat - lat0) / (lat1 - lat0), 0.0, 1.0)
        t = t * t * (3.0 - 2.0 * t)
        result = np.where(inside, value0 + (value1 - value0) * t, result)
    return np.where(abs_lat < cells[0][0], float(cells[0][1]), result)


def base_humidity(
    v: np.ndarray, noise_map: np.ndarray, falloff: float,
    equator_humidity: float, pole_humidity: float,
    cell_strength: float, noise_strength: float, cells
) -> np.ndarray:
    lat01 = np.abs(v - 0.5) * 2.0
    band = pole_humidity + (equator_humidity - pole_humidity) * (1.0 - np.power(lat01, falloff))
    cell = circulation_cells(np.abs((v - 0.5) * 180.0), cells)
    return np.clip(band + cell * cell_strength + (noise_map - 0.5) * noise_strength, 0.0, 1.0)


def refine_ocean_altitude(
    h: np.ndarray, elevation: np.ndarray, water: np.ndarray,
    ocean_saturation: float, ocean_water_blend: float, coastal_blend: float,
    coast_range: float, sweeps: int, altitude_drying: float,
    apply_ocean_influence: bool = True, apply_altitude_drying: bool = True
) -> np.ndarray:
    h = h.copy()

    # 1. Ocean saturates the air above it and, more weakly, the coast.
    if apply_ocean_influence:
        marine = h + (ocean_saturation - h) * ocean_water_blend
        factor = coastal_factor(chamfer_distance(water, sweeps), coast_range)
        h = np.where(water, marine, h + (marine - h) * (factor * coastal_blend))

    # 2. Thin high-altitude air holds less moisture.
    if apply_altitude_drying:
        h -= elevation * altitude_drying

    return np.clip(h, 0.0, 1.0)


def apply_mountain_drying(
    h: np.ndarray, elevation: np.ndarray, water: np.ndarray,
    start_height: float, strength: float, curve_power: float, min_humidity: float
) -> np.ndarray:
    excess = np.clip((elevation - start_height) / (1.0 - start_height), 0.0, None)
    dried = h - np.power(excess, curve_power) * strength
    h = np.where(~water & (elevation > start_height), dried, h)
    return np.maximum(np.clip(h, 0.0, 1.0), min_humidity)


class BaseHumidityStage(ClimateStage):
    name = "base_humidity"
    settings_keys = (
        'map_resolution', 'humidity_falloff', 'equator_humidity', 'pole_humidity',
        'humidity_noise_strength', 'humidity_noise_frequency', 'humidity_noise_octaves',
        'humidity_noise_persistence', 'humidity_noise_lacunarity',
        'circulation_cell_strength', 'circulation_cells', 'humidity_seed_offset',
        'noise_offset_range',
    )
    output_names = ('humidity', 'noise')

    def __init__(self, config: dict, logger: logging.Logger, seed_source=None):
        super().__init__(config, logger)
        self.seed_source = seed_source

    def validate(self):
        s = self.settings
        self._check_resolution('map_resolution')
        self._check(s['humidity_falloff'] > 0, "humidity_falloff must be positive")
        cells = s['circulation_cells']
        self._check(len(cells) >= 1, "circulation_cells needs at least one anchor")
        latitudes = [lat for lat, _ in cells]
        self._check(all(a < b for a, b in zip(latitudes, latitudes[1:])),
                    "circulation_cells latitudes must be strictly increasing")
        validate_noise_settings(s['humidity_noise_frequency'], s['humidity_noise_octaves'],
                                s['humidity_noise_persistence'], s['humidity_noise_lacunarity'])

    def compute(self) -> dict:
        s = self.settings
        seed = self.require_provider(self.seed_source, "seed").resolve() + s['humidity_seed_offset']
        n = int(s['map_resolution'])

        noise_map = generate_noise_map(
            n, n, seed, s['humidity_noise_frequency'], s['humidity_noise_octaves'],
            s['humidity_noise_persistence'], s['humidity_noise_lacunarity'],
            offset_range=s['noise_offset_range']
        )
        v, _ = latitude_grid(n, n)
        humidity = base_humidity(
            v, noise_map, s['humidity_falloff'], s['equator_humidity'], s['pole_humidity'],
            s['circulation_cell_strength'], s['humidity_noise_strength'], s['circulation_cells']
        )
        return {'humidity': humidity, 'noise': noise_map}


class HumidityOceanAltitudeStage(TerrainStage):
    name = "humidity_ocean_altitude"
    settings_keys = (
        'map_resolution', 'sea_level', 'apply_ocean_influence', 'ocean_saturation',
        'ocean_water_blend', 'humidity_coastal_blend', 'coast_range_px',
        'coast_distance_sweeps', 'apply_altitude_drying', 'altitude_drying',
    )
    output_names = ('humidity',)

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage, elevation=None):
        super().__init__(config, logger, elevation)
        self.source = source

    @property
    def upstream(self) -> tuple:
        return (self.source,)

    def validate(self):
        super().validate()
        self._check(self.settings['coast_range_px'] >= 0, "coast_range_px must be non-negative")
        self._check(self.settings['coast_distance_sweeps'] >= 1, "coast_distance_sweeps must be at least 1")
        self._check_unit('ocean_saturation', 'ocean_water_blend', 'humidity_coastal_blend')

    def compute(self) -> dict:
        base = self.require(self.source)['humidity']
        elevation, water = self.terrain()
        n = self.resolution
        s = self.settings
        return {'humidity': refine_ocean_altitude(
            resample_scalar(base, n, n), elevation, water,
            s['ocean_saturation'], s['ocean_water_blend'], s['humidity_coastal_blend'],
            s['coast_range_px'], s['coast_distance_sweeps'], s['altitude_drying'],
            s['apply_ocean_influence'], s['apply_altitude_drying']
        )}


class MountainDryingStage(TerrainStage):
    name = "mountain_drying"
    settings_keys = (
        'map_resolution', 'sea_level', 'apply_mountain_drying', 'dry_start_height',
        'dry_strength', 'dry_curve_power', 'drying_min_humidity',
    )
    output_names = ('humidity',)

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage, elevation=None):
        super().__init__(config, logger, elevation)
        self.source = source

    @property
    def upstream(self) -> tuple:
        return (self.source,)

    def validate(self):
        super().validate()
        self._check_start_height('dry_start_height')
        self._check(self.settings['dry_curve_power'] > 0, "dry_curve_power must be positive")
        self._check_unit('drying_min_humidity')

    def compute(self) -> dict:
        source = self.require(self.source)['humidity']
        elevation, water = self.terrain()
        n = self.resolution
        s = self.settings
        humidity = resample_scalar(source, n, n)
        if s['apply_mountain_drying']:
            humidity = apply_mountain_drying(
                humidity, elevation, water, s['dry_start_height'], s['dry_strength'],
                s['dry_curve_power'], s['drying_min_humidity']
            )
        return {'humidity': humidity}


class RainShadowStage(TerrainStage):
    name = "rain_shadow"
    settings_keys = (
        'map_resolution', 'sea_level', 'rain_shadow_direction', 'ocean_recharge',
        'starting_air_moisture', 'ridge_sensitivity', 'windward_rain_boost',
        'leeward_dry_loss', 'shadow_persistence', 'min_air_moisture',
        'rain_shadow_min_humidity', 'rain_shadow_max_humidity',
    )
    output_names = ('humidity', 'air_moisture')

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage, elevation=None):
        super().__init__(config, logger, elevation)
        self.source = source

    @property
    def upstream(self) -> tuple:
        return (self.source,)

    def validate(self):
        super().validate()
        directions = [d.value for d in WindDirection]
        self._check(self.settings['rain_shadow_direction'] in directions,
                    f"rain_shadow_direction must be one of {directions}")
        self._check_unit('ocean_recharge', 'shadow_persistence', 'min_air_moisture')
        self._check(self.settings['rain_shadow_min_humidity'] <= self.settings['rain_shadow_max_humidity'],
                    "rain_shadow_min_humidity must not exceed rain_shadow_max_humidity")

    def compute(self) -> dict:
        source = self.require(self.source)['humidity']
        elevation, water = self.terrain()
        n = self.resolution
        s = self.settings
        humidity, air = march_rain_shadow(
            resample_scalar(source, n, n), elevation, water,
            direction=WindDirection(s['rain_shadow_direction']),
            ocean_recharge=s['ocean_recharge'],
            starting_air_moisture=s['starting_air_moisture'],
            ridge_sensitivity=s['ridge_sensitivity'],
            windward_rain_boost=s['windward_rain_boost'],
            leeward_dry_loss=s['leeward_dry_loss'],
            shadow_persistence=s['shadow_persistence'],
            min_air_moisture=s['min_air_moisture'],
            floor=s['rain_shadow_min_humidity'],
            ceiling=s['rain_shadow_max_humidity'],
        )
        return {'humidity': humidity, 'air_moisture': air}


class HumidityAdvectionStage(ClimateStage):
    name = "humidity_advection"
    settings_keys = (
        'map_resolution', 'humidity_advection_shift_px', 'humidity_wind_speed_power',
        'humidity_advection_blend', 'global_humidity_offset', 'advected_min_humidity',
        'advected_max_humidity', 'min_wind_speed',
    )
    output_names = ('humidity',)

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage, wind: ClimateStage):
        super().__init__(config, logger)
        self.source = source
        self.wind = wind

    @property
    def upstream(self) -> tuple:
        return (self.source, self.wind)

    def validate(self):
        s = self.settings
        self._check_resolution('map_resolution')
        self._check(s['humidity_advection_shift_px'] >= 0, "humidity_advection_shift_px must be non-negative")
        self._check_unit('humidity_advection_blend')
        self._check(s['advected_min_humidity'] <= s['advected_max_humidity'],
                    "advected_min_humidity must not exceed advected_max_humidity")

    def compute(self) -> dict:
        humidity = self.require(self.source)['humidity']
        wind = self.require(self.wind)['wind']
        n = int(self.settings['map_resolution'])
        s = self.settings
        return {'humidity': advect_scalar(
            humidity, wind, s['humidity_advection_shift_px'],
            s['humidity_wind_speed_power'], s['humidity_advection_blend'],
            offset=s['global_humidity_offset'], floor=s['advected_min_humidity'],
            ceiling=s['advected_max_humidity'], resolution=(n, n),
            min_speed=s['min_wind_speed']
        )}
