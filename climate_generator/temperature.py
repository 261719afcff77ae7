# climate_generator/temperature.py

"""
================================================================================
TEMPERATURE STAGES
================================================================================
Builds the normalized temperature field in four steps:

    base_temperature            latitude profile, hot equator, cold poles
    temperature_ocean_altitude  lapse-rate cooling and ocean moderation
    mountain_cooling            extra cooling of high peaks, snow caps
    temperature_advection       warm/cold air carried by the final wind

Data Contract:
---------------
- Inputs:
    - Elevation provider, final wind stage, configuration, logger.
- Outputs:
    - 'temperature' (H, W) in [0, 1] from every stage.
    - 'snow_mask' (H, W) in [0, 1] from mountain_cooling.
- Side Effects: Logs via the injected logger.
- Invariants: Every published temperature is clamped to [0, 1].
================================================================================
"""

import logging

import numpy as np

from .advection import advect_scalar
from .distance import chamfer_distance, coastal_factor
from .sampling import latitude_grid, resample_scalar
from .stage import ClimateStage, TerrainStage


def base_temperature(v: np.ndarray, falloff: float, equator_temp: float, pole_temp: float) -> np.ndarray:
    """Temperature from latitude alone. v = 0 south pole, 0.5 equator, 1 north pole."""
    lat01 = np.abs(v - 0.5) * 2.0
    t = pole_temp + (equator_temp - pole_temp) * (1.0 - np.power(lat01, falloff))
    return np.clip(t, 0.0, 1.0)


def refine_ocean_altitude(
    base_t: np.ndarray, elevation: np.ndarray, water: np.ndarray,
    altitude_cooling: float, ocean_soften: float, coastal_blend: float,
    coast_range: float, sweeps: int,
    apply_altitude_cooling: bool = True, apply_ocean_moderation: bool = True
) -> np.ndarray:
    t = base_t.copy()

    # 1. Lapse-rate cooling.
    if apply_altitude_cooling:
        t -= elevation * altitude_cooling

    # 2. The ocean pulls temperatures toward the midpoint; coasts follow.
    if apply_ocean_moderation:
        marine = base_t + (0.5 - base_t) * ocean_soften
        factor = coastal_factor(chamfer_distance(water, sweeps), coast_range)
        t = np.where(water, marine, t + (marine - t) * (factor * coastal_blend))

    return np.clip(t, 0.0, 1.0)


def apply_mountain_cooling(
    t: np.ndarray, elevation: np.ndarray,
    start_height: float, strength: float, curve: float,
    snow_height: float, snow_temp: float, snow_blend: float,
    apply_cooling: bool = True, apply_snow: bool = True
) -> tuple[np.ndarray, np.ndarray]:
    """Returns (temperature, snow_mask)."""
    t = t.copy()
    snow = np.zeros_like(t)

    if apply_cooling:
        excess = np.clip((elevation - start_height) / (1.0 - start_height), 0.0, None)
        t = np.where(elevation > start_height, t - np.power(excess, curve) * strength, t)

    if apply_snow:
        snow = np.where(
            elevation > snow_height,
            np.clip((elevation - snow_height) / (1.0 - snow_height), 0.0, 1.0),
            0.0
        )
        t = t + (snow_temp - t) * (snow_blend * snow)

    return np.clip(t, 0.0, 1.0), snow


class BaseTemperatureStage(ClimateStage):
    name = "base_temperature"
    settings_keys = ('map_resolution', 'temperature_falloff', 'equator_temp', 'pole_temp')
    output_names = ('temperature',)

    def validate(self):
        self._check_resolution('map_resolution')
        self._check(self.settings['temperature_falloff'] > 0, "temperature_falloff must be positive")

    def compute(self) -> dict:
        n = int(self.settings['map_resolution'])
        v, _ = latitude_grid(n, n)
        return {'temperature': base_temperature(
            v, self.settings['temperature_falloff'],
            self.settings['equator_temp'], self.settings['pole_temp']
        )}


class TemperatureOceanAltitudeStage(TerrainStage):
    name = "temperature_ocean_altitude"
    settings_keys = (
        'map_resolution', 'sea_level', 'apply_altitude_cooling', 'altitude_cooling',
        'apply_ocean_moderation', 'coast_range_px', 'coast_distance_sweeps',
        'temperature_coastal_blend', 'ocean_soften',
    )
    output_names = ('temperature',)

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
        self._check_unit('ocean_soften', 'temperature_coastal_blend')

    def compute(self) -> dict:
        base = self.require(self.source)['temperature']
        elevation, water = self.terrain()
        n = self.resolution
        s = self.settings
        return {'temperature': refine_ocean_altitude(
            resample_scalar(base, n, n), elevation, water,
            s['altitude_cooling'], s['ocean_soften'], s['temperature_coastal_blend'],
            s['coast_range_px'], s['coast_distance_sweeps'],
            s['apply_altitude_cooling'], s['apply_ocean_moderation']
        )}


class MountainCoolingStage(TerrainStage):
    name = "mountain_cooling"
    settings_keys = (
        'map_resolution', 'sea_level', 'apply_mountain_cooling', 'mountain_start_height',
        'mountain_cooling_strength', 'mountain_cooling_curve', 'apply_snow_caps',
        'snow_cap_height', 'snow_cap_temp', 'snow_cap_blend',
    )
    output_names = ('temperature', 'snow_mask')

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage, elevation=None):
        super().__init__(config, logger, elevation)
        self.source = source

    @property
    def upstream(self) -> tuple:
        return (self.source,)

    def validate(self):
        super().validate()
        self._check_start_height('mountain_start_height')
        self._check_start_height('snow_cap_height')
        self._check(self.settings['mountain_cooling_curve'] > 0, "mountain_cooling_curve must be positive")
        self._check_unit('snow_cap_blend')

    def compute(self) -> dict:
        source = self.require(self.source)['temperature']
        elevation, _ = self.terrain()
        n = self.resolution
        s = self.settings
        temperature, snow = apply_mountain_cooling(
            resample_scalar(source, n, n), elevation,
            s['mountain_start_height'], s['mountain_cooling_strength'], s['mountain_cooling_curve'],
            s['snow_cap_height'], s['snow_cap_temp'], s['snow_cap_blend'],
            s['apply_mountain_cooling'], s['apply_snow_caps']
        )
        self.logger.debug(f"{self.name}: {np.count_nonzero(snow)} snow-capped pixels")
        return {'temperature': temperature, 'snow_mask': snow}


class TemperatureAdvectionStage(ClimateStage):
    name = "temperature_advection"
    settings_keys = (
        'map_resolution', 'temperature_advection_shift_px', 'temperature_wind_speed_power',
        'temperature_advection_blend', 'global_temperature_offset', 'min_wind_speed',
    )
    output_names = ('temperature',)

    def __init__(self, config: dict, logger: logging.Logger, source: ClimateStage, wind: ClimateStage):
        super().__init__(config, logger)
        self.source = source
        self.wind = wind

    @property
    def upstream(self) -> tuple:
        return (self.source, self.wind)

    def validate(self):
        self._check_resolution('map_resolution')
        self._check(self.settings['temperature_advection_shift_px'] >= 0, "temperature_advection_shift_px must be non-negative")
        self._check_unit('temperature_advection_blend')

    def compute(self) -> dict:
        temperature = self.require(self.source)['temperature']
        wind = self.require(self.wind)['wind']
        n = int(self.settings['map_resolution'])
        s = self.settings
        return {'temperature': advect_scalar(
            temperature, wind, s['temperature_advection_shift_px'],
            s['temperature_wind_speed_power'], s['temperature_advection_blend'],
            offset=s['global_temperature_offset'], floor=0.0, ceiling=1.0,
            resolution=(n, n), min_speed=s['min_wind_speed']
        )}
