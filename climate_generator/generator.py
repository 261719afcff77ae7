# climate_generator/generator.py

"""
================================================================================
CORE CLIMATE GENERATOR
================================================================================
This module contains the main ClimateGenerator class. It wires every climate
stage to its upstream stages and providers, orders them and runs them.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): A dictionary of simulation parameters which can override
      the internal defaults. Expected keys include 'seed', 'map_resolution',
      'sea_level', etc.
    - logger: A configured Python logging object for runtime messages.
    - elevation: An elevation provider (see providers.HeightmapElevation).
    - regions, plates: Region partition and plate classification used by the
      coastal gyre stage.
    - seed_source (optional): Overrides the seed given in config.
- Outputs (from methods):
    - generate(): Per-stage success report.
    - outputs: Final temperature, humidity, wind, wind speed and snow mask.
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same seed and configuration, the output is
  deterministic.
================================================================================
"""

import logging
import time

from . import config as DEFAULTS
from .errors import DependencyCycleError
from .humidity import (BaseHumidityStage, HumidityAdvectionStage, HumidityOceanAltitudeStage,
                       MountainDryingStage, RainShadowStage)
from .providers import SeedSource
from .temperature import (BaseTemperatureStage, MountainCoolingStage, TemperatureAdvectionStage,
                          TemperatureOceanAltitudeStage)
from .wind import BaseWindStage, CoastalGyreStage, InlandWindStage, WindSmoothingStage


def topological_order(roots) -> list:
    """
    Orders the stages reachable from `roots` so that every stage comes after
    all of its upstream stages.
    """
    ordered = []
    done = set()
    visiting = set()

    def visit(stage, path):
        if id(stage) in done:
            return
        if id(stage) in visiting:
            cycle = " -> ".join(s.name for s in path + [stage])
            raise DependencyCycleError(f"stage graph has a cycle: {cycle}")
        visiting.add(id(stage))
        for upstream in stage.upstream:
            if upstream is not None:
                visit(upstream, path + [stage])
        visiting.discard(id(stage))
        done.add(id(stage))
        ordered.append(stage)

    for root in roots:
        visit(root, [])
    return ordered


class ClimateGenerator:
    """
    Generates and manages the climate layers of a world.
    This class is backend-only and does not handle any visualization.
    """
    def __init__(self, config: dict, logger: logging.Logger, elevation=None,
                 regions=None, plates=None, seed_source: SeedSource = None):
        """
        Initializes the climate generator.

        Args:
            config (dict): User-defined parameters to override defaults.
            logger (logging.Logger): The logger instance for all output.
            elevation: Elevation provider shared by all terrain-aware stages.
            regions: Region partition on the wind grid.
            plates: Plate classification for the regions.
            seed_source (SeedSource, optional): If None, one is built from
                config['seed'].
        """
        self.logger = logger
        self.user_config = config or {}
        self.logger.info("ClimateGenerator initializing...")

        # --- Consolidate Configuration ---
        self.settings = {
            'seed': self.user_config.get('seed', DEFAULTS.DEFAULT_SEED),
            'map_resolution': self.user_config.get('map_resolution', DEFAULTS.MAP_RESOLUTION),
            'wind_resolution': self.user_config.get('wind_resolution', DEFAULTS.WIND_RESOLUTION),
            'sea_level': self.user_config.get('sea_level', DEFAULTS.SEA_LEVEL),
        }
        self.seed_source = seed_source or SeedSource(self.settings['seed'], logger)

        # --- Wind chain ---
        cfg = self.user_config
        self.base_wind = BaseWindStage(cfg, logger, elevation, self.seed_source)
        self.coastal_gyre = CoastalGyreStage(cfg, logger, self.base_wind, elevation, regions, plates)
        self.inland_wind = InlandWindStage(cfg, logger, self.coastal_gyre, elevation)
        self.wind_smoothing = WindSmoothingStage(cfg, logger, self.inland_wind)

        # --- Temperature chain ---
        self.base_temperature = BaseTemperatureStage(cfg, logger)
        self.temperature_ocean_altitude = TemperatureOceanAltitudeStage(cfg, logger, self.base_temperature, elevation)
        self.mountain_cooling = MountainCoolingStage(cfg, logger, self.temperature_ocean_altitude, elevation)
        self.temperature_advection = TemperatureAdvectionStage(cfg, logger, self.mountain_cooling, self.wind_smoothing)

        # --- Humidity chain ---
        self.base_humidity = BaseHumidityStage(cfg, logger, self.seed_source)
        self.humidity_ocean_altitude = HumidityOceanAltitudeStage(cfg, logger, self.base_humidity, elevation)
        self.mountain_drying = MountainDryingStage(cfg, logger, self.humidity_ocean_altitude, elevation)
        self.rain_shadow = RainShadowStage(cfg, logger, self.mountain_drying, elevation)
        self.humidity_advection = HumidityAdvectionStage(cfg, logger, self.rain_shadow, self.wind_smoothing)

        self.stages = topological_order([
            self.temperature_advection, self.humidity_advection, self.mountain_cooling,
        ])
        self.logger.info(
            f"ClimateGenerator initialized with seed {self.settings['seed']}, "
            f"{len(self.stages)} stages, climate grid {self.settings['map_resolution']}px, "
            f"wind grid {self.settings['wind_resolution']}px"
        )

    def stage(self, name: str):
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)

    def generate(self, progress=None) -> dict:
        """
        Regenerates every stage in dependency order.

        Args:
            progress (callable, optional): Wraps the stage list for progress
                reporting, e.g. a tqdm constructor.

        Returns:
            dict: Stage name -> True if the stage published new data.
        """
        start_time = time.perf_counter()
        stages = progress(self.stages) if progress is not None else self.stages
        results = {}
        for stage in stages:
            results[stage.name] = stage.generate()

        failed = [name for name, ok in results.items() if not ok]
        elapsed = time.perf_counter() - start_time
        if failed:
            self.logger.warning(f"Climate generation finished in {elapsed:.2f} seconds with failed stages: {failed}")
        else:
            self.logger.info(f"Climate generation complete in {elapsed:.2f} seconds.")
        return results

    @property
    def outputs(self) -> dict:
        """The final consumable fields. Missing entries mean the stage has not succeeded yet."""
        sources = {
            'temperature': (self.temperature_advection, 'temperature'),
            'humidity': (self.humidity_advection, 'humidity'),
            'wind': (self.wind_smoothing, 'wind'),
            'wind_speed': (self.wind_smoothing, 'speed'),
            'snow_mask': (self.mountain_cooling, 'snow_mask'),
        }
        return {
            key: stage.outputs[name]
            for key, (stage, name) in sources.items() if name in stage.outputs
        }
