# climate_generator/stage.py

"""
================================================================================
PIPELINE STAGE BASE CLASS
================================================================================
Every climate layer is produced by a stage. A stage is wired to its upstream
stages and providers explicitly at construction, consolidates its settings
from the user configuration and the internal defaults, and publishes its
results as read-only NumPy arrays.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): User-defined parameters to override defaults.
    - logger: A configured Python logging object for runtime messages.
- Outputs:
    - generate() -> bool: Recomputes the stage from scratch. True when new
      outputs were published.
    - outputs (dict): Name -> read-only array of the last successful run.
- Side Effects: Logs messages using the provided logger. May trigger
  generation of upstream stages that have not produced data yet.
- Invariants:
    - Outputs are replaced all at once or not at all.
    - Failures (ClimateError) never escape generate(); they are logged and
      the previous outputs stay in place.
================================================================================
"""

import logging
import time

import numpy as np

from . import config as DEFAULTS
from .errors import ClimateError, DependencyCycleError, InvalidConfiguration, MissingUpstreamData


def freeze(array: np.ndarray) -> np.ndarray:
    """Returns a contiguous read-only view of `array`."""
    array = np.ascontiguousarray(array)
    array.setflags(write=False)
    return array


def wind_speed(wind: np.ndarray) -> np.ndarray:
    """Normalized wind speed, |v| clamped to [0, 1]."""
    return np.clip(np.linalg.norm(wind, axis=-1), 0.0, 1.0)


class ClimateStage:
    """
    Base class for a single stage of the climate pipeline.

    Subclasses declare `name`, `settings_keys` and `output_names`, and
    implement `compute()`. `validate()` runs before compute and is the place
    to reject bad settings.
    """
    name = "stage"
    settings_keys: tuple = ()
    output_names: tuple = ()

    def __init__(self, config: dict, logger: logging.Logger):
        self.logger = logger
        self.user_config = config or {}

        # --- Consolidate Configuration ---
        self.settings = {
            key: self.user_config.get(key, getattr(DEFAULTS, key.upper()))
            for key in self.settings_keys
        }

        self.outputs = {}
        self.last_duration = None
        self._generating = False

    @property
    def upstream(self) -> tuple:
        """Stages this stage reads from."""
        return ()

    def is_ready(self) -> bool:
        return all(name in self.outputs for name in self.output_names)

    def generate(self) -> bool:
        self._generating = True
        start_time = time.perf_counter()
        try:
            self.validate()
            produced = self.compute()
        except MissingUpstreamData as e:
            self.logger.warning(f"{self.name}: {e}. Previous output left unchanged.")
            return False
        except ClimateError as e:
            self.logger.error(f"{self.name}: {e}. Previous output left unchanged.")
            return False
        finally:
            self._generating = False

        missing = [name for name in self.output_names if name not in produced]
        if missing:
            raise RuntimeError(f"{self.name} did not produce outputs {missing}")
        self.outputs = {name: freeze(array) for name, array in produced.items()}
        self.last_duration = time.perf_counter() - start_time
        self.logger.info(f"{self.name} generated in {self.last_duration:.2f} seconds.")
        return True

    def require(self, stage: "ClimateStage") -> dict:
        """
        Returns the outputs of an upstream stage, generating it once if it
        has not produced anything yet.
        """
        if stage is None:
            raise MissingUpstreamData("upstream stage is not connected")
        if stage._generating:
            raise DependencyCycleError(f"'{stage.name}' is already generating, the stage graph has a cycle")
        if not stage.is_ready():
            self.logger.debug(f"{self.name}: '{stage.name}' has no output yet, generating it.")
            stage.generate()
            if not stage.is_ready():
                raise MissingUpstreamData(f"upstream stage '{stage.name}' produced no data")
        return stage.outputs

    def require_provider(self, provider, what: str):
        if provider is None:
            raise MissingUpstreamData(f"no {what} provider available")
        return provider

    def validate(self):
        pass

    def compute(self) -> dict:
        raise NotImplementedError

    # --- Validation helpers ---
    def _check(self, condition: bool, message: str):
        if not condition:
            raise InvalidConfiguration(message)

    def _check_resolution(self, key: str):
        value = self.settings[key]
        self._check(int(value) == value and value >= 1, f"{key} must be a positive integer, got {value}")

    def _check_unit(self, *keys):
        for key in keys:
            value = self.settings[key]
            self._check(0.0 <= value <= 1.0, f"{key} must be in [0, 1], got {value}")

    def _check_start_height(self, key: str):
        # Normalizing (elev - start) / (1 - start) needs start < 1.
        value = self.settings[key]
        self._check(0.0 <= value < 1.0, f"{key} must be in [0, 1), got {value}")


class TerrainStage(ClimateStage):
    """A stage that reads elevation on its own square grid."""
    resolution_key = "map_resolution"

    def __init__(self, config: dict, logger: logging.Logger, elevation=None):
        super().__init__(config, logger)
        self.elevation = elevation

    @property
    def resolution(self) -> int:
        return int(self.settings[self.resolution_key])

    def validate(self):
        self._check_resolution(self.resolution_key)

    def terrain(self) -> tuple[np.ndarray, np.ndarray]:
        """(elevation, water) on this stage's grid."""
        provider = self.require_provider(self.elevation, "elevation")
        n = self.resolution
        elevation = provider.grid(n, n)
        return elevation, elevation < self.settings['sea_level']
