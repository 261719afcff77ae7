"""
Integration tests for the full climate pipeline.
"""

import logging

import numpy as np
import pytest

from climate_generator import ClimateGenerator
from climate_generator.errors import DependencyCycleError
from climate_generator.generator import topological_order
from climate_generator.stage import ClimateStage
from climate_generator.tectonics import voronoi_partition

GRID = 32

ALL_STAGES = {
    'base_wind', 'coastal_gyre', 'inland_advection', 'wind_smoothing',
    'base_temperature', 'temperature_ocean_altitude', 'mountain_cooling', 'temperature_advection',
    'base_humidity', 'humidity_ocean_altitude', 'mountain_drying', 'rain_shadow', 'humidity_advection',
}


class LoopStage(ClimateStage):
    """A stage that reads from a partner which reads back from it."""
    output_names = ('value',)

    def __init__(self, logger, name):
        super().__init__({}, logger)
        self.name = name
        self.partner = None

    @property
    def upstream(self):
        return (self.partner,)

    def compute(self):
        return {'value': self.require(self.partner)['value']}


class TestPipeline:
    """Full runs on a small island world."""

    def test_complete_workflow(self, small_config, world, logger):
        """Every stage succeeds and the final fields are sane."""
        generator = ClimateGenerator(small_config, logger, **world)
        results = generator.generate()

        assert set(results) == ALL_STAGES
        assert all(results.values()), f"Failed stages: {results}"

        out = generator.outputs
        assert set(out) == {'temperature', 'humidity', 'wind', 'wind_speed', 'snow_mask'}
        assert out['temperature'].shape == (GRID, GRID)
        assert out['humidity'].shape == (GRID, GRID)
        assert out['wind'].shape == (GRID, GRID, 2)
        assert out['wind_speed'].shape == (GRID, GRID)

        assert np.all((out['temperature'] >= 0) & (out['temperature'] <= 1))
        assert np.all((out['humidity'] >= 0.02) & (out['humidity'] <= 1))
        assert np.all((out['wind_speed'] >= 0) & (out['wind_speed'] <= 1))
        assert np.all((out['snow_mask'] >= 0) & (out['snow_mask'] <= 1))
        assert np.all(np.isfinite(out['wind']))

    def test_snow_on_the_peak(self, small_config, world, logger):
        generator = ClimateGenerator(small_config, logger, **world)
        generator.generate()
        snow = generator.outputs['snow_mask']
        assert snow[GRID // 2, GRID // 2] > 0, "Peak should be snow-capped"
        assert snow[0, 0] == 0, "Open ocean has no snow"

    def test_deterministic(self, small_config, world, logger):
        """Same seed and configuration give identical fields."""
        first = ClimateGenerator(small_config, logger, **world)
        second = ClimateGenerator(small_config, logger, **world)
        first.generate()
        second.generate()
        for key, value in first.outputs.items():
            assert np.array_equal(value, second.outputs[key]), f"{key} differs between runs"

    def test_outputs_are_read_only(self, small_config, world, logger):
        generator = ClimateGenerator(small_config, logger, **world)
        generator.generate()
        with pytest.raises(ValueError):
            generator.outputs['temperature'][0, 0] = 0.5

    def test_stages_follow_their_upstream(self, small_config, world, logger):
        generator = ClimateGenerator(small_config, logger, **world)
        position = {stage.name: i for i, stage in enumerate(generator.stages)}
        assert set(position) == ALL_STAGES
        for stage in generator.stages:
            for upstream in stage.upstream:
                assert position[upstream.name] < position[stage.name]

    def test_progress_wrapper_sees_every_stage(self, small_config, world, logger):
        seen = []

        def progress(stages):
            for stage in stages:
                seen.append(stage.name)
                yield stage

        ClimateGenerator(small_config, logger, **world).generate(progress=progress)
        assert set(seen) == ALL_STAGES

    def test_lazy_upstream_generation(self, small_config, world, logger):
        """Generating a leaf stage pulls its whole upstream chain."""
        generator = ClimateGenerator(small_config, logger, **world)
        assert generator.humidity_advection.generate()
        assert generator.rain_shadow.is_ready()
        assert generator.wind_smoothing.is_ready()
        assert generator.base_wind.is_ready()
        assert not generator.mountain_cooling.is_ready()


class TestFailures:
    """Failures are reported per stage and never raise."""

    def test_missing_elevation(self, small_config, world, logger, caplog):
        world = dict(world, elevation=None)
        generator = ClimateGenerator(small_config, logger, **world)
        with caplog.at_level(logging.WARNING):
            results = generator.generate()

        assert results['base_temperature'] is True
        assert results['base_humidity'] is True
        assert results['base_wind'] is False
        assert results['temperature_advection'] is False
        assert 'no elevation provider' in caplog.text

    def test_invalid_resolution(self, small_config, world, logger, caplog):
        config = dict(small_config, map_resolution=0)
        generator = ClimateGenerator(config, logger, **world)
        with caplog.at_level(logging.ERROR):
            results = generator.generate()
        assert results['base_temperature'] is False
        assert 'map_resolution' in caplog.text
        assert results['base_wind'] is True, "Wind runs on its own grid"

    def test_failure_keeps_previous_output(self, small_config, world, logger):
        generator = ClimateGenerator(small_config, logger, **world)
        assert generator.base_temperature.generate()
        before = generator.base_temperature.outputs['temperature']

        generator.base_temperature.settings['map_resolution'] = 0
        assert generator.base_temperature.generate() is False
        assert generator.base_temperature.outputs['temperature'] is before

    def test_region_partition_must_match_wind_grid(self, small_config, world, logger, caplog):
        world = dict(world, regions=voronoi_partition(16, 16, 5, seed=7))
        generator = ClimateGenerator(small_config, logger, **world)
        with caplog.at_level(logging.ERROR):
            results = generator.generate()
        assert results['base_wind'] is True
        assert results['coastal_gyre'] is False
        assert results['temperature_advection'] is False
        assert 'region partition' in caplog.text

    def test_dependency_cycle(self, logger, caplog):
        a = LoopStage(logger, "a")
        b = LoopStage(logger, "b")
        a.partner = b
        b.partner = a

        with pytest.raises(DependencyCycleError):
            topological_order([a])

        with caplog.at_level(logging.ERROR):
            assert a.generate() is False
        assert 'cycle' in caplog.text
        assert not a.is_ready() and not b.is_ready()
