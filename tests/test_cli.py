"""
Tests for the offline generation script.
"""

import json

import numpy as np

import generate_climate

GRID = 32


def write_inputs(tmp_path, island_heights, params):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({'climate_generation_parameters': params}))
    heightmap_path = tmp_path / "heights.npy"
    np.save(heightmap_path, island_heights)
    return str(config_path), str(heightmap_path)


class TestGenerateClimateScript:
    """End-to-end runs of main()."""

    def test_writes_fields_and_settings(self, tmp_path, island_heights, small_config):
        params = dict(small_config, num_regions=6)
        config_path, heightmap_path = write_inputs(tmp_path, island_heights, params)
        output_path = tmp_path / "out" / "climate.npz"

        code = generate_climate.main([
            "--config", config_path, "--heightmap", heightmap_path, "--output", str(output_path),
        ])

        assert code == 0
        with np.load(output_path) as fields:
            assert set(fields.files) == {'temperature', 'humidity', 'wind', 'wind_speed', 'snow_mask'}
            assert fields['wind'].shape == (GRID, GRID, 2)

        settings = json.loads((tmp_path / "out" / "climate_settings.json").read_text())
        assert settings['base_temperature']['map_resolution'] == GRID
        assert settings['coastal_gyre']['min_basin_pixel_count'] == 10

    def test_explicit_regions_and_plates(self, tmp_path, island_heights, small_config):
        config_path, heightmap_path = write_inputs(tmp_path, island_heights, small_config)
        regions_path = tmp_path / "regions.npy"
        region_map = np.zeros((GRID, GRID), dtype=np.int64)
        region_map[:, GRID // 2:] = 1
        np.save(regions_path, region_map)
        plates_path = tmp_path / "plates.json"
        plates_path.write_text(json.dumps({"0": "oceanic", "1": "continental"}))
        output_path = tmp_path / "climate.npz"

        code = generate_climate.main([
            "--config", config_path, "--heightmap", heightmap_path, "--output", str(output_path),
            "--regions", str(regions_path), "--plates", str(plates_path),
        ])
        assert code == 0
        assert output_path.exists()

    def test_bad_config_fails(self, tmp_path, island_heights):
        config_path = tmp_path / "config.json"
        config_path.write_text("{not json")
        heightmap_path = tmp_path / "heights.npy"
        np.save(heightmap_path, island_heights)

        code = generate_climate.main([
            "--config", str(config_path), "--heightmap", str(heightmap_path),
            "--output", str(tmp_path / "climate.npz"),
        ])
        assert code == 1
        assert not (tmp_path / "climate.npz").exists()

    def test_failed_stage_saves_nothing(self, tmp_path, island_heights, small_config):
        params = dict(small_config, smooth_radius=0)
        config_path, heightmap_path = write_inputs(tmp_path, island_heights, params)
        output_path = tmp_path / "climate.npz"

        code = generate_climate.main([
            "--config", config_path, "--heightmap", heightmap_path, "--output", str(output_path),
        ])
        assert code == 1
        assert not output_path.exists()

    def test_boundary_plates_are_accepted(self, tmp_path, island_heights, small_config):
        config_path, heightmap_path = write_inputs(tmp_path, island_heights, small_config)
        regions_path = tmp_path / "regions.npy"
        region_map = np.zeros((GRID, GRID), dtype=np.int64)
        region_map[:, GRID // 2:] = 1
        np.save(regions_path, region_map)
        plates_path = tmp_path / "plates.json"
        plates_path.write_text(json.dumps({"0": "oceanic", "1": "boundary"}))

        code = generate_climate.main([
            "--config", config_path, "--heightmap", heightmap_path,
            "--output", str(tmp_path / "climate.npz"),
            "--regions", str(regions_path), "--plates", str(plates_path),
        ])
        assert code == 0

    def test_unreadable_regions_or_plates_fail(self, tmp_path, island_heights, small_config):
        config_path, heightmap_path = write_inputs(tmp_path, island_heights, small_config)
        output_path = tmp_path / "climate.npz"

        code = generate_climate.main([
            "--config", config_path, "--heightmap", heightmap_path, "--output", str(output_path),
            "--regions", str(tmp_path / "missing.npy"),
        ])
        assert code == 1

        regions_path = tmp_path / "regions.npy"
        np.save(regions_path, np.zeros((GRID, GRID), dtype=np.int64))
        plates_path = tmp_path / "plates.json"
        plates_path.write_text("{not json")
        code = generate_climate.main([
            "--config", config_path, "--heightmap", heightmap_path, "--output", str(output_path),
            "--regions", str(regions_path), "--plates", str(plates_path),
        ])
        assert code == 1
        assert not output_path.exists()
