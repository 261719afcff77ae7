# generate_climate.py

"""
================================================================================
OFFLINE CLIMATE GENERATION SCRIPT
================================================================================
This script is a command-line tool for generating the climate layers of a
world from a heightmap and saving them to a compressed NumPy archive.

Usage:
    python generate_climate.py --config path/to/config.json --heightmap h.npy
        [--regions regions.npy --plates plates.json] [--output climate.npz]

The heightmap is a 2D array of normalized elevations (row 0 = south edge).
Without --regions, a seeded Voronoi partition with random plate types is
built on the wind grid.
================================================================================
"""
import os
import sys
import json
import logging
import argparse

import numpy as np
from tqdm import tqdm

# Add project root to Python path to allow importing from climate_generator
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from climate_generator import config as DEFAULTS
from climate_generator.errors import InvalidConfiguration
from climate_generator.generator import ClimateGenerator
from climate_generator.providers import HeightmapElevation
from climate_generator.tectonics import (PlateClassification, RegionPartition, random_plate_types,
                                         voronoi_partition)


def load_config(config_path: str, logger: logging.Logger) -> dict:
    logger.info(f"Loading configuration from: {config_path}")
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.critical(f"Failed to load or parse config file: {e}")
        return None
    return config.get('climate_generation_parameters', {})


def build_regions(params: dict, regions_path: str, plates_path: str, logger: logging.Logger):
    """
    Loads the region partition and plate types, or builds a Voronoi stand-in.
    Returns None when the given files cannot be loaded.
    """
    if regions_path:
        try:
            regions = RegionPartition(np.load(regions_path))
            plate_types = {}
            if plates_path:
                with open(plates_path, 'r') as f:
                    plate_types = json.load(f)
            plates = PlateClassification(plate_types)
        except (OSError, ValueError, InvalidConfiguration) as e:
            logger.critical(f"Failed to load regions or plates: {e}")
            return None
        logger.info(f"Loaded {len(regions.all_region_ids())} regions from {regions_path}")
        return regions, plates

    resolution = params.get('wind_resolution', DEFAULTS.WIND_RESOLUTION)
    seed = params.get('seed', DEFAULTS.DEFAULT_SEED) + params.get('region_seed_offset', DEFAULTS.REGION_SEED_OFFSET)
    num_regions = params.get('num_regions', DEFAULTS.DEFAULT_NUM_REGIONS)
    regions = voronoi_partition(resolution, resolution, num_regions, seed)
    plates = random_plate_types(
        regions.all_region_ids(),
        params.get('oceanic_region_fraction', DEFAULTS.OCEANIC_REGION_FRACTION), seed
    )
    logger.info(f"Built a Voronoi partition with {num_regions} regions on a {resolution}px grid")
    return regions, plates


def generate_climate(config_path: str, heightmap_path: str, output_path: str,
                     regions_path: str = None, plates_path: str = None) -> bool:
    """
    Loads a configuration and heightmap, runs every climate stage and saves
    the final fields to `output_path`.
    """
    # 1. --- Setup Logging ---
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    logger = logging.getLogger("ClimateGenerator")

    # 2. --- Load Configuration ---
    params = load_config(config_path, logger)
    if params is None:
        return False

    # 3. --- Load Terrain ---
    try:
        elevation = HeightmapElevation(np.load(heightmap_path))
    except (OSError, ValueError, InvalidConfiguration) as e:
        logger.critical(f"Failed to load heightmap: {e}")
        return False
    logger.info(f"Loaded heightmap {elevation.shape} from {heightmap_path}")
    loaded = build_regions(params, regions_path, plates_path, logger)
    if loaded is None:
        return False
    regions, plates = loaded

    # 4. --- Generate ---
    generator = ClimateGenerator(params, logger, elevation=elevation, regions=regions, plates=plates)
    results = generator.generate(progress=lambda stages: tqdm(stages, desc="Climate Stages"))
    if not all(results.values()):
        logger.error("Some stages failed, nothing was saved.")
        return False

    # 5. --- Save ---
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    np.savez_compressed(output_path, **generator.outputs)

    settings_path = os.path.splitext(output_path)[0] + "_settings.json"
    effective = {stage.name: stage.settings for stage in generator.stages}
    with open(settings_path, 'w') as f:
        json.dump(effective, f, indent=2, default=str)

    logger.info(f"Climate fields saved to: {output_path}")
    logger.info(f"Effective settings saved to: {settings_path}")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Offline climate generator for a normalized heightmap.")
    parser.add_argument("--config", type=str, required=True,
                        help="Path to the JSON configuration file.")
    parser.add_argument("--heightmap", type=str, required=True,
                        help="Path to a .npy heightmap with values in [0, 1].")
    parser.add_argument("--regions", type=str, default=None,
                        help="Optional .npy region id map on the wind grid.")
    parser.add_argument("--plates", type=str, default=None,
                        help="Optional JSON mapping region id -> 'oceanic' | 'continental'.")
    parser.add_argument("--output", type=str, default="climate.npz",
                        help="Where to write the compressed climate fields.")
    args = parser.parse_args(argv)

    ok = generate_climate(args.config, args.heightmap, args.output, args.regions, args.plates)
    return 0 if ok else 1


# --- Command-Line Interface ---
if __name__ == "__main__":
    sys.exit(main())
