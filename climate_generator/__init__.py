# climate_generator/__init__.py

from .generator import ClimateGenerator
from .providers import HeightmapElevation, SeedSource
from .tectonics import PlateClassification, PlateType, RegionPartition
