# climate_generator/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the climate
generator. These values are used if they are not explicitly provided by the
user's configuration. Every stage looks up its settings here by upper-casing
the configuration key (e.g. 'sea_level' -> SEA_LEVEL).

DO NOT MODIFY THIS FILE FOR A SPECIFIC SIMULATION.
Instead, pass a configuration dictionary to the ClimateGenerator instance.
================================================================================
"""

# --- Grid ---
# Climate layers (temperature, humidity) and wind layers are generated on their
# own square grids. Stages sample each other bilinearly, so the two do not
# need to match.
MAP_RESOLUTION = 512
WIND_RESOLUTION = 512

# Normalized elevation below which a pixel counts as water.
SEA_LEVEL = 0.3

# --- Seeds ---
# 0 is a sentinel meaning "pick a fresh random seed on every generation".
DEFAULT_SEED = 12345
# Offsets keep the noise layers independent but deterministic from one seed.
HUMIDITY_SEED_OFFSET = 0
WIND_ANGLE_SEED_OFFSET = 12345
WIND_CALM_SEED_OFFSET = 54321
# Lattice offsets drawn per seed so different seeds sample different regions
# of the noise plane.
NOISE_OFFSET_RANGE = 100000

# --- Base Temperature ---
TEMPERATURE_FALLOFF = 1.5
EQUATOR_TEMP = 1.0
POLE_TEMP = 0.0

# --- Base Humidity ---
HUMIDITY_FALLOFF = 1.2
EQUATOR_HUMIDITY = 0.9
POLE_HUMIDITY = 0.2
HUMIDITY_NOISE_STRENGTH = 0.25
# Noise frequency is expressed in features per map width.
HUMIDITY_NOISE_FREQUENCY = 4.0
HUMIDITY_NOISE_OCTAVES = 4
HUMIDITY_NOISE_PERSISTENCE = 0.5
HUMIDITY_NOISE_LACUNARITY = 2.0
CIRCULATION_CELL_STRENGTH = 0.25

# Wet/dry circulation cells as (absolute latitude in degrees, cell value).
# Values between two anchors are smoothstep-interpolated; poleward of the last
# anchor the last value holds.
CIRCULATION_CELLS = (
    (0.0, 0.8),    # ITCZ, rising wet air
    (25.0, -1.0),  # subtropical high, deserts
    (45.0, 0.6),   # mid-latitude storm track
    (75.0, -0.8),  # polar high
)

# --- Coastal Influence ---
COAST_RANGE_PX = 40
COAST_DISTANCE_SWEEPS = 4
COAST_DISTANCE_SENTINEL = 999999

# --- Temperature: Ocean & Altitude ---
APPLY_ALTITUDE_COOLING = True
ALTITUDE_COOLING = 0.5
APPLY_OCEAN_MODERATION = True
TEMPERATURE_COASTAL_BLEND = 0.6
# How far ocean temperature is pulled toward the 0.5 midpoint.
OCEAN_SOFTEN = 0.4

# --- Temperature: Mountain Cooling & Snow Caps ---
APPLY_MOUNTAIN_COOLING = True
MOUNTAIN_START_HEIGHT = 0.5
MOUNTAIN_COOLING_STRENGTH = 0.8
MOUNTAIN_COOLING_CURVE = 2.0
APPLY_SNOW_CAPS = True
SNOW_CAP_HEIGHT = 0.8
SNOW_CAP_TEMP = 0.1
SNOW_CAP_BLEND = 0.7

# --- Humidity: Ocean & Altitude ---
APPLY_OCEAN_INFLUENCE = True
OCEAN_SATURATION = 0.8
OCEAN_WATER_BLEND = 0.7
HUMIDITY_COASTAL_BLEND = 0.6
APPLY_ALTITUDE_DRYING = True
ALTITUDE_DRYING = 0.5

# --- Humidity: Mountain Drying ---
APPLY_MOUNTAIN_DRYING = True
DRY_START_HEIGHT = 0.5
DRY_STRENGTH = 0.8
DRY_CURVE_POWER = 2.0
DRYING_MIN_HUMIDITY = 0.05

# --- Humidity: Rain Shadow ---
# One of 'west_to_east', 'east_to_west', 'north_to_south', 'south_to_north'.
RAIN_SHADOW_DIRECTION = 'west_to_east'
OCEAN_RECHARGE = 0.5
STARTING_AIR_MOISTURE = 1.0
RIDGE_SENSITIVITY = 1.0
WINDWARD_RAIN_BOOST = 0.4
LEEWARD_DRY_LOSS = 0.6
SHADOW_PERSISTENCE = 0.6
MIN_AIR_MOISTURE = 0.05
RAIN_SHADOW_MIN_HUMIDITY = 0.02
RAIN_SHADOW_MAX_HUMIDITY = 1.0

# --- Wind: Planetary Belts ---
BASE_WIND_STRENGTH = 1.0
# Belt centres in absolute degrees of latitude and how far their influence
# reaches before fading to zero.
TRADE_WIND_CENTER_DEG = 15.0
WESTERLIES_CENTER_DEG = 45.0
POLAR_EASTERLIES_CENTER_DEG = 75.0
WIND_BELT_FALLOFF_DEG = 50.0
DIRECTION_JITTER = 0.3
CALM_ZONES_STRENGTH = 0.4
WIND_NOISE_FREQUENCY = 3.0
WIND_NOISE_OCTAVES = 4
WIND_NOISE_PERSISTENCE = 0.4
WIND_NOISE_LACUNARITY = 1.5

# --- Wind: Ridge Blocking ---
MOUNTAIN_BLOCK_HEIGHT = 0.6
MOUNTAIN_BLOCK_STRENGTH = 0.8
RIDGE_LOOK_DISTANCE = 3

# --- Wind: Coastal Gyres ---
MIN_SHARED_BORDER_FOR_MERGE = 50
COASTAL_INFLUENCE_RANGE_PX = 64
GLOBAL_COASTAL_GYRE_STRENGTH = 0.5
MIN_BASIN_PIXEL_COUNT = 200
BIG_BASIN_PIXEL_COUNT = 20000

# --- Wind: Inland Propagation ---
INLAND_MOUNTAIN_HEIGHT = 0.6
INLAND_BLOCK_STRENGTH = 0.8
MAX_INLAND_RANGE_PX = 96
DECAY_PER_STEP = 0.05
COAST_INJECT_STRENGTH = 1.0
INLAND_BLEND_STRENGTH = 0.6
# Contributions at or below this strength stop spreading.
PROPAGATION_EPSILON = 1e-4

# --- Wind: Smoothing ---
SMOOTH_RADIUS = 8
SMOOTH_BLEND = 0.4
SMOOTH_ITERATIONS = 1
EDGE_ADAPTIVE = True
EDGE_BOOST = 0.5
EDGE_SENSITIVITY = 1.0

# --- Advection ---
TEMPERATURE_ADVECTION_SHIFT_PX = 8.0
TEMPERATURE_WIND_SPEED_POWER = 1.0
TEMPERATURE_ADVECTION_BLEND = 0.5
GLOBAL_TEMPERATURE_OFFSET = 0.0

HUMIDITY_ADVECTION_SHIFT_PX = 8.0
HUMIDITY_WIND_SPEED_POWER = 1.0
HUMIDITY_ADVECTION_BLEND = 0.5
GLOBAL_HUMIDITY_OFFSET = 0.0
ADVECTED_MIN_HUMIDITY = 0.02
ADVECTED_MAX_HUMIDITY = 1.0

# Wind vectors shorter than this have no usable direction.
MIN_WIND_SPEED = 1e-6

# --- Reference Region Partition (CLI only) ---
DEFAULT_NUM_REGIONS = 24
OCEANIC_REGION_FRACTION = 0.6
REGION_SEED_OFFSET = 54321
