# pseudo_erosion/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the
pseudo-erosion generator. These values are used if they are not explicitly
provided by the user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC RUN.
Instead, pass a configuration dictionary to the ErosionPipeline instance.
================================================================================
"""

# --- Run Parameters ---
DEFAULT_SEED = 123456
DEFAULT_IMAGE_SIZE = 1024      # Output is DEFAULT_IMAGE_SIZE x DEFAULT_IMAGE_SIZE pixels
DEFAULT_FEATURE_SIZE = 64      # Pixels per noise-sample unit. Larger = smoother.
DEFAULT_GRID_SIZE = 30         # Base lattice density (sites per side minus one)
DEFAULT_OUTPUT_FILE = "output.png"

# --- Site Jitter ---
# 'noise': coherent, seed-reproducible displacement sampled from the noise field.
# 'uniform': the earlier variant, a uniform random offset per axis.
DEFAULT_JITTER = "noise"
JITTER_MODES = ("noise", "uniform")

# Noise jitter amplitude as a fraction of the site spacing.
NOISE_JITTER_FACTOR = 0.5
# Uniform jitter draws from [0, UNIFORM_JITTER_FACTOR * spacing).
UNIFORM_JITTER_FACTOR = 0.7

# Fixed (z, w) coordinates for the x and y jitter samples. They must differ
# so that the two displacement axes are decorrelated.
JITTER_X_ZW = (0.0, 1.5)
JITTER_Y_ZW = (1.5, 0.0)

# Fixed (z, w) coordinates for the first-pass elevation samples.
ELEVATION_ZW = (0.0, 0.0)

# --- Multiresolution Passes ---
# Density multiplier for each pass, applied to the base grid size.
STAGE_DENSITY_MULTIPLIERS = (1, 2, 4, 8, 16)
MAX_STAGES = len(STAGE_DENSITY_MULTIPLIERS)
# Index (1-based) of the pass whose image drives connectivity for each pass.
# Pass 1 uses raw noise; passes 3-5 all read pass 2's output.
STAGE_CONNECTIVITY_SOURCE = (None, 1, 2, 2, 2)
# Passes whose images each composite stage folds into the accumulator.
STAGE_COMPOSITE_LAYERS = {
    2: (2,),
    3: (3,),
    4: (3, 4),
    5: (3, 4, 5),
}

# --- Composite Weights ---
STAGE2_ACCUMULATOR_WEIGHT = 0.5
STAGE2_LAYER_WEIGHT = 0.25
STAGE4_LAYER_WEIGHT = 0.5
STAGE5_LAYER_WEIGHT = 0.3333

# --- Codec ---
# One 8-bit channel step in height units.
CHANNEL_SCALE = 127.5
OPAQUE_ALPHA = 0xFF000000
GRAY_CHANNEL_MULTIPLIER = 0x010101
