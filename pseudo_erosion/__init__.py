# pseudo_erosion/__init__.py

# This file makes the 'pseudo_erosion' directory a Python package.
# We can also use it to define the public API of the package.

from .exceptions import PseudoErosionError, ConfigError, ImageFormatError
from .noise import NoiseContext, generate_initial_noise_image
from .grid import DrainageGrid, Site
from .distance_field import compute_heights, render_distance_field
from .pipeline import ErosionPipeline

__all__ = [
    "PseudoErosionError", "ConfigError", "ImageFormatError",
    "NoiseContext", "generate_initial_noise_image",
    "DrainageGrid", "Site",
    "compute_heights", "render_distance_field",
    "ErosionPipeline",
]
