# pseudo_erosion/pipeline.py

"""
================================================================================
EROSION PIPELINE
================================================================================
This module contains the ErosionPipeline class, which runs the pseudo-erosion
distance field at increasing grid densities and composites the passes into
one heightmap.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): Run parameters which can override the internal defaults.
      Expected keys include 'seed', 'image_size', 'feature_size', 'grid_size'.
    - logger: A configured Python logging object for runtime messages.
- Outputs (from run()):
    - A (image_size, image_size) uint32 array of packed grayscale pixels.
- Side Effects: Logs messages using the provided logger. Reads the input
  image and writes per-pass images when configured to.
- Invariants: Given the same settings and no input image, the output is
  byte-identical between runs.
================================================================================
"""

import logging
import os
import time

import numpy as np
from tqdm import tqdm

from . import compositor
from . import config as DEFAULTS
from . import image_io
from .distance_field import render_distance_field
from .exceptions import ConfigError
from .grid import DrainageGrid
from .noise import NoiseContext, generate_initial_noise_image


class ErosionPipeline:
    """
    Runs up to five pseudo-erosion passes (grid density x1 .. x16) and folds
    them into a single multi-scale terrain texture.
    """
    def __init__(self, config: dict, logger: logging.Logger, noise_ctx: NoiseContext = None):
        """
        Initializes the pipeline.

        Args:
            config (dict): User-defined parameters to override defaults.
            logger (logging.Logger): The logger instance for all output.
            noise_ctx (NoiseContext, optional): A pre-built noise sampler. If
                None, one will be created from the seed.
        """
        self.logger = logger
        self.user_config = config
        self.logger.info("ErosionPipeline initializing...")

        # --- Consolidate Configuration ---
        self.settings = {
            'seed': self.user_config.get('seed', DEFAULTS.DEFAULT_SEED),
            'image_size': self.user_config.get('image_size', DEFAULTS.DEFAULT_IMAGE_SIZE),
            'feature_size': self.user_config.get('feature_size', DEFAULTS.DEFAULT_FEATURE_SIZE),
            'grid_size': self.user_config.get('grid_size', DEFAULTS.DEFAULT_GRID_SIZE),
            'jitter': self.user_config.get('jitter', DEFAULTS.DEFAULT_JITTER),
            'stage_count': self.user_config.get('stage_count', DEFAULTS.MAX_STAGES),
            'input_file': self.user_config.get('input_file'),
            'stage_dir': self.user_config.get('stage_dir'),
            'show_progress': self.user_config.get('show_progress', False),
        }
        self._validate_settings()

        # --- Public Properties for easy access ---
        self.seed = self.settings['seed']
        self.image_size = self.settings['image_size']
        self.feature_size = self.settings['feature_size']
        self.grid_size = self.settings['grid_size']
        self.stage_count = self.settings['stage_count']

        # --- Initialize Noise ---
        if noise_ctx is not None:
            self.noise = noise_ctx
            self._owns_noise = False
            self.logger.debug("Initialized with injected noise context.")
        else:
            self.logger.debug("No noise context provided, creating one from seed.")
            self.noise = NoiseContext(self.seed)
            self._owns_noise = True

        self.logger.info(f"ErosionPipeline initialized with seed: {self.seed}")
        self.logger.info(
            f"Image: {self.image_size}x{self.image_size} px, feature size {self.feature_size}, "
            f"base grid {self.grid_size}, {self.stage_count} pass(es)"
        )

    def _validate_settings(self):
        """Rejects settings the algorithm cannot run with."""
        for key in ('seed', 'image_size', 'feature_size', 'grid_size', 'stage_count'):
            value = self.settings[key]
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ConfigError(f"Setting '{key}' must be an integer, got {value!r}")
        for key in ('image_size', 'feature_size', 'grid_size'):
            if self.settings[key] < 1:
                raise ConfigError(f"Setting '{key}' must be positive, got {self.settings[key]}")
        if not 1 <= self.settings['stage_count'] <= DEFAULTS.MAX_STAGES:
            raise ConfigError(
                f"Setting 'stage_count' must be between 1 and {DEFAULTS.MAX_STAGES}, "
                f"got {self.settings['stage_count']}"
            )
        if self.settings['jitter'] not in DEFAULTS.JITTER_MODES:
            raise ConfigError(
                f"Unknown jitter mode '{self.settings['jitter']}'. "
                f"Expected one of {DEFAULTS.JITTER_MODES}"
            )

    def load_input_image(self) -> np.ndarray:
        """
        Reads the pre-supplied first-pass image. Raises before any grid work
        if it is missing, undecodable, or the wrong size.
        """
        path = self.settings['input_file']
        self.logger.info(f"Loading input image from: {path}")
        pixels, width, height, channels = image_io.read_image(path)
        if (width, height) != (self.image_size, self.image_size):
            raise ConfigError(
                f"Input image '{path}' is {width}x{height}, "
                f"expected {self.image_size}x{self.image_size}"
            )
        self.logger.debug(f"Input image has {channels} channel(s).")
        return pixels

    def stage_density(self, stage: int) -> int:
        """Lattice density of a 1-based pass number."""
        return self.grid_size * DEFAULTS.STAGE_DENSITY_MULTIPLIERS[stage - 1]

    def stage_seed(self, stage: int) -> int:
        """Uniform-jitter RNG seed of a pass, offset so passes draw independent streams."""
        return self.seed + stage

    def close(self):
        """Releases the noise context if this pipeline created it."""
        if self._owns_noise and not self.noise.released:
            self.noise.release()
            self.logger.debug("Released noise context.")

    def run_pass(self, stage: int, source_image: np.ndarray = None) -> np.ndarray:
        """Builds one drainage grid and renders its distance field."""
        density = self.stage_density(stage)
        mode = "noise" if source_image is None else "feedback"
        self.logger.debug(f"Pass {stage}: density {density}, {mode} connectivity.")

        grid = DrainageGrid(
            density, self.image_size, self.feature_size, self.noise,
            source_image=source_image, jitter=self.settings['jitter'],
            seed=self.stage_seed(stage), logger=self.logger,
        )
        pixels = render_distance_field(grid, self.image_size, self.feature_size)
        del grid
        return pixels

    def run(self) -> np.ndarray:
        """
        Runs every configured pass and returns the composited heightmap as
        packed pixels.
        """
        start_time = time.perf_counter()

        # Fail fast on a bad input image, before any expensive work.
        input_pixels = None
        if self.settings['input_file']:
            input_pixels = self.load_input_image()

        passes = {}
        accumulator = None
        stages = range(1, self.stage_count + 1)
        for stage in tqdm(stages, desc="Erosion passes", disable=not self.settings['show_progress']):
            pass_start = time.perf_counter()

            if stage == 1 and input_pixels is not None:
                passes[stage] = input_pixels
                self.logger.info("Pass 1: using input image.")
            else:
                source_stage = DEFAULTS.STAGE_CONNECTIVITY_SOURCE[stage - 1]
                source_image = passes[source_stage] if source_stage else None
                passes[stage] = self.run_pass(stage, source_image)
                self.logger.info(
                    f"Pass {stage}: density {self.stage_density(stage)} done in "
                    f"{time.perf_counter() - pass_start:.2f} seconds."
                )

            self._save_stage_image(stage, passes[stage])

            if stage == 1:
                accumulator = passes[stage]
            else:
                layers = [passes[i] for i in DEFAULTS.STAGE_COMPOSITE_LAYERS[stage]]
                accumulator = compositor.composite_stage(stage, accumulator, layers)

        self.logger.info(f"Heightmap complete! Total time: {time.perf_counter() - start_time:.2f} seconds.")
        return accumulator

    def generate_initial_noise(self) -> np.ndarray:
        """The raw coherent-noise image the erosion passes start from."""
        self.logger.info("Generating raw noise image...")
        return generate_initial_noise_image(self.noise, self.image_size, self.feature_size)

    def _save_stage_image(self, stage: int, pixels: np.ndarray):
        stage_dir = self.settings['stage_dir']
        if not stage_dir:
            return
        path = os.path.join(stage_dir, f"stage_{stage}.png")
        image_io.write_image(path, pixels, self.image_size, self.image_size, 4, True)
        self.logger.debug(f"Saved pass {stage} image to {path}")
