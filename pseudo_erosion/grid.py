# pseudo_erosion/grid.py

"""
================================================================================
DRAINAGE GRID
================================================================================
This module builds the coarse lattice of drainage sites used by one
distance-field pass: where each site sits, and which neighbouring site it
drains toward (its flow successor).

Data Contract:
---------------
- Inputs (on initialization):
    - density (int): Lattice cells per side; the grid holds (density+1)^2 sites.
    - image_size (int): Side length in pixels of the image the grid will drive.
    - feature_size (float): Pixels per noise-sample unit.
    - noise_ctx (NoiseContext): Shared, read-only noise sampler.
    - source_image (np.ndarray, optional): Packed pixels from an earlier pass.
      When given, elevations come from its decoded heights instead of noise.
- Outputs:
    - site_x, site_y: float arrays [row, col] of positions in sample space.
    - successor_col, successor_row: int arrays [row, col] of lattice indices.
- Side Effects: Logs messages using the provided logger.
- Invariants:
    - Every successor lies in the Moore neighbourhood of its site (self
      included).
    - All arrays are read-only once construction finishes.
================================================================================
"""

import logging
from typing import NamedTuple

import numpy as np
from numba import njit

from . import codec
from . import config as DEFAULTS
from .exceptions import ConfigError

# Moore neighbourhood as (d_col, d_row), in the fixed enumeration order:
# NW, N, NE, E, SE, S, SW, W, then the cell itself. Ties in the lowest
# neighbour search go to whichever comes first here.
NEIGHBOR_OFFSETS = np.array([
    [-1, -1], [0, -1], [1, -1],
    [1, 0], [1, 1], [0, 1],
    [-1, 1], [-1, 0], [0, 0],
], dtype=np.int64)


class Site(NamedTuple):
    x: float
    y: float
    successor_col: int
    successor_row: int


@njit
def _assign_successors(elevation, density, offsets):
    """Points every site at its strictly-lowest Moore neighbour."""
    n = density + 1
    successor_col = np.empty((n, n), dtype=np.int64)
    successor_row = np.empty((n, n), dtype=np.int64)

    for row in range(n):
        for col in range(n):
            best_elevation = np.inf
            best_col = col
            best_row = row
            for k in range(offsets.shape[0]):
                c = col + offsets[k, 0]
                r = row + offsets[k, 1]
                if c < 0 or c > density or r < 0 or r > density:
                    continue
                e = elevation[r, c]
                if e < best_elevation:
                    best_elevation = e
                    best_col = c
                    best_row = r
            successor_col[row, col] = best_col
            successor_row[row, col] = best_row

    return successor_col, successor_row


class DrainageGrid:
    """
    A (density+1) x (density+1) lattice of drainage sites with fixed flow
    connectivity. Build one per pipeline pass and drop it afterwards.
    """
    def __init__(self, density: int, image_size: int, feature_size: float, noise_ctx,
                 source_image: np.ndarray = None, jitter: str = DEFAULTS.DEFAULT_JITTER,
                 seed: int = None, logger: logging.Logger = None):
        """
        Initializes the grid and computes positions and connectivity.

        Args:
            density (int): Lattice cells per side.
            image_size (int): Output image side length in pixels.
            feature_size (float): Pixels per noise-sample unit.
            noise_ctx (NoiseContext): Noise sampler shared across the run.
            source_image (np.ndarray, optional): Packed pixels of an earlier
                pass, used as the elevation signal in feedback mode.
            jitter (str): 'noise' or 'uniform' site displacement.
            seed (int, optional): RNG seed for uniform jitter. Defaults to the
                noise seed. The pipeline passes a different seed per pass.
            logger (logging.Logger, optional): Logger for runtime messages.
        """
        if density < 1:
            raise ConfigError(f"Grid density must be at least 1, got {density}")
        if image_size < 1:
            raise ConfigError(f"Image size must be at least 1, got {image_size}")
        if feature_size <= 0:
            raise ConfigError(f"Feature size must be positive, got {feature_size}")
        if jitter not in DEFAULTS.JITTER_MODES:
            raise ConfigError(f"Unknown jitter mode '{jitter}'. Expected one of {DEFAULTS.JITTER_MODES}")
        if source_image is not None and source_image.shape != (image_size, image_size):
            raise ConfigError(
                f"Source image is {source_image.shape[1]}x{source_image.shape[0]}, "
                f"expected {image_size}x{image_size}"
            )

        self.logger = logger or logging.getLogger(__name__)
        self.density = density
        self.image_size = image_size
        self.feature_size = feature_size
        self.jitter = jitter
        self.seed = noise_ctx.seed if seed is None else seed
        # Distance between neighbouring base positions, in sample space.
        self.spacing = image_size / density / feature_size

        self.site_x, self.site_y = self._place_sites(noise_ctx)
        elevation = self._site_elevations(noise_ctx, source_image)
        self.successor_col, self.successor_row = _assign_successors(elevation, density, NEIGHBOR_OFFSETS)

        for array in (self.site_x, self.site_y, self.successor_col, self.successor_row):
            array.setflags(write=False)

        mode = "feedback" if source_image is not None else "noise"
        self.logger.debug(
            f"Built {self.size}x{self.size} drainage grid ({mode} connectivity, "
            f"{self.jitter} jitter, {self.sink_count()} sinks)."
        )

    @property
    def size(self) -> int:
        """Sites per side."""
        return self.density + 1

    def _place_sites(self, noise_ctx):
        """Base lattice positions plus a per-site jitter, in sample space."""
        n = self.size
        base = np.arange(n, dtype=np.float64) * self.image_size / self.density / self.feature_size
        base_x, base_y = np.meshgrid(base, base)

        if self.jitter == "noise":
            amplitude = DEFAULTS.NOISE_JITTER_FACTOR * self.spacing
            dx = noise_ctx.sample4_lattice(base, base, *DEFAULTS.JITTER_X_ZW) * amplitude
            dy = noise_ctx.sample4_lattice(base, base, *DEFAULTS.JITTER_Y_ZW) * amplitude
        else:
            rng = np.random.default_rng(self.seed)
            high = DEFAULTS.UNIFORM_JITTER_FACTOR * self.spacing
            dx = rng.uniform(0.0, high, size=(n, n))
            dy = rng.uniform(0.0, high, size=(n, n))

        return base_x + dx, base_y + dy

    def _site_elevations(self, noise_ctx, source_image):
        """The scalar each site is compared by when choosing a successor."""
        if source_image is None:
            z, w = DEFAULTS.ELEVATION_ZW
            elevation = np.empty((self.size, self.size), dtype=np.float64)
            for row in range(self.size):
                for col in range(self.size):
                    elevation[row, col] = noise_ctx.sample4(self.site_x[row, col], self.site_y[row, col], z, w)
            return elevation

        # Nearest pixel by truncation; jitter can push edge sites just outside.
        heights = codec.decode_height(source_image)
        last = self.image_size - 1
        px = np.clip(np.trunc(self.site_x * self.feature_size), 0, last).astype(np.int64)
        py = np.clip(np.trunc(self.site_y * self.feature_size), 0, last).astype(np.int64)
        return heights[py, px]

    def site(self, col: int, row: int) -> Site:
        return Site(
            float(self.site_x[row, col]), float(self.site_y[row, col]),
            int(self.successor_col[row, col]), int(self.successor_row[row, col]),
        )

    def sink_count(self) -> int:
        """Number of sites that drain into themselves."""
        rows, cols = np.indices((self.size, self.size))
        return int(np.count_nonzero((self.successor_col == cols) & (self.successor_row == rows)))
