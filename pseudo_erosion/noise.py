# pseudo_erosion/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module wraps OpenSimplex noise behind a small, seeded context object that
the grid builder and the pipeline share for a whole run.

Data Contract:
---------------
- Inputs:
    - seed: integer used to build the OpenSimplex permutation.
    - x, y, z, w: sample coordinates (scalars or 1-D NumPy arrays).
- Outputs:
    - Noise values in the range [-1, 1].
- Side Effects: None.
- Invariants: The same seed and coordinates always return the same value.
================================================================================
"""

import numpy as np
from opensimplex import OpenSimplex

from . import codec
from .exceptions import PseudoErosionError


class NoiseContext:
    """Seeded, read-only coherent noise sampler."""

    def __init__(self, seed: int):
        self.seed = int(seed)
        self._simplex = OpenSimplex(seed=self.seed)

    @property
    def released(self) -> bool:
        return self._simplex is None

    def _sampler(self) -> OpenSimplex:
        if self._simplex is None:
            raise PseudoErosionError("Noise context has been released")
        return self._simplex

    def sample3(self, x: float, y: float, z: float) -> float:
        return self._sampler().noise3(x, y, z)

    def sample4(self, x: float, y: float, z: float, w: float) -> float:
        return self._sampler().noise4(x, y, z, w)

    def sample4_lattice(self, xs: np.ndarray, ys: np.ndarray, z: float, w: float) -> np.ndarray:
        """
        Samples noise on the outer product of xs and ys at a fixed (z, w).
        Returns an array of shape (len(ys), len(xs)), indexed [row, col].
        """
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        # noise4array orders its axes (w, z, y, x).
        values = self._sampler().noise4array(xs, ys, np.array([z], dtype=np.float64), np.array([w], dtype=np.float64))
        return values[0, 0]

    def release(self):
        """
        Drops the sampler. Whoever created the context releases it; any
        sample call afterwards raises PseudoErosionError.
        """
        self._simplex = None


def generate_initial_noise_image(noise_ctx: NoiseContext, size: int, feature_size: float) -> np.ndarray:
    """
    Generates a raw coherent-noise heightmap, one sample per pixel at
    (x / feature_size, y / feature_size, 0, 0), encoded as packed pixels.
    """
    coords = np.arange(size, dtype=np.float64) / feature_size
    values = noise_ctx.sample4_lattice(coords, coords, 0.0, 0.0)
    return codec.encode_height(values)
