# pseudo_erosion/distance_field.py

"""
================================================================================
PSEUDO-EROSION DISTANCE FIELD
================================================================================
For every output pixel, this module finds the distance to the nearest
site-to-successor segment of a DrainageGrid. That distance is the pixel's
raw erosion height: zero on a drainage channel, rising between channels.

Data Contract:
---------------
- Inputs:
    - grid (DrainageGrid): positions and successors for one pass.
    - image_size (int), feature_size (float): output geometry, which must be
      the same values the grid was built with.
- Outputs:
    - compute_heights: float64 array (image_size, image_size) of distances.
    - render_distance_field: the same heights encoded as packed pixels.
- Side Effects: None.
- Invariants:
    - Every height is finite and >= 0.
    - Only the 9 sites around a pixel's coarse cell are considered.
    - A sink site (its own successor) contributes plain point distance.
================================================================================
"""

import numpy as np
from numba import njit

from . import codec
from .grid import NEIGHBOR_OFFSETS


@njit
def _segment_distance(px, py, ax, ay, bx, by):
    """
    Distance from P to the segment A-B with explicit endpoint branches.
    f1 is the (negated) projection of AP onto AB in units of |AB|^2, so
    f1 > 0 lies behind A and f1 < -1 lies past B.
    """
    dx = ax - bx
    dy = ay - by
    denominator = dy * dy + dx * dx
    if denominator == 0.0:
        # Sink: A == B, the segment collapses to a point.
        return np.sqrt((px - ax) * (px - ax) + (py - ay) * (py - ay))

    f1 = (dy * (py - ay) + dx * (px - ax)) / denominator
    if f1 > 0.0:
        return np.sqrt((px - ax) * (px - ax) + (py - ay) * (py - ay))
    if f1 < -1.0:
        return np.sqrt((px - bx) * (px - bx) + (py - by) * (py - by))
    cross = dx * (ay - py) - dy * (ax - px)
    return abs(cross) / np.sqrt(denominator)


@njit
def _distance_field_kernel(site_x, site_y, successor_col, successor_row,
                           density, image_size, feature_size, offsets):
    heights = np.empty((image_size, image_size), dtype=np.float64)

    for py in range(image_size):
        ngy = (density * py) // image_size
        sy = py / feature_size
        for px in range(image_size):
            ngx = (density * px) // image_size
            sx = px / feature_size

            min_h = np.inf
            for k in range(offsets.shape[0]):
                c = ngx + offsets[k, 0]
                r = ngy + offsets[k, 1]
                if c < 0 or c > density or r < 0 or r > density:
                    continue
                ax = site_x[r, c]
                ay = site_y[r, c]
                bc = successor_col[r, c]
                br = successor_row[r, c]
                d = _segment_distance(sx, sy, ax, ay, site_x[br, bc], site_y[br, bc])
                if d < min_h:
                    min_h = d
            heights[py, px] = min_h

    return heights


def segment_distance(px: float, py: float, ax: float, ay: float, bx: float, by: float) -> float:
    """Point-to-segment distance as used by the kernel."""
    return _segment_distance(float(px), float(py), float(ax), float(ay), float(bx), float(by))


def compute_heights(grid, image_size: int, feature_size: float) -> np.ndarray:
    """Raw pseudo-erosion heights for every pixel of an image_size^2 output."""
    return _distance_field_kernel(
        grid.site_x, grid.site_y, grid.successor_col, grid.successor_row,
        grid.density, image_size, float(feature_size), NEIGHBOR_OFFSETS
    )


def render_distance_field(grid, image_size: int, feature_size: float) -> np.ndarray:
    """Computes the field for one pass and encodes it as packed pixels."""
    return codec.encode_height(compute_heights(grid, image_size, feature_size))
