# pseudo_erosion/codec.py

"""
================================================================================
HEIGHT <-> COLOR CODEC
================================================================================
This module converts scalar heights in [-1, 1] to packed 32-bit grayscale
pixels and back. Packed images are the only data passed between pipeline
passes, so every pass sees exactly the quantised heights the previous one
wrote.

Data Contract:
---------------
- Inputs:
    - heights: float NumPy arrays, nominally in [-1, 1].
    - pixels: uint32 NumPy arrays laid out as little-endian R, G, B, A bytes.
- Outputs:
    - encode_height: uint32 array with R = G = B and A = 255.
    - decode_height: float64 array, read from the red channel only.
- Side Effects: None.
- Invariants: |decode_height(encode_height(h)) - h| <= 1 / 127.5 for every
  h in [-1, 1]. Heights outside that range are clamped before quantisation.
================================================================================
"""

import numpy as np

from . import config as DEFAULTS

# Packed pixels are always interpreted in this byte order, whatever the host.
PIXEL_DTYPE = np.dtype('<u4')


def height_to_channel(heights) -> np.ndarray:
    """Quantises heights to 8-bit channel values (round half up)."""
    clamped = np.clip(np.asarray(heights, dtype=np.float64), -1.0, 1.0)
    return np.floor((clamped + 1.0) * DEFAULTS.CHANNEL_SCALE + 0.5).astype(np.uint8)


def channel_to_height(channel) -> np.ndarray:
    """Inverse of height_to_channel, without the rounding."""
    return np.asarray(channel, dtype=np.float64) / DEFAULTS.CHANNEL_SCALE - 1.0


def encode_height(heights) -> np.ndarray:
    """Packs heights into opaque grayscale pixels."""
    channel = height_to_channel(heights).astype(PIXEL_DTYPE)
    return (channel * DEFAULTS.GRAY_CHANNEL_MULTIPLIER) | DEFAULTS.OPAQUE_ALPHA


def decode_height(pixels) -> np.ndarray:
    """Reads heights back from packed pixels. The three color channels are
    identical by construction, so only red is consulted."""
    red = np.asarray(pixels, dtype=PIXEL_DTYPE) & 0xFF
    return channel_to_height(red)


def pixels_to_rgba(pixels: np.ndarray) -> np.ndarray:
    """Views a (h, w) packed image as a (h, w, 4) uint8 RGBA array."""
    packed = np.ascontiguousarray(pixels, dtype=PIXEL_DTYPE)
    return packed.view(np.uint8).reshape(packed.shape + (4,))


def rgba_to_pixels(rgba: np.ndarray) -> np.ndarray:
    """Packs a (h, w, 4) uint8 RGBA array into a (h, w) uint32 image."""
    data = np.ascontiguousarray(rgba, dtype=np.uint8)
    if data.ndim != 3 or data.shape[2] != 4:
        raise ValueError(f"Expected an (h, w, 4) RGBA array, got shape {data.shape}")
    return data.view(PIXEL_DTYPE).reshape(data.shape[:2])


def gray_to_pixels(gray: np.ndarray) -> np.ndarray:
    """Packs an 8-bit single-channel image into opaque grayscale pixels."""
    channel = np.asarray(gray, dtype=np.uint8).astype(PIXEL_DTYPE)
    return (channel * DEFAULTS.GRAY_CHANNEL_MULTIPLIER) | DEFAULTS.OPAQUE_ALPHA
