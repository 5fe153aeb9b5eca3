# pseudo_erosion/image_io.py

"""
================================================================================
IMAGE FILE I/O
================================================================================
Reads and writes heightmap images with Pillow. The rest of the package only
ever sees packed uint32 pixels (see codec.py); this module is the boundary
where those pixels become PNG files and back.

Data Contract:
---------------
- read_image(path) -> (pixels, width, height, channel_count)
    Raises FileNotFoundError / OSError when the file is missing or unreadable,
    ImageFormatError when the bytes are not a decodable image.
- write_image(path, pixels, width, height, channel_count, has_alpha)
    Raises OSError when the file cannot be written.
- Side Effects: File system reads/writes only.
================================================================================
"""

import os

import numpy as np
from PIL import Image, UnidentifiedImageError

from . import codec
from .exceptions import ImageFormatError

# Pillow modes we know how to turn into packed grayscale pixels.
_CHANNELS_BY_MODE = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}
# Single-channel modes with samples wider than 8 bits.
_WIDE_GRAY_MODES = ("I;16", "I;16L", "I;16B", "I;16N", "I", "F")


def _wide_gray_to_8bit(data: np.ndarray, mode: str) -> np.ndarray:
    """
    Rescales a 16-bit, 32-bit integer or float grayscale array to 8 bits.
    16-bit samples keep their high byte; 'I' and 'F' samples are stretched
    from their min..max range onto 0..255. A constant image maps to 128.
    """
    if mode.startswith("I;16"):
        return (data.astype(np.uint32) >> 8).astype(np.uint8)

    values = data.astype(np.float64)
    if not np.all(np.isfinite(values)):
        raise ImageFormatError(f"Image of mode '{mode}' contains non-finite samples")
    low, high = values.min(), values.max()
    if high == low:
        return np.full(values.shape, 128, dtype=np.uint8)
    return np.floor((values - low) / (high - low) * 255.0 + 0.5).astype(np.uint8)


def read_image(path: str):
    """
    Loads an image file and returns it as packed pixels. Color images keep
    their red channel as the height carrier; grayscale images are replicated
    into all three channels. 16-bit and float heightmaps are rescaled to 8 bits.
    """
    try:
        with Image.open(path) as img:
            img.load()
            mode = img.mode
            if mode in _WIDE_GRAY_MODES:
                data = _wide_gray_to_8bit(np.array(img), mode)
                mode = "L"
            else:
                if mode not in _CHANNELS_BY_MODE:
                    # Palettized and other 8-bit modes are converted to RGBA first.
                    img = img.convert("RGBA")
                    mode = "RGBA"
                data = np.array(img)
    except UnidentifiedImageError as e:
        raise ImageFormatError(f"Cannot decode image '{path}': {e}") from e

    height, width = data.shape[:2]
    channel_count = _CHANNELS_BY_MODE[mode]

    if channel_count == 4:
        pixels = codec.rgba_to_pixels(data)
    elif channel_count == 3:
        alpha = np.full((height, width, 1), 255, dtype=np.uint8)
        pixels = codec.rgba_to_pixels(np.concatenate([data, alpha], axis=-1))
    else:
        gray = data if channel_count == 1 else data[..., 0]
        pixels = codec.gray_to_pixels(gray)

    return pixels, width, height, channel_count


def write_image(path: str, pixels: np.ndarray, width: int, height: int, channel_count: int = 4, has_alpha: bool = True):
    """Saves packed pixels as a PNG file, creating the parent directory if needed."""
    if pixels.shape != (height, width):
        raise ValueError(f"Pixel buffer shape {pixels.shape} does not match {width}x{height}")

    rgba = codec.pixels_to_rgba(pixels)
    if channel_count == 4 and has_alpha:
        img = Image.fromarray(rgba, "RGBA")
    elif channel_count == 3 or (channel_count == 4 and not has_alpha):
        img = Image.fromarray(np.ascontiguousarray(rgba[..., :3]), "RGB")
    elif channel_count == 1:
        img = Image.fromarray(np.ascontiguousarray(rgba[..., 0]), "L")
    else:
        raise ValueError(f"Unsupported channel count: {channel_count}")

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    img.save(path, "PNG")
