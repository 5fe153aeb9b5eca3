"""Tests for the height <-> packed pixel codec."""

import numpy as np

from pseudo_erosion import codec


class TestEncode:
    """Test height quantisation and packing."""

    def test_known_channel_values(self):
        """Test the endpoints and midpoint of the height range."""
        channels = codec.height_to_channel(np.array([-1.0, 0.0, 1.0]))
        np.testing.assert_array_equal(channels, [0, 128, 255])

    def test_out_of_range_heights_are_clamped(self):
        """Test that heights beyond [-1, 1] saturate instead of wrapping."""
        channels = codec.height_to_channel(np.array([-3.0, 1.5, 40.0]))
        np.testing.assert_array_equal(channels, [0, 255, 255])

    def test_channels_replicated_and_opaque(self):
        """Test that R, G and B carry the same value and alpha is 255."""
        heights = np.linspace(-1.0, 1.0, 64).reshape(8, 8)
        rgba = codec.pixels_to_rgba(codec.encode_height(heights))

        assert rgba.shape == (8, 8, 4)
        np.testing.assert_array_equal(rgba[..., 0], rgba[..., 1])
        np.testing.assert_array_equal(rgba[..., 0], rgba[..., 2])
        assert np.all(rgba[..., 3] == 255)

    def test_packed_layout(self):
        """Test the packed word for a mid-gray pixel."""
        pixel = codec.encode_height(np.array([0.0]))[0]
        assert int(pixel) == 0xFF808080


class TestDecode:
    """Test reading heights back out of packed pixels."""

    def test_round_trip_error_bound(self):
        """Test that decode(encode(h)) stays within one channel step of h."""
        heights = np.linspace(-1.0, 1.0, 2001)
        decoded = codec.decode_height(codec.encode_height(heights))

        assert np.max(np.abs(decoded - heights)) <= 1.0 / 127.5

    def test_decode_is_exact_on_channel_values(self):
        """Test that re-encoding a decoded value gives back the same pixel."""
        pixels = codec.gray_to_pixels(np.arange(256, dtype=np.uint8))
        np.testing.assert_array_equal(codec.encode_height(codec.decode_height(pixels)), pixels)

    def test_decode_reads_red_channel(self):
        """Test that only the red byte is used."""
        rgba = np.zeros((1, 1, 4), dtype=np.uint8)
        rgba[0, 0] = [255, 0, 0, 255]
        height = codec.decode_height(codec.rgba_to_pixels(rgba))
        assert height[0, 0] == 1.0

    def test_rgba_round_trip(self):
        """Test packing and unpacking an arbitrary RGBA buffer."""
        rng = np.random.default_rng(0)
        rgba = rng.integers(0, 256, size=(5, 7, 4), dtype=np.uint8)
        np.testing.assert_array_equal(codec.pixels_to_rgba(codec.rgba_to_pixels(rgba)), rgba)
