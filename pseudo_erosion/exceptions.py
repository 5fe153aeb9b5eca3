# pseudo_erosion/exceptions.py

"""Exceptions raised by the pseudo-erosion generator."""


class PseudoErosionError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(PseudoErosionError, ValueError):
    """A setting is missing, out of range or inconsistent with the input."""


class ImageFormatError(PseudoErosionError):
    """An input image exists but cannot be decoded into pixels."""
