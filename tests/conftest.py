"""Shared fixtures for the pseudo-erosion tests."""

import logging

import pytest

from pseudo_erosion.noise import NoiseContext


@pytest.fixture
def logger():
    return logging.getLogger("pseudo_erosion.tests")


@pytest.fixture
def noise_ctx():
    return NoiseContext(seed=1)
