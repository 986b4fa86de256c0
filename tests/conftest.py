"""Shared fixtures for the medianstack tests."""

import os
import tempfile

# Keep config and log files out of the user's home directory. Must run before
# medianstack.config is imported.
os.environ.setdefault("MEDIANSTACK_HOME", tempfile.mkdtemp(prefix="medianstack-test-"))

import logging
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from medianstack.models import FrameGrid

BACKGROUND = (90, 120, 150)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drops handlers installed by setup_logging so they don't outlive captured streams."""
    yield
    from medianstack import logging_setup
    root = logging.getLogger()
    for handler in logging_setup._installed_handlers:
        root.removeHandler(handler)
        handler.close()
    logging_setup._installed_handlers.clear()


@pytest.fixture
def solid_frame():
    """Factory for frames with every sample set to the same RGBA value."""
    def make(width: int, height: int, rgba=(0, 0, 0, 255)) -> FrameGrid:
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:] = rgba
        return FrameGrid.from_array(pixels)
    return make


@pytest.fixture
def random_frames():
    """Factory for lists of frames filled with seeded random samples."""
    def make(count: int, width: int, height: int, seed: int = 0):
        rng = np.random.default_rng(seed)
        return [
            FrameGrid.from_array(rng.integers(0, 256, (height, width, 4), dtype=np.uint8))
            for _ in range(count)
        ]
    return make


@pytest.fixture
def burst_dir(tmp_path: Path):
    """Five 8x6 PNG frames of a flat background with a red square moving across.

    No position is covered by the square in more than two frames.
    """
    for i in range(5):
        arr = np.zeros((6, 8, 3), dtype=np.uint8)
        arr[:] = BACKGROUND
        arr[2:4, i + 1:i + 3] = (255, 0, 0)
        Image.fromarray(arr).save(tmp_path / f"frame_{i:02d}.png")
    return tmp_path
