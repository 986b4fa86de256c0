"""Tests for frame validation and the row-parallel stacking engine."""

from unittest.mock import MagicMock

import numpy as np
import pytest

from medianstack.errors import DimensionMismatchError, InsufficientFramesError
from medianstack.imaging.median import median_pixel, median_row, pixelwise
from medianstack.imaging.stacker import (
    MIN_FRAMES,
    AlphaMode,
    Stacker,
    stack_frames,
    validate_frames,
)
from medianstack.models import FrameGrid, PixelSample


def test_min_frames_is_five():
    assert MIN_FRAMES == 5

def test_four_frames_rejected_without_pixel_work(solid_frame):
    frames = [solid_frame(3, 3) for _ in range(4)]
    probe = MagicMock(side_effect=median_row)

    with pytest.raises(InsufficientFramesError) as excinfo:
        Stacker(max_workers=2, aggregator=probe).stack(frames)

    assert excinfo.value.count == 4
    probe.assert_not_called()

def test_empty_frame_set_rejected():
    with pytest.raises(InsufficientFramesError):
        validate_frames([])

def test_dimension_mismatch_rejected_before_row_work(solid_frame):
    frames = [solid_frame(100, 100)] + [solid_frame(50, 50) for _ in range(4)]
    probe = MagicMock(side_effect=median_row)

    with pytest.raises(DimensionMismatchError) as excinfo:
        Stacker(max_workers=2, aggregator=probe).stack(frames)

    assert excinfo.value.index == 1
    assert excinfo.value.expected == (100, 100)
    assert excinfo.value.actual == (50, 50)
    probe.assert_not_called()

def test_height_only_mismatch_rejected(solid_frame):
    frames = [solid_frame(4, 4) for _ in range(4)] + [solid_frame(4, 5)]
    with pytest.raises(DimensionMismatchError):
        validate_frames(frames)

def test_five_frame_scenario(solid_frame):
    frames = []
    for red in [50, 10, 40, 20, 30]:
        frames.append(solid_frame(2, 2, (red, 0, 0, 255)))

    result = Stacker(max_workers=2).stack(frames)

    assert result.pixel(0, 0).r == 30

def test_six_frame_scenario_uses_upper_median(solid_frame):
    frames = [solid_frame(2, 2, (red, 0, 0, 255)) for red in [60, 10, 50, 20, 40, 30]]
    result = stack_frames(frames, max_workers=3)
    assert result.pixel(1, 1).r == 40

def test_identical_frames_reproduce_frame(random_frames):
    original = random_frames(1, 13, 9, seed=42)[0]
    frames = [original.copy() for _ in range(5)]

    result = Stacker(max_workers=4).stack(frames)

    np.testing.assert_array_equal(result.pixels, original.pixels)

def test_alpha_carried_from_first_frame(solid_frame):
    frames = [solid_frame(3, 2, (10, 20, 30, 17))] + [
        solid_frame(3, 2, (10, 20, 30, 200)) for _ in range(4)
    ]
    result = Stacker(max_workers=2).stack(frames)
    assert result.pixel(1, 2) == PixelSample(10, 20, 30, 17)

def test_alpha_median_mode(solid_frame):
    frames = [solid_frame(3, 2, (10, 20, 30, 17))] + [
        solid_frame(3, 2, (10, 20, 30, 200)) for _ in range(4)
    ]
    result = Stacker(max_workers=2, alpha_mode=AlphaMode.MEDIAN).stack(frames)
    assert result.pixel(0, 0) == PixelSample(10, 20, 30, 200)

def test_inputs_not_mutated(random_frames):
    frames = random_frames(5, 8, 8, seed=3)
    before = [frame.pixels.copy() for frame in frames]

    result = Stacker(max_workers=2).stack(frames)

    assert result.pixels is not frames[0].pixels
    for frame, pixels in zip(frames, before):
        np.testing.assert_array_equal(frame.pixels, pixels)

def test_parallel_matches_single_threaded_on_large_grid(random_frames):
    frames = random_frames(7, 1000, 1000, seed=11)

    parallel = Stacker(max_workers=8).stack(frames)
    serial = Stacker(max_workers=1).stack(frames)

    cube = np.stack([frame.pixels for frame in frames])
    expected = frames[0].pixels.copy()
    expected[..., :3] = np.sort(cube[..., :3], axis=0)[len(frames) // 2]

    np.testing.assert_array_equal(parallel.pixels, serial.pixels)
    np.testing.assert_array_equal(parallel.pixels, expected)

def test_parallel_matches_pixelwise_reference(random_frames):
    frames = random_frames(6, 40, 30, seed=5)

    parallel = Stacker(max_workers=4).stack(frames)
    reference = Stacker(max_workers=1, aggregator=pixelwise(median_pixel)).stack(frames)

    np.testing.assert_array_equal(parallel.pixels, reference.pixels)

def test_pixelwise_aggregator_called_once_per_position(random_frames):
    frames = random_frames(5, 4, 3, seed=9)
    probe = MagicMock(side_effect=median_pixel)

    Stacker(max_workers=2, aggregator=pixelwise(probe)).stack(frames)

    assert probe.call_count == 4 * 3
    assert all(len(call.args[0]) == 5 for call in probe.call_args_list)

def test_row_failure_propagates(random_frames):
    frames = random_frames(5, 4, 6, seed=1)
    calls = []

    def failing(samples):
        calls.append(samples)
        if len(calls) == 2:
            raise RuntimeError("row exploded")
        return median_row(samples)

    with pytest.raises(RuntimeError, match="row exploded"):
        Stacker(max_workers=1, aggregator=failing).stack(frames)

def test_invalid_worker_count():
    with pytest.raises(ValueError):
        Stacker(max_workers=0)

def test_default_workers_from_config():
    assert Stacker().max_workers >= 1

@pytest.mark.parametrize("value, expected", [
    ("first", AlphaMode.FIRST_FRAME),
    (" Median ", AlphaMode.MEDIAN),
])
def test_alpha_mode_parse(value, expected):
    assert AlphaMode.parse(value) is expected

def test_alpha_mode_parse_rejects_unknown():
    with pytest.raises(ValueError):
        AlphaMode.parse("mean")

def test_zero_height_frames_stack_to_empty_grid():
    frames = [FrameGrid.from_array(np.zeros((0, 0, 4), dtype=np.uint8)) for _ in range(5)]
    result = Stacker(max_workers=1).stack(frames)
    assert result.size == (0, 0)
