"""Median-stacks a set of aligned frames, one thread-pool task per row."""

import enum
import logging
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Dict, Optional, Sequence

import numpy as np

from medianstack.config import config
from medianstack.errors import DimensionMismatchError, InsufficientFramesError
from medianstack.imaging.median import RowAggregator, median_alpha, median_row
from medianstack.models import Channel, FrameGrid

log = logging.getLogger(__name__)

# A median only hides a transient object if most observations of a position
# show the background.
MIN_FRAMES = 5


class AlphaMode(enum.Enum):
    """How the output alpha channel is produced."""
    FIRST_FRAME = "first"  # carried over unchanged from the first frame
    MEDIAN = "median"  # upper median across frames, like R, G and B

    @classmethod
    def parse(cls, value: str) -> "AlphaMode":
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown alpha mode {value!r} (expected one of: {choices})") from None


def validate_frames(frames: Sequence[FrameGrid]):
    """Checks the frame count and that every frame matches the first one's size."""
    if len(frames) < MIN_FRAMES:
        raise InsufficientFramesError(len(frames), MIN_FRAMES)

    expected = frames[0].size
    for index, frame in enumerate(frames):
        if frame.size != expected:
            raise DimensionMismatchError(index, expected, frame.size)


class Stacker:
    def __init__(
        self,
        max_workers: Optional[int] = None,
        aggregator: RowAggregator = median_row,
        alpha_mode: AlphaMode = AlphaMode.FIRST_FRAME,
    ):
        if max_workers is None:
            max_workers = config.max_workers()
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self.aggregator = aggregator
        self.alpha_mode = alpha_mode

    def stack(self, frames: Sequence[FrameGrid]) -> FrameGrid:
        """Returns a new frame holding the per-channel median of every position.

        Raises InsufficientFramesError or DimensionMismatchError before any
        pixel work starts. If a row task fails, the remaining rows are
        cancelled and the first error is raised.
        """
        validate_frames(frames)
        t_start = time.perf_counter()

        # Output starts as a copy of the first frame; R, G and B of every
        # cell are overwritten, alpha only in MEDIAN mode.
        output = frames[0].copy()
        output.source = None

        log.info(
            "Stacking %d frames of %dx%d with %d workers",
            len(frames), output.width, output.height, self.max_workers,
        )

        futures: Dict[Future, int] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="Stacker") as executor:
            for row in range(output.height):
                futures[executor.submit(self._stack_row, frames, output, row)] = row

            done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
            failed = [f for f in done if f.exception() is not None]
            if failed:
                for future in not_done:
                    future.cancel()
                first = min(failed, key=lambda f: futures[f])
                log.error("Stacking failed on row %d: %s", futures[first], first.exception())
                raise first.exception()

        log.info("Stacked %d rows in %.3fs", output.height, time.perf_counter() - t_start)
        return output

    def _stack_row(self, frames: Sequence[FrameGrid], output: FrameGrid, row: int):
        """Computes one output row. Touches no other row of `output`."""
        samples = np.stack([frame.pixels[row] for frame in frames])
        medians = self.aggregator(samples)
        output.pixels[row, :, :Channel.A] = medians[:, :Channel.A]
        if self.alpha_mode is AlphaMode.MEDIAN:
            output.pixels[row, :, Channel.A] = median_alpha(samples)


def stack_frames(frames: Sequence[FrameGrid], **kwargs) -> FrameGrid:
    """Convenience wrapper around Stacker(**kwargs).stack(frames)."""
    return Stacker(**kwargs).stack(frames)
