"""Per-channel median of samples taken at the same pixel position."""

from typing import Callable, Sequence

import numpy as np

from medianstack.models import Channel, PixelSample

RowAggregator = Callable[[np.ndarray], np.ndarray]


def median_index(count: int) -> int:
    """Index of the median in a sorted sequence; the upper median for even counts."""
    return count // 2


def median_pixel(samples: Sequence[PixelSample]) -> PixelSample:
    """Returns the per-channel median of R, G and B. Alpha is always 0.

    Each channel is sorted independently and the value at index n // 2 is
    taken, so even-length inputs yield the upper of the two middle values.
    """
    if not samples:
        raise ValueError("median_pixel requires at least one sample")
    mid = median_index(len(samples))
    r = sorted(s.r for s in samples)[mid]
    g = sorted(s.g for s in samples)[mid]
    b = sorted(s.b for s in samples)[mid]
    return PixelSample(r, g, b, 0)


def median_row(samples: np.ndarray) -> np.ndarray:
    """Vectorised median_pixel over a whole row.

    samples: (n_frames, width, 4) array. Returns a (width, 4) array of the
    same dtype with the alpha column set to 0.
    """
    n_frames, width = samples.shape[:2]
    ordered = np.sort(samples[..., :Channel.A], axis=0)
    result = np.zeros((width, len(Channel)), dtype=samples.dtype)
    result[:, :Channel.A] = ordered[median_index(n_frames)]
    return result


def median_alpha(samples: np.ndarray) -> np.ndarray:
    """Upper median of the alpha channel for a (n_frames, width, 4) row."""
    ordered = np.sort(samples[..., Channel.A], axis=0)
    return ordered[median_index(samples.shape[0])]


def pixelwise(aggregator: Callable[[Sequence[PixelSample]], PixelSample]) -> RowAggregator:
    """Adapts a per-pixel aggregator into a row aggregator, one call per column."""

    def aggregate_row(samples: np.ndarray) -> np.ndarray:
        n_frames, width = samples.shape[:2]
        result = np.zeros((width, len(Channel)), dtype=samples.dtype)
        for col in range(width):
            column = [PixelSample(*(int(v) for v in samples[i, col])) for i in range(n_frames)]
            result[col] = aggregator(column).as_tuple()
        return result

    return aggregate_row
