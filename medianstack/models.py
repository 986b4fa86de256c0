"""Core data types and enumerations for MedianStack."""

import dataclasses
import enum
from pathlib import Path
from typing import Iterable, Optional, Sequence

import numpy as np

# 16-bit full scale (0-65535) maps onto 8-bit (0-255) by exact division.
NATIVE_SCALE = 257


class Channel(enum.IntEnum):
    """Index of a channel within a sample."""
    R = 0
    G = 1
    B = 2
    A = 3


class ImageFormat(enum.Enum):
    """Image formats understood by the codec boundary."""
    JPEG = "JPEG"
    PNG = "PNG"

    @classmethod
    def from_extension(cls, ext: str) -> Optional["ImageFormat"]:
        """Maps 'jpg', '.JPG', 'png', ... to a format, or None if unsupported."""
        ext = ext.lower().lstrip(".")
        for fmt, exts in _EXTENSIONS.items():
            if ext in exts:
                return fmt
        return None


_EXTENSIONS = {
    ImageFormat.JPEG: ("jpg", "jpeg"),
    ImageFormat.PNG: ("png",),
}


@dataclasses.dataclass(frozen=True)
class PixelSample:
    """A single 8-bit RGBA sample."""
    r: int
    g: int
    b: int
    a: int

    @classmethod
    def from_native(cls, r: int, g: int, b: int, a: int) -> "PixelSample":
        """Converts 16-bit alpha-premultiplied channel values to 8-bit.

        Uses truncating integer division, not round-to-nearest.
        """
        return cls(
            int(r) // NATIVE_SCALE,
            int(g) // NATIVE_SCALE,
            int(b) // NATIVE_SCALE,
            int(a) // NATIVE_SCALE,
        )

    def as_tuple(self) -> tuple:
        return (self.r, self.g, self.b, self.a)

    def __getitem__(self, channel: Channel) -> int:
        return self.as_tuple()[channel]


def native_to_samples(native: np.ndarray) -> np.ndarray:
    """Vectorised PixelSample.from_native over an (..., 4) array of 16-bit values."""
    return (np.asarray(native, dtype=np.uint32) // NATIVE_SCALE).astype(np.uint8)


@dataclasses.dataclass
class FrameGrid:
    """A decoded frame: `height` rows of `width` RGBA samples.

    `pixels` is a preallocated uint8 array of shape (height, width, 4). The
    grid is never resized after construction.
    """
    pixels: np.ndarray
    width: int
    height: int
    source: Optional[Path] = None

    def __post_init__(self):
        expected = (self.height, self.width, len(Channel))
        if self.pixels.shape != expected:
            raise ValueError(
                f"Pixel buffer shape {self.pixels.shape} does not match "
                f"{self.width}x{self.height} RGBA grid"
            )

    @classmethod
    def from_array(cls, pixels: np.ndarray, source: Optional[Path] = None) -> "FrameGrid":
        """Wraps an (height, width, 4) array of 8-bit samples."""
        pixels = np.ascontiguousarray(pixels, dtype=np.uint8)
        if pixels.ndim != 3:
            raise ValueError(f"Expected a 3-dimensional pixel array, got {pixels.ndim} dimensions")
        height, width = pixels.shape[:2]
        return cls(pixels=pixels, width=width, height=height, source=source)

    @classmethod
    def from_samples(cls, rows: Iterable[Sequence[PixelSample]]) -> "FrameGrid":
        """Builds a grid from rows of PixelSample. All rows must have equal length."""
        rows = [list(row) for row in rows]
        width = len(rows[0]) if rows else 0
        for index, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(f"Row {index} has {len(row)} samples, expected {width}")
        pixels = np.array(
            [[sample.as_tuple() for sample in row] for row in rows],
            dtype=np.uint8,
        ).reshape(len(rows), width, len(Channel))
        return cls(pixels=pixels, width=width, height=len(rows))

    @property
    def size(self) -> tuple:
        return self.width, self.height

    def pixel(self, row: int, col: int) -> PixelSample:
        return PixelSample(*(int(v) for v in self.pixels[row, col]))

    def set_channel(self, row: int, col: int, channel: Channel, value: int):
        self.pixels[row, col, channel] = value

    def copy(self) -> "FrameGrid":
        return FrameGrid(
            pixels=self.pixels.copy(),
            width=self.width,
            height=self.height,
            source=self.source,
        )
