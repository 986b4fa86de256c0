"""Exceptions raised while stacking frames."""

from typing import Optional


class MedianStackError(Exception):
    """Base class for all errors raised by medianstack."""


class UnknownFormatError(MedianStackError):
    """The file extension does not name a supported image format."""

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Unknown image type: {identifier}")


class DecodeError(MedianStackError):
    """A source could not be read or parsed as an image."""

    def __init__(self, source, reason: Optional[str] = None):
        self.source = source
        message = f"Failed to decode {source}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class EncodeError(MedianStackError):
    """The output image could not be written."""

    def __init__(self, sink, reason: Optional[str] = None):
        self.sink = sink
        message = f"Failed to encode {sink}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DimensionMismatchError(MedianStackError):
    """At least one frame has a different width or height than the first."""

    def __init__(self, index: int, expected: tuple, actual: tuple):
        self.index = index
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Frame {index} is {actual[0]}x{actual[1]}, expected {expected[0]}x{expected[1]}"
        )


class InsufficientFramesError(MedianStackError):
    """Too few frames were supplied for a median to exclude moving objects."""

    def __init__(self, count: int, minimum: int):
        self.count = count
        self.minimum = minimum
        super().__init__(
            f"Not enough images to remove moving objects: got {count}, need at least {minimum}"
        )
