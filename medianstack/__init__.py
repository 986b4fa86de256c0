"""MedianStack: removes moving objects from aligned photo bursts by median stacking."""

__version__ = "0.1.0"
