"""Removes moving objects from a burst of aligned photographs."""

import logging
import time
from typing import List, Optional, Sequence

from medianstack.config import config
from medianstack.imaging.codec import Source, decode_frame, encode_frame, resolve_format
from medianstack.imaging.stacker import Stacker
from medianstack.models import FrameGrid

log = logging.getLogger(__name__)


def decode_frames(sources: Sequence[Source]) -> List[FrameGrid]:
    """Decodes sources in order, stopping at the first failure."""
    frames: List[FrameGrid] = []
    for source in sources:
        frames.append(decode_frame(source))
    return frames


def remove_moving_objects(
    sources: Sequence[Source],
    sink: Source,
    stacker: Optional[Stacker] = None,
    jpeg_quality: Optional[int] = None,
):
    """Decodes every source, median-stacks them and encodes the result to sink.

    The sink format is resolved first so a bad output name fails before any
    decoding. Any MedianStackError propagates unchanged; nothing is written
    to the sink unless the whole operation succeeds.
    """
    t_start = time.perf_counter()
    sink_format = resolve_format(sink)
    if stacker is None:
        stacker = Stacker()
    if jpeg_quality is None:
        jpeg_quality = config.jpeg_quality()

    frames = decode_frames(sources)
    log.info("Decoded %d frames in %.3fs", len(frames), time.perf_counter() - t_start)

    result = stacker.stack(frames)
    encode_frame(result, sink, sink_format, jpeg_quality=jpeg_quality)
    log.info("Removed moving objects from %d frames in %.3fs", len(frames), time.perf_counter() - t_start)
