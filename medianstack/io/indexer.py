"""Scans directories for frames that can be stacked."""

import logging
import os
from pathlib import Path
from typing import List, Optional

from medianstack.models import ImageFormat

log = logging.getLogger(__name__)

def find_frames(directory: Path, exclude: Optional[Path] = None) -> List[Path]:
    """Finds all supported images in a directory, sorted by file name.

    `exclude` is skipped if present, typically the output file of a previous run.
    """
    log.info("Scanning directory for frames: %s", directory)
    excluded = exclude.resolve() if exclude is not None else None
    frames: List[Path] = []

    try:
        for entry in os.scandir(directory):
            if not entry.is_file():
                continue
            p = Path(entry.path)
            if ImageFormat.from_extension(p.suffix) is None:
                continue
            if excluded is not None and p.resolve() == excluded:
                log.debug("Skipping excluded file %s", p)
                continue
            frames.append(p)
    except OSError:
        log.exception("Error scanning directory %s", directory)
        return []

    frames.sort(key=lambda p: p.name)
    log.info("Found %d frames in %s", len(frames), directory)
    return frames
