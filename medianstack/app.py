"""Command-line entry point for MedianStack."""

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from medianstack.config import config
from medianstack.errors import MedianStackError
from medianstack.imaging.stacker import AlphaMode, Stacker
from medianstack.io.indexer import find_frames
from medianstack.logging_setup import setup_logging
from medianstack.pipeline import remove_moving_objects

log = logging.getLogger(__name__)


def expand_inputs(inputs: Sequence[str], output: Path) -> List[Path]:
    """Expands directories into their frames; files are kept in the given order."""
    paths: List[Path] = []
    for item in inputs:
        p = Path(item)
        if p.is_dir():
            paths.extend(find_frames(p, exclude=output))
        else:
            paths.append(p)
    return paths


def main(
    inputs: Sequence[str],
    output: str,
    workers: Optional[int] = None,
    alpha: Optional[str] = None,
    quality: Optional[int] = None,
    debug: bool = False,
) -> int:
    """MedianStack Application Entry Point. Returns the process exit status."""
    t0 = time.perf_counter()
    setup_logging(debug)
    log.info("Starting MedianStack")

    output_path = Path(output)
    if not inputs:
        default_dir = config.get("input", "default_directory", fallback="")
        if not default_dir:
            log.error("No input frames given and no default directory configured.")
            return 1
        inputs = [default_dir]

    frame_paths = expand_inputs(inputs, output_path)
    log.info("Using %d input frames", len(frame_paths))

    if workers == 0:
        workers = os.cpu_count() or 1

    try:
        alpha_mode = AlphaMode.parse(alpha or config.alpha_mode())
        stacker = Stacker(max_workers=workers, alpha_mode=alpha_mode)
    except ValueError as e:
        log.error("Invalid stacking settings: %s", e)
        return 1

    try:
        remove_moving_objects(frame_paths, output_path, stacker=stacker, jpeg_quality=quality)
    except MedianStackError as e:
        log.error("%s", e)
        return 1

    log.info("Finished in %.3fs", time.perf_counter() - t0)
    print(f"Saved {output_path}")
    return 0

def cli():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="MedianStack - remove moving objects from a burst of aligned photos"
    )
    parser.add_argument("inputs", nargs="*", help="Frame files or directories of frames")
    parser.add_argument("-o", "--output", required=True, help="Output image (.png, .jpg or .jpeg)")
    parser.add_argument("-w", "--workers", type=int, default=None, help="Number of row worker threads (0 = one per CPU)")
    parser.add_argument(
        "--alpha",
        choices=[mode.value for mode in AlphaMode],
        default=None,
        help="Output alpha: copy from the first frame or take the median",
    )
    parser.add_argument("-q", "--quality", type=int, default=None, help="JPEG output quality (1-95)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    sys.exit(main(
        inputs=args.inputs,
        output=args.output,
        workers=args.workers,
        alpha=args.alpha,
        quality=args.quality,
        debug=args.debug,
    ))

if __name__ == "__main__":
    cli()
