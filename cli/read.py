"""Read command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from tqdm import tqdm

import config
from logging_utils import progress_enabled
from decoding import DecodePipeline, marker_matches
from sources import load_image_bytes, scan_local_images

logger = logging.getLogger(__name__)


def add_read_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "source",
        nargs="?",
        default=config.DEFAULT_SAMPLES_DIR,
        help=f"Directory of sheet photos (default: {config.DEFAULT_SAMPLES_DIR})",
    )
    parser.add_argument(
        "--expect",
        metavar="ID",
        action="append",
        default=[],
        help="Identifier the sheets should carry; mismatches are logged (repeatable)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=config.DECODE_WORKERS,
        help=f"Threads preparing attempt images (default: {config.DECODE_WORKERS})",
    )
    parser.add_argument(
        "--no-locate",
        action="store_true",
        help="Skip the region search fallback",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide the progress bar",
    )


def read_marker(pipeline: DecodePipeline, path: Path) -> str | None:
    """Decode one file; unreadable files count as "no marker"."""
    try:
        image_data = load_image_bytes(path)
    except OSError as exc:
        logger.warning("Cannot read %s: %s", path.name, exc)
        return None

    outcome = pipeline.decode(image_data)
    if not outcome.found:
        logger.debug("%s: no marker after %d attempts", path.name, outcome.attempts_tried)
        return None
    logger.debug("%s: decoded by %s", path.name, outcome.attempt.label)
    return outcome.text


def cmd_read(args: argparse.Namespace) -> int:
    if args.workers < 1:
        logger.error("--workers must be at least 1")
        return 1

    try:
        files = scan_local_images(args.source)
    except OSError as exc:
        logger.error("%s", exc)
        return 1

    if not files:
        logger.info("No images in %s", Path(args.source).resolve())
        return 0

    pipeline = DecodePipeline(max_workers=args.workers, locate_region=not args.no_locate)
    decoded = 0
    progress = tqdm(
        files, desc="Decoding", unit="img",
        disable=None if progress_enabled(args) else True,
    )
    for path in progress:
        text = read_marker(pipeline, path)
        if text is not None:
            decoded += 1
            if not marker_matches(text, args.expect):
                logger.warning("%s: marker %r does not match the expected exam", path.name, text)
        tqdm.write(f"{path.name}\t{text if text is not None else config.NOT_FOUND_PLACEHOLDER}")

    logger.info("Decoded %d of %d images", decoded, len(files))
    return 0
