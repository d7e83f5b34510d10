"""
Main marker decoding orchestration.

This module ties together preprocessing, attempt scheduling, region search
and the decoder backend. Attempt images may be prepared on a thread pool,
but outcomes are always read in schedule order and the first success wins.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, Iterator, Sequence, TypeVar

import cv2
import numpy as np

import config
from locator import locate_marker_region
from preprocessing import (
    CropRegion,
    DecodeAttempt,
    InvalidImage,
    RawImage,
    load_source,
    run_attempt,
)

from .attempts import located_region_attempts, schedule_attempts
from .backend import MarkerDecoder, get_marker_decoder
from .types import Decoded, DecodeOutcome, NotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z]+;base64,")


def render_attempt(source: np.ndarray, attempt: DecodeAttempt) -> RawImage | None:
    """Run one attempt's preprocessing; None means the attempt is skipped."""
    try:
        return run_attempt(source, attempt)
    except (ValueError, cv2.error) as exc:
        logger.debug("Skipping attempt %s: %s", attempt.label, exc)
        return None


def find_region(source: np.ndarray) -> CropRegion | None:
    """Region search that reports failures as "no region"."""
    try:
        return locate_marker_region(source)
    except (ValueError, cv2.error) as exc:
        logger.debug("Region search failed: %s", exc)
        return None


class AttemptRenderer:
    """Prepares attempt images, on a thread pool when ``max_workers > 1``.

    Results are always yielded in the order the attempts were given.
    """

    def __init__(self, source: np.ndarray, max_workers: int = 1):
        self._source = source
        self._executor = ThreadPoolExecutor(max_workers=max_workers) if max_workers > 1 else None

    def render(self, attempts: Sequence[DecodeAttempt]) -> Iterator[RawImage | None]:
        if self._executor is None:
            return (render_attempt(self._source, attempt) for attempt in attempts)
        return self._executor.map(partial(render_attempt, self._source), attempts)

    def defer(self, func: Callable[[np.ndarray], T]) -> Callable[[], T]:
        """Schedule work on the source; call the result to wait for it.

        Without a pool the work only runs when the result is first requested.
        """
        if self._executor is None:
            return partial(func, self._source)
        return self._executor.submit(func, self._source).result

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> AttemptRenderer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class DecodePipeline:
    """Multi-strategy marker decoding for one image at a time.

    Attributes:
        decoder: Marker decoder backend. Defaults to config.MARKER_DECODER.
        max_workers: Threads preparing attempt images. 1 runs everything on
                    the calling thread and only searches for the marker
                    region once the scheduled attempts have all failed.
        locate_region: Whether to fall back to region-seeded attempts.
    """

    decoder: MarkerDecoder | None = None
    max_workers: int = config.DECODE_WORKERS
    locate_region: bool = True

    def __post_init__(self) -> None:
        if self.decoder is None:
            self.decoder = get_marker_decoder()
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    def decode(self, image_data: bytes) -> DecodeOutcome:
        """Decode the marker in an encoded image (JPEG, PNG, ...).

        Never raises for unreadable images or out-of-bounds regions; those
        end in NotFound.
        """
        try:
            source = load_source(image_data)
        except InvalidImage as exc:
            logger.warning("Unreadable image: %s", exc)
            return NotFound(reason="invalid_image")

        height, width = source.shape[:2]
        attempts = schedule_attempts(width, height)

        with AttemptRenderer(source, self.max_workers) as renderer:
            # Submitted after the attempts so the search queues behind them
            prepared = renderer.render(attempts)
            region = renderer.defer(find_region) if self.locate_region else None

            outcome = self._scan(attempts, prepared)
            if outcome.found or region is None:
                return outcome

            located = region()
            if located is None:
                logger.debug("No marker region located")
                return outcome

            extra = located_region_attempts(located)
            return self._scan(extra, renderer.render(extra), evaluated=outcome.evaluated)

    def scan(self, source: np.ndarray, attempts: Sequence[DecodeAttempt]) -> DecodeOutcome:
        """Evaluate an explicit attempt list against an already loaded source."""
        with AttemptRenderer(source, self.max_workers) as renderer:
            return self._scan(attempts, renderer.render(attempts))

    def _scan(
        self,
        attempts: Sequence[DecodeAttempt],
        prepared: Iterable[RawImage | None],
        evaluated: tuple[DecodeAttempt, ...] = (),
    ) -> DecodeOutcome:
        seen = list(evaluated)
        for attempt, image in zip(attempts, prepared):
            seen.append(attempt)
            if image is None:
                continue
            text = self.decoder.decode(image, attempt_both=True)
            if text:
                logger.debug("Decoded marker with attempt %s", attempt.label)
                return Decoded(text=text, attempt=attempt, evaluated=tuple(seen))
            logger.debug("Attempt %s found nothing", attempt.label)
        return NotFound(reason="exhausted", evaluated=tuple(seen))


def decode_marker(
    image_data: bytes,
    decoder: MarkerDecoder | None = None,
    max_workers: int = config.DECODE_WORKERS,
) -> DecodeOutcome:
    """Decode the marker in encoded image bytes with a one-off pipeline."""
    return DecodePipeline(decoder=decoder, max_workers=max_workers).decode(image_data)


def decode_marker_base64(
    payload: str,
    decoder: MarkerDecoder | None = None,
    max_workers: int = config.DECODE_WORKERS,
) -> DecodeOutcome:
    """Decode the marker in a base64 image, with or without a data-URL header.

    Line breaks and other whitespace inside the payload are ignored.
    Payloads that are not valid base64 end in NotFound("invalid_image").
    """
    try:
        encoded = "".join(_DATA_URL_PREFIX.sub("", payload.strip()).split())
        image_data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.warning("Invalid base64 image payload: %s", exc)
        return NotFound(reason="invalid_image")
    return decode_marker(image_data, decoder=decoder, max_workers=max_workers)


def marker_matches(text: str, expected: str | Iterable[str] | None) -> bool:
    """Check a decoded payload against the identifier(s) the sheet should carry.

    Comparison ignores surrounding whitespace and case. A payload also matches
    when it starts with "<ID>|" (extra fields after the exam ID) or carries
    "FOLIO:<ID>" anywhere. With nothing expected any payload matches.
    """
    if expected is None:
        return True
    candidates = [expected] if isinstance(expected, str) else list(expected)
    if not candidates:
        return True
    normalized = text.strip().upper()
    for candidate in candidates:
        exp = str(candidate).strip().upper()
        if normalized == exp or normalized.startswith(f"{exp}|") or f"FOLIO:{exp}" in normalized:
            return True
    return False
