"""
Marker decoder interface and local implementations.

The payload format is opaque to this project; a backend only has to turn
decoder-ready pixels into text, or report nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

import cv2

import config
from preprocessing import RawImage, to_grayscale

logger = logging.getLogger(__name__)


class MarkerDecoder(Protocol):
    """Interface for marker decoding backends.

    Implementations must not raise for unreadable input: returning None is
    the only failure signal.
    """

    def decode(self, image: RawImage, attempt_both: bool = True) -> str | None:
        """Decode the marker in an image.

        With ``attempt_both`` the image is read as printed (dark on light) and
        with reflectance inverted (light on dark).
        """


@dataclass
class OpenCVQrDecoder:
    """QR decoding with OpenCV's QRCodeDetector."""

    _detector: cv2.QRCodeDetector = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._detector = cv2.QRCodeDetector()

    def decode(self, image: RawImage, attempt_both: bool = True) -> str | None:
        gray = to_grayscale(image.pixels)
        variants = [gray, cv2.bitwise_not(gray)] if attempt_both else [gray]
        for variant in variants:
            try:
                text, _points, _straight = self._detector.detectAndDecode(variant)
            except cv2.error as exc:
                logger.debug("QR detector failed on %dx%d image: %s", image.width, image.height, exc)
                continue
            if text:
                return text
        return None


_BACKENDS = {
    "opencv_qr": OpenCVQrDecoder,
}


def get_marker_decoder(name: str | None = None) -> MarkerDecoder:
    """Instantiate a decoder backend by name (defaults to config.MARKER_DECODER)."""
    backend_name = name if name is not None else config.MARKER_DECODER
    backend_cls = _BACKENDS.get(backend_name)
    if backend_cls is None:
        raise ValueError(f"Unknown marker decoder: {backend_name!r}")
    return backend_cls()
