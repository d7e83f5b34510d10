"""
Marker decoding module.

Tries an ordered list of preprocessing variants against a marker decoder
until one yields a payload.

Key components:
- types: Decoded / NotFound outcomes
- backend: MarkerDecoder interface and the OpenCV QR implementation
- attempts: the data-driven attempt schedule
- pipeline: DecodePipeline, the ordered scan with short-circuit

The main entry point is `decode_marker()`, which always returns a
`Decoded` or a `NotFound`.
"""

from .types import Decoded, DecodeOutcome, NotFound
from .backend import MarkerDecoder, OpenCVQrDecoder, get_marker_decoder
from .attempts import corner_crop, located_region_attempts, schedule_attempts
from .pipeline import (
    AttemptRenderer,
    DecodePipeline,
    decode_marker,
    decode_marker_base64,
    marker_matches,
)

__all__ = [
    "Decoded",
    "DecodeOutcome",
    "NotFound",
    "MarkerDecoder",
    "OpenCVQrDecoder",
    "get_marker_decoder",
    "corner_crop",
    "located_region_attempts",
    "schedule_attempts",
    "AttemptRenderer",
    "DecodePipeline",
    "decode_marker",
    "decode_marker_base64",
    "marker_matches",
]
