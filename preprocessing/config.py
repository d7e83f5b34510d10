"""
Configuration records for the preprocessing pipeline.

Every decode attempt is fully described by one immutable DecodeAttempt,
validated once when it is built. The pipeline turns it into a RawImage.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Literal

import numpy as np

from config import DECODE_THRESHOLD

from .errors import InvalidRegion

ChannelLayout = Literal["gray", "rgb", "rgba"]

_LAYOUTS: dict[int, ChannelLayout] = {1: "gray", 3: "rgb", 4: "rgba"}


class PreprocessMode(enum.Enum):
    """Which optional stages of the pipeline run for an attempt."""

    NORMAL = "normal"
    THRESHOLD = "bw"
    THRESHOLD_INVERT = "bw_inv"
    SHARPEN_THRESHOLD = "bw_sharp"

    @property
    def binarized(self) -> bool:
        return self is not PreprocessMode.NORMAL

    @property
    def sharpened(self) -> bool:
        return self is PreprocessMode.SHARPEN_THRESHOLD

    @property
    def inverted(self) -> bool:
        return self is PreprocessMode.THRESHOLD_INVERT


class AttemptStage(enum.Enum):
    """Where an attempt sits in the cheap-to-targeted ordering."""

    FULL = "full"
    FULL_HIGH_RES = "full_high_res"
    CORNER = "corner"
    LOCATED = "located"


@dataclass(frozen=True)
class CropRegion:
    """Axis-aligned rectangle in source-image pixels."""

    left: int
    top: int
    width: int
    height: int

    def validate_within(self, source_width: int, source_height: int) -> None:
        """Raise InvalidRegion unless the rectangle lies inside the source."""
        if self.left < 0 or self.top < 0:
            raise InvalidRegion(f"Crop origin must be non-negative, got {self}")
        if self.width <= 0 or self.height <= 0:
            raise InvalidRegion(f"Crop must have positive size, got {self}")
        if self.left + self.width > source_width or self.top + self.height > source_height:
            raise InvalidRegion(
                f"Crop {self} exceeds source bounds {source_width}x{source_height}"
            )

    def as_rect(self) -> tuple[int, int, int, int]:
        return (self.left, self.top, self.width, self.height)

    @classmethod
    def from_rect(cls, rect: tuple[int, int, int, int]) -> CropRegion:
        left, top, width, height = rect
        return cls(left=int(left), top=int(top), width=int(width), height=int(height))


@dataclass(frozen=True)
class DecodeAttempt:
    """One fully specified preprocessing configuration tried against the decoder.

    Attributes:
        stage: Position of the attempt in the schedule (for logs and tests).
        mode: Which optional pipeline stages run.
        crop: Rectangle extracted before anything else, or None for the full image.
        max_width: Width cap before scaling. 0 keeps the current width.
        scale: Multiplier applied on top of the capped width (nearest-neighbour).
        threshold: Binarization threshold for non-normal modes.
    """

    stage: AttemptStage
    mode: PreprocessMode = PreprocessMode.NORMAL
    crop: CropRegion | None = None
    max_width: int = 0
    scale: float = 1.0
    threshold: int = DECODE_THRESHOLD

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate attempt parameters.

        Raises:
            ValueError: If any parameter is invalid.
        """
        if self.max_width < 0:
            raise ValueError(f"max_width must be non-negative, got {self.max_width}")
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if not 1 <= self.threshold <= 255:
            raise ValueError(f"threshold must be within [1, 255], got {self.threshold}")

    @property
    def label(self) -> str:
        parts = [self.stage.value, self.mode.value]
        if self.max_width:
            parts.append(f"w{self.max_width}")
        if self.scale != 1.0:
            parts.append(f"x{self.scale:g}")
        return "/".join(parts)


@dataclass(frozen=True)
class RawImage:
    """Decoder-ready pixels with known dimensions.

    Owned by the attempt that produced it and discarded after decoding.
    """

    pixels: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.pixels, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(self.pixels).__name__}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"RawImage pixels must be uint8, got {self.pixels.dtype}")
        if self.pixels.ndim not in (2, 3) or self.pixels.size == 0:
            raise ValueError(f"RawImage needs a non-empty 2D or 3D array, got shape {self.pixels.shape}")
        if self.channels not in _LAYOUTS:
            raise ValueError(f"Unsupported channel count: {self.channels}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    @property
    def layout(self) -> ChannelLayout:
        return _LAYOUTS[self.channels]

    @property
    def buffer(self) -> bytes:
        """Row-major pixel bytes, one value per channel per pixel."""
        return np.ascontiguousarray(self.pixels).tobytes()

    @classmethod
    def from_buffer(cls, buffer: bytes, width: int, height: int, channels: int) -> RawImage:
        """Wrap a raw pixel buffer, checking it matches the stated dimensions."""
        expected = width * height * channels
        if width <= 0 or height <= 0:
            raise ValueError(f"Dimensions must be positive, got {width}x{height}")
        if len(buffer) != expected:
            raise ValueError(
                f"Buffer holds {len(buffer)} bytes, expected {expected} "
                f"for {width}x{height}x{channels}"
            )
        pixels = np.frombuffer(buffer, dtype=np.uint8)
        shape = (height, width) if channels == 1 else (height, width, channels)
        return cls(pixels=pixels.reshape(shape).copy())
