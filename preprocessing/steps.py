"""
Image operations that make up one decode attempt.

A decode attempt is a short chain of steps over the shared source photo:
crop to a region, binarize (optionally sharpened and/or inverted), then
resize for the decoder. Every step returns a fresh array; the source photo
is read by many attempts and must never change.

Usage:
    from preprocessing.steps import CropStep, GrayscaleStep, ThresholdStep, Pipeline

    run = Pipeline(steps=[
        CropStep(region=CropRegion(600, 0, 400, 420)),
        GrayscaleStep(),
        ThresholdStep(threshold=160),
    ]).run(source)
    decoder_input = run.final
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import cv2
import numpy as np

from .config import CropRegion
from .normalization import to_grayscale, resize_to_width

# Edge-enhancing 3x3 kernel (identity plus a Laplacian)
SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.float32,
)


def _require_gray(step: str, img: np.ndarray) -> None:
    if img.ndim != 2:
        raise ValueError(
            f"{step} requires grayscale input (2D array), "
            f"got {img.ndim}D array with shape {img.shape}"
        )


class PreprocessStep(ABC):
    """One image operation inside a decode attempt.

    Subclasses return a new array from ``apply`` and may report values
    needed to map coordinates back to the source (crop offset, scale).
    """

    @abstractmethod
    def apply(self, img: np.ndarray) -> np.ndarray:
        """Return the transformed image; ``img`` is left untouched."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short label used in debug logs."""

    def get_metadata(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class CropStep(PreprocessStep):
    """Extract a rectangle from the image.

    Raises InvalidRegion when the rectangle does not fit the input.
    """

    region: CropRegion

    def apply(self, img: np.ndarray) -> np.ndarray:
        height, width = img.shape[:2]
        self.region.validate_within(width, height)
        r = self.region
        return img[r.top:r.top + r.height, r.left:r.left + r.width].copy()

    @property
    def name(self) -> str:
        r = self.region
        return f"crop({r.left},{r.top},{r.width},{r.height})"

    def get_metadata(self) -> dict[str, Any]:
        return {"crop_offset": (self.region.left, self.region.top)}


@dataclass(frozen=True)
class GrayscaleStep(PreprocessStep):
    def apply(self, img: np.ndarray) -> np.ndarray:
        return to_grayscale(img)

    @property
    def name(self) -> str:
        return "gray"


@dataclass(frozen=True)
class SharpenStep(PreprocessStep):
    """Edge-enhancing convolution, run before binarization.

    Blurry phone photos smear the marker's module edges; the kernel pulls
    them apart again. Requires grayscale input.
    """

    kernel: np.ndarray = field(default_factory=lambda: SHARPEN_KERNEL.copy(), repr=False)

    def apply(self, img: np.ndarray) -> np.ndarray:
        _require_gray("SharpenStep", img)
        return cv2.filter2D(img, -1, self.kernel)

    @property
    def name(self) -> str:
        return "sharpen"


@dataclass(frozen=True)
class ThresholdStep(PreprocessStep):
    """Force a pure black/white image.

    Pixels darker than ``threshold`` (the foreground) become 0, everything
    else becomes 255.
    """

    threshold: int

    def apply(self, img: np.ndarray) -> np.ndarray:
        _require_gray("ThresholdStep", img)
        return np.where(img < self.threshold, 0, 255).astype(np.uint8)

    @property
    def name(self) -> str:
        return f"bw({self.threshold})"


@dataclass(frozen=True)
class InvertStep(PreprocessStep):
    """Swap foreground and background."""

    def apply(self, img: np.ndarray) -> np.ndarray:
        return cv2.bitwise_not(img)

    @property
    def name(self) -> str:
        return "invert"


@dataclass
class ResizeStep(PreprocessStep):
    """Resize to ``target_width``, keeping the aspect ratio.

    Attributes:
        target_width: Output width in pixels.
        interpolation: OpenCV interpolation flag. Nearest-neighbour (default)
                      keeps binarized modules pure black and white.
    """

    target_width: int
    interpolation: int = cv2.INTER_NEAREST
    _scale_factor: float = field(default=1.0, init=False, repr=False)

    def apply(self, img: np.ndarray) -> np.ndarray:
        resized, self._scale_factor = resize_to_width(
            img, self.target_width, self.interpolation
        )
        return resized

    @property
    def name(self) -> str:
        return f"resize({self.target_width})"

    def get_metadata(self) -> dict[str, Any]:
        """Input pixels per output pixel."""
        return {"scale_factor": self._scale_factor}


@dataclass
class StepResult:
    name: str
    image: np.ndarray
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineStepResults:
    """Everything one pipeline run produced, step by step."""

    original: np.ndarray
    steps: list[StepResult] = field(default_factory=list)

    @property
    def final(self) -> np.ndarray:
        return self.steps[-1].image if self.steps else self.original

    def get_metadata(self, key: str) -> Any | None:
        """Value reported by the first step that set ``key``."""
        return next((s.metadata[key] for s in self.steps if key in s.metadata), None)

    @property
    def scale_factor(self) -> float:
        """Pre-resize pixels per final pixel (1.0 when nothing was resized)."""
        return self.get_metadata("scale_factor") or 1.0

    @property
    def crop_offset(self) -> tuple[int, int]:
        """Source coordinates of the final image's origin before resizing."""
        return self.get_metadata("crop_offset") or (0, 0)

    @property
    def trace(self) -> str:
        return " > ".join(step.name for step in self.steps)


@dataclass
class Pipeline:
    """Steps run in order, each fed the previous step's output."""

    steps: list[PreprocessStep]

    def run(self, img: np.ndarray) -> PipelineStepResults:
        result = PipelineStepResults(original=img)
        current = img
        for step in self.steps:
            current = step.apply(current)
            result.steps.append(StepResult(step.name, current, step.get_metadata()))
        return result
