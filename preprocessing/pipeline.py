"""
Preprocessing pipeline that turns a DecodeAttempt into a RawImage.

Pipeline Philosophy:
- The source is decoded, turned upright and contrast-normalized once per
  request; every attempt starts from that shared, read-only array
- An attempt's steps are: (Crop) → [Grayscale → (Sharpen) → Threshold → (Invert)] → Resize
- Resizing is nearest-neighbour so binarized edges stay sharp
"""

import logging

import numpy as np

from .config import DecodeAttempt, RawImage
from .normalization import decode_upright, normalize_contrast, target_width_for
from .steps import (
    Pipeline,
    PreprocessStep,
    CropStep,
    GrayscaleStep,
    SharpenStep,
    ThresholdStep,
    InvertStep,
    ResizeStep,
)

logger = logging.getLogger(__name__)


def load_source(image_data: bytes) -> np.ndarray:
    """Decode image bytes into the upright, contrast-normalized RGB source.

    Raises:
        InvalidImage: If the bytes are not a readable image.
    """
    return normalize_contrast(decode_upright(image_data))


def build_pipeline(attempt: DecodeAttempt, source_width: int) -> Pipeline:
    """Build the step sequence for one attempt.

    Args:
        attempt: Attempt configuration.
        source_width: Width of the image the pipeline will run on, needed to
                     resolve the resize target.

    Returns:
        Pipeline configured according to the attempt.
    """
    steps: list[PreprocessStep] = []

    current_width = source_width
    if attempt.crop is not None:
        steps.append(CropStep(region=attempt.crop))
        current_width = attempt.crop.width

    mode = attempt.mode
    if mode.binarized:
        steps.append(GrayscaleStep())
        if mode.sharpened:
            steps.append(SharpenStep())
        steps.append(ThresholdStep(threshold=attempt.threshold))
        if mode.inverted:
            steps.append(InvertStep())

    steps.append(
        ResizeStep(target_width=target_width_for(current_width, attempt.max_width, attempt.scale))
    )
    return Pipeline(steps=steps)


def run_attempt(source: np.ndarray, attempt: DecodeAttempt) -> RawImage:
    """Produce the decoder input for one attempt.

    Args:
        source: Upright, normalized image from load_source().
        attempt: Attempt configuration.

    Returns:
        RawImage owned by the caller.

    Raises:
        InvalidRegion: If the attempt's crop does not fit the source.
    """
    run = build_pipeline(attempt, source_width=source.shape[1]).run(source)
    logger.debug("Attempt %s: %s", attempt.label, run.trace)
    return RawImage(pixels=run.final)
