"""
Image preprocessing module for marker decoding.

This module provides pure, deterministic functions for preparing exam-sheet
photos before they reach the marker decoder. All functions follow the
pattern: input -> output with no mutation of the original arrays.

Key components:
- config: DecodeAttempt, CropRegion, PreprocessMode and RawImage records
- errors: InvalidImage and InvalidRegion
- normalization: decoding, upright rotation, contrast stretch, grayscale, resize
- steps: Class-based preprocessing steps with common PreprocessStep interface
- pipeline: load_source() and run_attempt()
"""

from .config import (
    AttemptStage,
    ChannelLayout,
    CropRegion,
    DecodeAttempt,
    PreprocessMode,
    RawImage,
)
from .errors import InvalidImage, InvalidRegion
from .pipeline import build_pipeline, load_source, run_attempt
from .normalization import (
    decode_upright,
    normalize_contrast,
    resize_to_width,
    target_width_for,
    to_grayscale,
)
from .steps import (
    PreprocessStep,
    CropStep,
    GrayscaleStep,
    SharpenStep,
    ThresholdStep,
    InvertStep,
    ResizeStep,
    Pipeline,
    PipelineStepResults,
    StepResult,
)

__all__ = [
    # Records
    "AttemptStage",
    "ChannelLayout",
    "CropRegion",
    "DecodeAttempt",
    "PreprocessMode",
    "RawImage",
    # Errors
    "InvalidImage",
    "InvalidRegion",
    # Function API
    "build_pipeline",
    "load_source",
    "run_attempt",
    "decode_upright",
    "normalize_contrast",
    "resize_to_width",
    "target_width_for",
    "to_grayscale",
    # Steps
    "PreprocessStep",
    "CropStep",
    "GrayscaleStep",
    "SharpenStep",
    "ThresholdStep",
    "InvertStep",
    "ResizeStep",
    "Pipeline",
    "PipelineStepResults",
    "StepResult",
]
