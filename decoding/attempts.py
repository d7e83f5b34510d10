"""
Decode attempt scheduling.

The schedule is plain data: an ordered list of DecodeAttempt records, from
cheap and general to expensive and targeted. The pipeline scans it in order
and stops at the first success.
"""

from config import (
    CORNER_CROP,
    CORNER_UPSCALE,
    HIGH_RES_MAX_WIDTH,
    LOCATED_UPSCALE,
)
from geometry import fraction_rect
from preprocessing import AttemptStage, CropRegion, DecodeAttempt, PreprocessMode

BINARIZED_MODES = (
    PreprocessMode.THRESHOLD,
    PreprocessMode.THRESHOLD_INVERT,
    PreprocessMode.SHARPEN_THRESHOLD,
)


def corner_crop(
    width: int,
    height: int,
    fractions: tuple[float, float, float, float] = CORNER_CROP,
) -> CropRegion | None:
    """Rectangle of the quadrant where sheets print the marker.

    Returns None when the image is too small for a non-empty crop.
    """
    region = CropRegion.from_rect(fraction_rect(width, height, fractions))
    if region.width <= 0 or region.height <= 0:
        return None
    return region


def schedule_attempts(
    width: int,
    height: int,
    high_res_max_width: int = HIGH_RES_MAX_WIDTH,
) -> list[DecodeAttempt]:
    """Build the ordered attempts that do not depend on region search.

    1. Full image as-is.
    2. Full image binarized at high resolution: plain, inverted, sharpened.
    3. Marker quadrant in every mode, plus a sharpened upscale.
    """
    attempts = [DecodeAttempt(stage=AttemptStage.FULL)]
    attempts.extend(
        DecodeAttempt(stage=AttemptStage.FULL_HIGH_RES, mode=mode, max_width=high_res_max_width)
        for mode in BINARIZED_MODES
    )

    crop = corner_crop(width, height)
    if crop is not None:
        attempts.append(DecodeAttempt(stage=AttemptStage.CORNER, crop=crop))
        attempts.extend(
            DecodeAttempt(stage=AttemptStage.CORNER, mode=mode, crop=crop)
            for mode in BINARIZED_MODES
        )
        attempts.append(
            DecodeAttempt(
                stage=AttemptStage.CORNER,
                mode=PreprocessMode.SHARPEN_THRESHOLD,
                crop=crop,
                scale=CORNER_UPSCALE,
            )
        )
    return attempts


def located_region_attempts(
    region: CropRegion,
    scale: float = LOCATED_UPSCALE,
) -> list[DecodeAttempt]:
    """Attempts seeded by the region search; the most targeted, tried last."""
    return [
        DecodeAttempt(
            stage=AttemptStage.LOCATED,
            mode=PreprocessMode.SHARPEN_THRESHOLD,
            crop=region,
            scale=scale,
        ),
        DecodeAttempt(
            stage=AttemptStage.LOCATED,
            mode=PreprocessMode.THRESHOLD,
            crop=region,
            scale=scale,
        ),
    ]
