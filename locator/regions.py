"""
Marker region search.

The marker is the densest dark square on the sheet's top-right area. A fixed
ladder of square window sizes slides over a downscaled, binarized copy of
that area; the window with the highest foreground density wins and is mapped
back to source pixels, padded by a margin to absorb localization error.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import cv2
import numpy as np

from config import (
    REGION_ACCEPT_DENSITY,
    REGION_MARGIN_RATIO,
    SEARCH_AREA,
    SEARCH_MIN_STEP,
    SEARCH_STEP_DIVISOR,
    SEARCH_THRESHOLD,
    SEARCH_WIDTH,
    SEARCH_WINDOW_SIZES,
)
from geometry import clamp_rect, fraction_rect
from preprocessing import CropRegion, CropStep, GrayscaleStep, Pipeline, ResizeStep

from .integral import IntegralImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionCandidate:
    """Best square window found, in search-image pixels.

    Attributes:
        left: Window x origin.
        top: Window y origin.
        size: Window side length.
        density: Foreground pixels divided by window area, in [0, 1].
    """

    left: int
    top: int
    size: int
    density: float

    def as_rect(self) -> tuple[int, int, int, int]:
        return (self.left, self.top, self.size, self.size)


def window_step(
    size: int,
    min_step: int = SEARCH_MIN_STEP,
    divisor: int = SEARCH_STEP_DIVISOR,
) -> int:
    """Stride used when sliding a window of ``size`` pixels."""
    return max(min_step, size // divisor)


def find_densest_square(
    integral: IntegralImage,
    sizes: tuple[int, ...] = SEARCH_WINDOW_SIZES,
    min_density: float = REGION_ACCEPT_DENSITY,
    min_step: int = SEARCH_MIN_STEP,
    step_divisor: int = SEARCH_STEP_DIVISOR,
) -> RegionCandidate | None:
    """Find the square window with the highest foreground density.

    Windows are visited size-ascending, then top-to-bottom, then
    left-to-right; only a strictly higher density replaces the current best,
    so ties keep the first window found.

    Returns:
        The best window, or None when no window fits the grid, when its
        density is below ``min_density``, or when it is no denser than the
        grid as a whole (uniform images have no marker to point at).
    """
    best: RegionCandidate | None = None

    for size in sizes:
        step = window_step(size, min_step, step_divisor)
        xs = np.arange(0, integral.width - size, step)
        ys = np.arange(0, integral.height - size, step)
        if xs.size == 0 or ys.size == 0:
            continue

        sums = integral.window_sums(xs, ys, size)
        # argmax returns the first maximum in row-major (top, then left) order
        row, col = np.unravel_index(int(np.argmax(sums)), sums.shape)
        density = float(sums[row, col]) / (size * size)
        if best is None or density > best.density:
            best = RegionCandidate(
                left=int(xs[col]),
                top=int(ys[row]),
                size=size,
                density=density,
            )

    if best is None:
        logger.debug("No search window fits a %dx%d grid", integral.width, integral.height)
        return None
    if best.density < min_density:
        logger.debug("Best window density %.3f below %.3f", best.density, min_density)
        return None
    if best.density <= integral.foreground_density:
        logger.debug("Best window density %.3f does not stand out", best.density)
        return None
    return best


def map_to_source(
    candidate: RegionCandidate,
    offset: tuple[int, int],
    inverse_scale: float,
) -> CropRegion:
    """Map a search-space window back to source pixels.

    Args:
        candidate: Window in the downscaled search image.
        offset: Source (x, y) of the search image's origin.
        inverse_scale: Source pixels per search pixel.
    """
    size = math.floor(candidate.size * inverse_scale)
    return CropRegion(
        left=offset[0] + math.floor(candidate.left * inverse_scale),
        top=offset[1] + math.floor(candidate.top * inverse_scale),
        width=size,
        height=size,
    )


def expand_region(
    region: CropRegion,
    source_width: int,
    source_height: int,
    margin_ratio: float = REGION_MARGIN_RATIO,
) -> CropRegion:
    """Grow a region by ``margin_ratio`` of its width on every side.

    The result is clipped to the source so it is always a valid crop.
    """
    margin = math.floor(region.width * margin_ratio)
    rect = (
        region.left - margin,
        region.top - margin,
        region.width + 2 * margin,
        region.height + 2 * margin,
    )
    return CropRegion.from_rect(clamp_rect(rect, source_width, source_height))


def locate_marker_region(
    source: np.ndarray,
    search_area: tuple[float, float, float, float] = SEARCH_AREA,
    search_width: int = SEARCH_WIDTH,
    threshold: int = SEARCH_THRESHOLD,
    sizes: tuple[int, ...] = SEARCH_WINDOW_SIZES,
    min_density: float = REGION_ACCEPT_DENSITY,
    margin_ratio: float = REGION_MARGIN_RATIO,
) -> CropRegion | None:
    """Estimate where the marker sits in an upright source image.

    Args:
        source: Upright, normalized image (RGB or grayscale).
        search_area: Fractions (left, top, width, height) of the source to search.
        search_width: Width the search area is resized to.
        threshold: Intensity below which a pixel counts as foreground.
        sizes: Window ladder, in search-image pixels.
        min_density: Acceptance threshold for the best window.
        margin_ratio: Padding added around the mapped window.

    Returns:
        Expanded source-space region, or None when nothing dense enough was found.
    """
    height, width = source.shape[:2]
    search_crop = CropRegion.from_rect(fraction_rect(width, height, search_area))
    if search_crop.width <= 0 or search_crop.height <= 0:
        logger.debug("Image %dx%d too small for a region search", width, height)
        return None

    search = Pipeline(steps=[
        CropStep(region=search_crop),
        GrayscaleStep(),
        ResizeStep(target_width=search_width, interpolation=cv2.INTER_AREA),
    ]).run(source)

    integral = IntegralImage.from_gray(search.final, threshold)
    candidate = find_densest_square(integral, sizes=sizes, min_density=min_density)
    if candidate is None:
        return None

    region = map_to_source(candidate, search.crop_offset, search.scale_factor)
    expanded = expand_region(region, width, height, margin_ratio=margin_ratio)
    logger.debug(
        "Marker region %s (density %.3f, size %d) -> %s",
        candidate.as_rect(), candidate.density, candidate.size, expanded.as_rect(),
    )
    if expanded.width <= 0 or expanded.height <= 0:
        return None
    return expanded
