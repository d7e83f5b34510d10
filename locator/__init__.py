"""
Marker localization module.

Estimates where the dense, high-contrast marker square sits in a photo
whose exact framing is unknown.

Key components:
- integral: binarization and the summed-area table (O(1) rectangle sums)
- regions: multi-size sliding-window search and mapping back to source pixels
"""

from .integral import IntegralImage, binarize
from .regions import (
    RegionCandidate,
    expand_region,
    find_densest_square,
    locate_marker_region,
    map_to_source,
    window_step,
)

__all__ = [
    "IntegralImage",
    "binarize",
    "RegionCandidate",
    "expand_region",
    "find_densest_square",
    "locate_marker_region",
    "map_to_source",
    "window_step",
]
