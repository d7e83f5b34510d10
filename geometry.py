"""Shared geometry utilities for axis-aligned rectangles.

Rectangles are (left, top, width, height) tuples in pixel units.
"""

from __future__ import annotations

import math

Rect = tuple[int, int, int, int]


def fraction_rect(
    width: int,
    height: int,
    fractions: tuple[float, float, float, float],
) -> Rect:
    """Scale (left, top, width, height) fractions to a pixel rectangle.

    Every component is floored, so the result always fits inside the image.
    """
    fl, ft, fw, fh = fractions
    return (
        math.floor(width * fl),
        math.floor(height * ft),
        math.floor(width * fw),
        math.floor(height * fh),
    )


def clamp_rect(rect: Rect, bounds_width: int, bounds_height: int) -> Rect:
    """Clip a rectangle to [0, bounds_width) x [0, bounds_height)."""
    x, y, w, h = rect
    left = min(max(0, x), bounds_width)
    top = min(max(0, y), bounds_height)
    right = min(max(0, x + w), bounds_width)
    bottom = min(max(0, y + h), bounds_height)
    return left, top, max(0, right - left), max(0, bottom - top)
