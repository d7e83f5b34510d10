"""
Binary occupancy grid and its summed-area table.

Foreground pixels (darker than the threshold) count as 1. The table answers
"how many foreground pixels are inside this rectangle" in constant time,
whatever the rectangle's size.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


def binarize(gray: np.ndarray, threshold: int) -> np.ndarray:
    """Return a 0/1 uint8 grid, 1 where intensity is below ``threshold``."""
    if not isinstance(gray, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(gray).__name__}")
    if gray.ndim != 2:
        raise ValueError(f"binarize requires a 2D grayscale array, got shape {gray.shape}")
    return (gray < threshold).astype(np.uint8)


@dataclass(frozen=True)
class IntegralImage:
    """Summed-area table over a binary grid.

    ``table`` has shape (height + 1, width + 1) and is indexed ``[y, x]``:
    ``table[y, x]`` is the foreground count in columns [0, x) and rows [0, y).
    Row 0 and column 0 are always zero.
    """

    table: np.ndarray = field(repr=False)

    @classmethod
    def from_binary(cls, binary: np.ndarray) -> IntegralImage:
        """Build the table from a 0/1 grid.

        Row running sums are accumulated left to right, then added to the
        row above: I[y][x] = I[y-1][x] + rowsum(y, x). Integer only.
        """
        if binary.ndim != 2:
            raise ValueError(f"Expected a 2D grid, got shape {binary.shape}")
        height, width = binary.shape
        table = np.zeros((height + 1, width + 1), dtype=np.uint32)
        row_sums = np.cumsum(binary, axis=1, dtype=np.uint32)
        table[1:, 1:] = np.cumsum(row_sums, axis=0, dtype=np.uint32)
        return cls(table=table)

    @classmethod
    def from_gray(cls, gray: np.ndarray, threshold: int) -> IntegralImage:
        return cls.from_binary(binarize(gray, threshold))

    @property
    def width(self) -> int:
        return self.table.shape[1] - 1

    @property
    def height(self) -> int:
        return self.table.shape[0] - 1

    @property
    def total(self) -> int:
        """Foreground pixels in the whole grid."""
        return int(self.table[-1, -1])

    @property
    def foreground_density(self) -> float:
        area = self.width * self.height
        return self.total / area if area else 0.0

    def at(self, x: int, y: int) -> int:
        """Foreground count in [0, x) x [0, y)."""
        return int(self.table[y, x])

    def _check_window(self, x: int, y: int, w: int, h: int) -> None:
        if x < 0 or y < 0 or w < 0 or h < 0 or x + w > self.width or y + h > self.height:
            raise ValueError(
                f"Window ({x}, {y}, {w}, {h}) outside {self.width}x{self.height} grid"
            )

    def rect_sum(self, x: int, y: int, w: int, h: int) -> int:
        """Foreground count inside the window at (x, y) of size w x h."""
        self._check_window(x, y, w, h)
        t = self.table
        return (
            int(t[y + h, x + w])
            - int(t[y, x + w])
            - int(t[y + h, x])
            + int(t[y, x])
        )

    def density(self, x: int, y: int, size: int) -> float:
        """Foreground fraction of the square window at (x, y)."""
        if size <= 0:
            raise ValueError(f"Window size must be positive, got {size}")
        return self.rect_sum(x, y, size, size) / (size * size)

    def window_sums(self, xs: np.ndarray, ys: np.ndarray, size: int) -> np.ndarray:
        """Foreground counts for every square window with origins ys x xs.

        Returns an array of shape (len(ys), len(xs)); row i, column j is the
        window at (xs[j], ys[i]).
        """
        xs = np.asarray(xs, dtype=np.intp)
        ys = np.asarray(ys, dtype=np.intp)
        if xs.size and ys.size:
            self._check_window(int(xs.min()), int(ys.min()), 0, 0)
            self._check_window(int(xs.max()), int(ys.max()), size, size)
        t = self.table.astype(np.int64)
        y0 = ys[:, None]
        x0 = xs[None, :]
        return t[y0 + size, x0 + size] - t[y0, x0 + size] - t[y0 + size, x0] + t[y0, x0]
