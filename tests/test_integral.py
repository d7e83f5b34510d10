"""Tests for the binary grid and its summed-area table."""

import numpy as np
import pytest

from locator import IntegralImage, binarize


def brute_force_sum(grid: np.ndarray, x: int, y: int, w: int, h: int) -> int:
    return int(grid[y:y + h, x:x + w].sum())


class TestBinarize:
    def test_foreground_is_darker_than_threshold(self):
        gray = np.array([[0, 139, 140, 255]], dtype=np.uint8)
        assert binarize(gray, 140).tolist() == [[1, 1, 0, 0]]

    def test_requires_2d(self):
        with pytest.raises(ValueError, match="2D"):
            binarize(np.zeros((4, 4, 3), dtype=np.uint8), 140)


class TestIntegralImage:
    def test_zero_row_and_column(self):
        grid = np.ones((6, 9), dtype=np.uint8)
        integral = IntegralImage.from_binary(grid)
        assert integral.table.shape == (7, 10)
        assert not integral.table[0, :].any()
        assert not integral.table[:, 0].any()

    def test_monotonic_along_both_axes(self):
        grid = np.random.default_rng(3).integers(0, 2, (20, 30), dtype=np.uint8)
        table = IntegralImage.from_binary(grid).table.astype(np.int64)
        assert (np.diff(table, axis=0) >= 0).all()
        assert (np.diff(table, axis=1) >= 0).all()

    def test_total_and_density(self):
        grid = np.zeros((10, 10), dtype=np.uint8)
        grid[:5, :] = 1
        integral = IntegralImage.from_binary(grid)
        assert integral.total == 50
        assert integral.foreground_density == 0.5
        assert integral.at(10, 10) == 50
        assert integral.at(3, 2) == 6

    @pytest.mark.parametrize("seed", [0, 1, 2, 7])
    def test_rect_sum_matches_brute_force(self, seed):
        rng = np.random.default_rng(seed)
        grid = rng.integers(0, 2, (37, 53), dtype=np.uint8)
        integral = IntegralImage.from_binary(grid)
        for _ in range(50):
            w = int(rng.integers(0, 54))
            h = int(rng.integers(0, 38))
            x = int(rng.integers(0, 54 - w))
            y = int(rng.integers(0, 38 - h))
            assert integral.rect_sum(x, y, w, h) == brute_force_sum(grid, x, y, w, h)

    def test_density_in_unit_interval(self):
        grid = np.random.default_rng(5).integers(0, 2, (40, 40), dtype=np.uint8)
        integral = IntegralImage.from_binary(grid)
        for size in (1, 7, 20, 40):
            value = integral.density(0, 0, size)
            assert 0.0 <= value <= 1.0

    def test_full_black_window_has_density_one(self):
        integral = IntegralImage.from_gray(np.zeros((12, 12), dtype=np.uint8), 140)
        assert integral.density(2, 2, 10) == 1.0

    @pytest.mark.parametrize(
        "window",
        [(-1, 0, 5, 5), (0, -1, 5, 5), (6, 0, 5, 5), (0, 6, 5, 5)],
    )
    def test_window_outside_grid_raises(self, window):
        integral = IntegralImage.from_binary(np.ones((10, 10), dtype=np.uint8))
        with pytest.raises(ValueError, match="outside"):
            integral.rect_sum(*window)

    def test_density_requires_positive_size(self):
        integral = IntegralImage.from_binary(np.ones((10, 10), dtype=np.uint8))
        with pytest.raises(ValueError, match="positive"):
            integral.density(0, 0, 0)

    def test_window_sums_match_rect_sum(self):
        grid = np.random.default_rng(11).integers(0, 2, (60, 80), dtype=np.uint8)
        integral = IntegralImage.from_binary(grid)
        xs = np.arange(0, 80 - 16, 4)
        ys = np.arange(0, 60 - 16, 4)
        sums = integral.window_sums(xs, ys, 16)
        assert sums.shape == (len(ys), len(xs))
        for i, y in enumerate(ys):
            for j, x in enumerate(xs):
                assert sums[i, j] == integral.rect_sum(int(x), int(y), 16, 16)

    def test_window_sums_reject_out_of_bounds_origins(self):
        integral = IntegralImage.from_binary(np.ones((20, 20), dtype=np.uint8))
        with pytest.raises(ValueError, match="outside"):
            integral.window_sums(np.array([0, 10]), np.array([0]), 15)
