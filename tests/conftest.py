"""Pytest configuration and synthetic sheet fixtures.

Slow tests (full pipeline on large photos) are skipped unless --slow is passed.
Run the full suite:   pytest --slow
Run fast tests only:  pytest          (default)
"""
import cv2
import numpy as np
import pytest

MARKER_TEXT = "FOLIO-0007"


def pytest_addoption(parser):
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests that decode large sheet photos",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--slow"):
        return  # run everything
    skip_slow = pytest.mark.skip(reason="slow test skipped, pass --slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def blank_page(width: int = 1000, height: int = 1200) -> np.ndarray:
    """White grayscale sheet."""
    return np.full((height, width), 255, dtype=np.uint8)


def encode_image(img: np.ndarray, ext: str = ".png") -> bytes:
    ok, buffer = cv2.imencode(ext, img)
    assert ok, f"failed to encode synthetic image as {ext}"
    return buffer.tobytes()


def qr_marker(text: str = MARKER_TEXT, module_px: int = 8) -> np.ndarray:
    """QR code for ``text`` with a white quiet zone, modules ``module_px`` wide."""
    encoder = cv2.QRCodeEncoder.create()
    code = encoder.encode(text)
    code = np.where(code < 128, 0, 255).astype(np.uint8)
    size = code.shape[1] * module_px
    scaled = cv2.resize(code, (size, size), interpolation=cv2.INTER_NEAREST)
    return np.pad(scaled, 4 * module_px, constant_values=255)


def sheet_with_marker(
    text: str = MARKER_TEXT,
    width: int = 1000,
    height: int = 1300,
    top: int = 40,
) -> np.ndarray:
    """White sheet with a QR marker pasted in the top-right quadrant."""
    page = blank_page(width, height)
    marker = qr_marker(text)
    h, w = marker.shape
    x, y = width - w - 40, top
    page[y:y + h, x:x + w] = marker
    return page


@pytest.fixture
def white_png() -> bytes:
    return encode_image(blank_page())


@pytest.fixture
def marker_png() -> bytes:
    return encode_image(sheet_with_marker())


def coverage(rect, target) -> float:
    """Fraction of the ``target`` rectangle's area that ``rect`` overlaps."""
    ax, ay, aw, ah = rect
    bx, by, bw, bh = target
    inter_w = min(ax + aw, bx + bw) - max(ax, bx)
    inter_h = min(ay + ah, by + bh) - max(ay, by)
    if inter_w <= 0 or inter_h <= 0 or bw * bh <= 0:
        return 0.0
    return inter_w * inter_h / (bw * bh)
