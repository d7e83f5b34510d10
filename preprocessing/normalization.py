"""
Image normalization functions for preprocessing.

All functions are pure: they take an input and return a new output without
mutating the original array. This ensures predictable behavior and makes
testing straightforward.
"""

import io

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from config import NORMALIZE_PERCENTILES

from .errors import InvalidImage


def _validate_array(img: np.ndarray) -> None:
    if not isinstance(img, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(img).__name__}")

    if img.ndim < 2 or img.ndim > 3:
        raise ValueError(
            f"Image must be 2D or 3D array, got {img.ndim}D array with shape {img.shape}"
        )

    if img.size == 0:
        raise ValueError("Image array is empty")


def decode_upright(image_data: bytes) -> np.ndarray:
    """Decode image bytes into an upright RGB array.

    The EXIF orientation tag (phone photos) is applied, so the returned
    array is in the orientation a person would view the sheet.

    Raises:
        InvalidImage: If the bytes cannot be decoded or the image is empty.
    """
    try:
        with Image.open(io.BytesIO(image_data)) as image:
            width, height = image.size
            if width <= 0 or height <= 0:
                raise InvalidImage(f"Image reports no usable size ({width}x{height})")
            upright = ImageOps.exif_transpose(image)
            rgb = upright.convert("RGB")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise InvalidImage(f"Cannot decode image: {exc}") from exc

    array = np.array(rgb)
    if array.size == 0:
        raise InvalidImage("Decoded image is empty")
    return array


def to_grayscale(img: np.ndarray) -> np.ndarray:
    """Convert an image to a 2D uint8 grayscale array.

    Accepts grayscale (2D or single channel), RGB and RGBA input. The alpha
    channel is dropped.

    Raises:
        ValueError: If input is not a valid image array.
        TypeError: If img is not a numpy array.
    """
    _validate_array(img)

    if img.ndim == 2:
        result = img.copy()
    else:
        channels = img.shape[2]
        if channels == 1:
            result = img[:, :, 0].copy()
        elif channels == 3:
            result = cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)
        elif channels == 4:
            result = cv2.cvtColor(img, cv2.COLOR_RGBA2GRAY)
        else:
            raise ValueError(
                f"Unsupported number of channels: {channels}. "
                "Expected 1, 3 (RGB), or 4 (RGBA)."
            )

    if result.dtype != np.uint8:
        result = np.clip(result, 0, 255).astype(np.uint8)
    return result


def normalize_contrast(
    img: np.ndarray,
    percentiles: tuple[float, float] = NORMALIZE_PERCENTILES,
) -> np.ndarray:
    """Stretch luminance so the given percentiles map to 0 and 255.

    The same linear stretch is applied to every channel, so hues are kept.
    A uniform image (no dynamic range) is returned unchanged.

    Examples:
        >>> img = np.array([[100, 200], [200, 100]], dtype=np.uint8)
        >>> normalize_contrast(img, (0.0, 100.0)).tolist()
        [[0, 255], [255, 0]]
    """
    _validate_array(img)

    low, high = np.percentile(to_grayscale(img), percentiles)
    if high <= low:
        return img.copy()

    # 256-entry table, so a 12 MP photo never gets a float copy
    levels = (np.arange(256, dtype=np.float64) - low) * (255.0 / (high - low))
    lut = np.clip(np.rint(levels), 0, 255).astype(np.uint8)
    return cv2.LUT(img, lut)


def target_width_for(current_width: int, max_width: int = 0, scale: float = 1.0) -> int:
    """Compute the output width for an attempt.

    The width is capped to ``max_width`` when it is positive, then multiplied
    by ``scale`` and rounded, never below one pixel.
    """
    target = min(current_width, max_width) if max_width > 0 else current_width
    if scale != 1.0:
        target = max(1, int(round(target * scale)))
    return target


def resize_to_width(
    img: np.ndarray,
    target_width: int,
    interpolation: int = cv2.INTER_NEAREST,
) -> tuple[np.ndarray, float]:
    """Resize image to a target width, preserving aspect ratio.

    Nearest-neighbour is the default so binarized edges stay pure black and
    white. Pass ``cv2.INTER_AREA`` for smooth downscaling.

    Returns:
        Tuple of:
        - Resized image with same dtype as input
        - Scale factor (original_width / target_width) for coordinate mapping

    Raises:
        ValueError: If target_width is not positive or image is invalid.
        TypeError: If img is not a numpy array.

    Examples:
        >>> img = np.zeros((1000, 2000, 3), dtype=np.uint8)
        >>> resized, scale = resize_to_width(img, 1000)
        >>> resized.shape
        (500, 1000, 3)
        >>> scale
        2.0
    """
    _validate_array(img)

    if not isinstance(target_width, int):
        raise TypeError(f"target_width must be int, got {type(target_width).__name__}")

    if target_width <= 0:
        raise ValueError(f"target_width must be positive, got {target_width}")

    original_height, original_width = img.shape[:2]

    if original_width == target_width:
        return img.copy(), 1.0

    scale_factor = original_width / target_width
    new_height = max(1, int(round(original_height / scale_factor)))

    resized = cv2.resize(
        img,
        (target_width, new_height),
        interpolation=interpolation,
    )
    return resized, scale_factor
