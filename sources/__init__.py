"""
Image source adapters.

Each source yields exam-sheet photos as raw bytes for decoding.
"""

from .local import scan_local_images, load_image_bytes

__all__ = [
    "scan_local_images",
    "load_image_bytes",
]
