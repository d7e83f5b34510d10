"""
Local directory image scanning.

Functions for finding and loading exam-sheet photos from local directories.
"""

from pathlib import Path

from config import IMAGE_EXTENSIONS


def scan_local_images(path: str | Path) -> list[Path]:
    """Find the sheet photos directly inside a directory.

    Extensions are matched case-insensitively; subdirectories are not
    searched.

    Args:
        path: Directory to scan.

    Returns:
        Image file paths sorted by file name.

    Raises:
        FileNotFoundError: If the directory does not exist.
        NotADirectoryError: If the path is not a directory.
    """
    directory = Path(path).resolve()

    if not directory.exists():
        raise FileNotFoundError(f"{path} does not exist")
    if not directory.is_dir():
        raise NotADirectoryError(f"{path} is not a directory")

    return sorted(
        (entry for entry in directory.iterdir()
         if entry.is_file() and entry.suffix.lower() in IMAGE_EXTENSIONS),
        key=lambda entry: entry.name,
    )


def load_image_bytes(path: Path) -> bytes:
    """Read an image file's raw bytes (OSError propagates)."""
    return Path(path).read_bytes()
