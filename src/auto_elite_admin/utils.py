"""Utility functions for selecting car images."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Supported image extensions
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".heic"}


def is_image_file(path: Path) -> bool:
    """Check if a file is a supported image format.

    Args:
        path: Path to the file to check

    Returns:
        True if the file is a supported image format, False otherwise
    """
    return path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS


def collect_images(paths: list[Path]) -> list[Path]:
    """Expand command-line paths into an ordered image selection.

    Files keep the order they were given in. A directory contributes its
    image files sorted by name, at the position the directory was given.
    Duplicates keep their first position.

    Args:
        paths: Files and directories chosen by the user

    Returns:
        Selected image files in selection order

    Raises:
        FileNotFoundError: If a path doesn't exist
    """
    selected: list[Path] = []
    seen: set[Path] = set()

    def add(photo: Path) -> None:
        resolved = photo.resolve()
        if resolved in seen:
            logger.debug(f"Skipping duplicate image: {photo}")
            return
        seen.add(resolved)
        selected.append(photo)

    for path in paths:
        if not path.exists():
            raise FileNotFoundError(f"Image path does not exist: {path}")

        if path.is_dir():
            images = [photo for photo in sorted(path.iterdir()) if is_image_file(photo)]
            if not images:
                logger.warning(f"No images found in directory: {path}")
            for photo in images:
                add(photo)
        elif is_image_file(path):
            add(path)
        else:
            logger.warning(f"Skipping unsupported file: {path}")

    logger.info(f"Selected {len(selected)} image(s)")
    return selected
