"""Loading the source photograph for the image plane."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def load_oriented_image(path: Path | str) -> Optional[np.ndarray]:
    """Read an image as an upright RGB array, or ``None`` if it cannot be read.

    ``cv2.imread`` applies the EXIF orientation tag, so the returned pixels are
    already rotated the way the photo is meant to be viewed.
    """

    path = Path(path)
    if not path.is_file():
        logger.warning("Image file does not exist: %s", path)
        return None
    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        logger.warning("Unable to read image: %s", path)
        return None
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """(width, height) of an image array."""

    height, width = image.shape[:2]
    return int(width), int(height)


def is_valid_image(image: Optional[np.ndarray]) -> bool:
    if image is None or image.ndim < 2:
        return False
    width, height = image_size(image)
    return width > 0 and height > 0


__all__ = ["load_oriented_image", "image_size", "is_valid_image"]
