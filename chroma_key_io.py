"""
chroma_key_io.py

Image decode/encode and display scaling for the chroma key hosts

Author: Anelia Gaydardzhieva (https://github.com/anphiriel)
(c) 2025, MIT License

All OpenCV file access lives here, so chroma_key_core only ever sees decoded BGR arrays.
"""

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Decode a color image from disk

    :param path:   Image file path
    :return:       (rows, cols, 3) uint8 array in BGR order
    """
    path = Path(path)
    pixels = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if pixels is None:
        raise FileNotFoundError(f"Image not found or unreadable: {path}")
    logger.debug("Loaded %s (%dx%d)", path, pixels.shape[1], pixels.shape[0])
    return pixels


def save_image(path: Union[str, Path], pixels: np.ndarray) -> Path:
    """Encode pixels to path; the format follows the file extension."""
    path = Path(path)
    try:
        written = cv2.imwrite(str(path), pixels)
    except cv2.error as err:
        raise OSError(f"Could not write image: {path}") from err
    if not written:
        raise OSError(f"Could not write image: {path}")
    return path


def fit_to_display(pixels: np.ndarray, max_side: int = 1400) -> np.ndarray:
    """
    Shrink an image so its longest side is at most max_side

    Images that already fit (or max_side <= 0) are returned unchanged.
    """
    if pixels.size == 0:
        return pixels
    h, w = pixels.shape[:2]
    longest = max(h, w)
    if max_side <= 0 or longest <= max_side:
        return pixels
    scale = max_side / longest
    return cv2.resize(pixels, None, fx=scale, fy=scale, interpolation=cv2.INTER_AREA)
