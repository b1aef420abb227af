"""
chroma_key_core.py

Core logic for dominant-color chroma key compositing

Author: Anelia Gaydardzhieva (https://github.com/anphiriel)
(c) 2025, MIT License

This module finds the key color of a foreground image on its own (the most
populated bin of a coarse 3D color histogram) and swaps every pixel close to
that color for the matching pixel of a background image, tiling the background
when it is smaller than the foreground. It is designed to be used by the GUI
and CLI hosts in separate files, ensuring a clean separation of concerns.

Images are NumPy arrays of shape (rows, cols, 3), dtype uint8, in BGR order.
"""

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

CHANNEL_LEVELS = 256
DEFAULT_BUCKETS = 4


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def bucket_width(bucket_count: int) -> int:
    """
    Width of one quantization bucket. 256 is truncated when it does not divide evenly;
    values past the last boundary are clamped into the last bucket by the histogram
    """
    if not 1 <= bucket_count <= CHANNEL_LEVELS:
        raise ValueError(f"bucket_count must be in [1, {CHANNEL_LEVELS}], got {bucket_count}")
    return CHANNEL_LEVELS // bucket_count


def _as_bgr(image, name: str) -> np.ndarray:
    pixels = np.asarray(image)
    if pixels.size == 0:
        if pixels.ndim == 3 and pixels.shape[2] == 3:
            return pixels.astype(np.uint8, copy=False)
        return np.zeros((0, 0, 3), dtype=np.uint8)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"{name} must have shape (rows, cols, 3), got {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise ValueError(f"{name} must be uint8, got {pixels.dtype}")
    return pixels


# --------------------------------------------------
# Histogram builder
# --------------------------------------------------
def build_histogram(image: np.ndarray, bucket_count: int = DEFAULT_BUCKETS) -> np.ndarray:
    """
    Count the pixels of an image in a bucket_count^3 color histogram

    :param image:          Foreground pixels (rows, cols, 3) uint8, BGR
    :param bucket_count:   Number of buckets per channel, in [1, 256]
    :return:               int64 array of shape (B, B, B) indexed [binB][binG][binR].
                           All zeros for an empty image
    """
    width = bucket_width(bucket_count)
    pixels = _as_bgr(image, "image")
    n_bins = bucket_count ** 3

    if pixels.size == 0:
        return np.zeros((bucket_count,) * 3, dtype=np.int64)

    bins = np.clip(pixels.reshape(-1, 3).astype(np.intp) // width, 0, bucket_count - 1)
    # row-major flat index over (B, G, R)
    flat = (bins[:, 0] * bucket_count + bins[:, 1]) * bucket_count + bins[:, 2]
    counts = np.bincount(flat, minlength=n_bins).astype(np.int64)
    return counts.reshape((bucket_count,) * 3)


# --------------------------------------------------
# Dominant color selector
# --------------------------------------------------
def argmax_3d(histogram: np.ndarray) -> tuple:
    """
    Find the most populated bin

    Bins are visited with B outermost and R innermost; only a strictly greater count
    replaces the current best, so ties go to the first bin in that order.

    :param histogram:   3D count array
    :return:            ((b, g, r), count)
    """
    hist = np.asarray(histogram)
    if hist.ndim != 3 or hist.size == 0:
        raise ValueError(f"histogram must be a non-empty 3D array, got shape {hist.shape}")

    # np.argmax walks C order and returns the first occurrence of the maximum
    flat_index = int(np.argmax(hist))
    bin_index = tuple(int(i) for i in np.unravel_index(flat_index, hist.shape))
    return bin_index, int(hist[bin_index])


def bin_center(bin_index, width: int) -> tuple:
    """Midpoint color of a bin, (b, g, r)."""
    return tuple(int(i) * width + width // 2 for i in bin_index)


# --------------------------------------------------
# Chroma replacer
# --------------------------------------------------
def chroma_replace(
    foreground: np.ndarray,
    background: np.ndarray,
    key_color: tuple,
    tolerance: int
) -> np.ndarray:
    """
    Replace foreground pixels close to the key color with the tiled background

    A pixel is close when every channel differs from key_color by at most tolerance.
    Replaced pixel (r, c) takes background pixel (r % bg_rows, c % bg_cols).

    :param foreground:   Foreground pixels (rows, cols, 3) uint8, BGR
    :param background:   Background pixels of any size. Empty means nothing is replaced
    :param key_color:    (b, g, r) color to key out
    :param tolerance:    Maximum per-channel absolute difference, applied as-is
    :return:             A new array with the foreground's shape
    """
    fg = _as_bgr(foreground, "foreground")
    bg = _as_bgr(background, "background")

    bg_rows, bg_cols = bg.shape[:2]
    if fg.size == 0 or bg_rows == 0 or bg_cols == 0:
        return fg.copy()

    diff = np.abs(fg.astype(np.int32) - np.asarray(key_color, dtype=np.int32))
    close = np.all(diff <= tolerance, axis=2)

    rows, cols = fg.shape[:2]
    row_idx = np.arange(rows) % bg_rows
    col_idx = np.arange(cols) % bg_cols
    tiled = bg[row_idx[:, None], col_idx[None, :]]

    return np.where(close[..., None], tiled, fg)


# --------------------------------------------------
# Session
# --------------------------------------------------
@dataclass(frozen=True, eq=False)
class ChromaKeySession:
    """
    Key color and source images for one foreground/background pair

    Built once per foreground; set_tolerance can then be called as often as the
    tolerance control changes. Nothing is cached between calls.
    """
    foreground: np.ndarray
    background: np.ndarray
    bucket_count: int
    bin_index: tuple
    key_color: tuple
    pixel_count: int

    @classmethod
    def from_images(cls, foreground, background, bucket_count: int = DEFAULT_BUCKETS):
        fg = _as_bgr(foreground, "foreground").copy()
        bg = _as_bgr(background, "background").copy()
        fg.setflags(write=False)
        bg.setflags(write=False)

        hist = build_histogram(fg, bucket_count)
        bin_index, pixel_count = argmax_3d(hist)
        key_color = bin_center(bin_index, bucket_width(bucket_count))
        return cls(fg, bg, bucket_count, bin_index, key_color, pixel_count)

    @property
    def bucket_width(self) -> int:
        return bucket_width(self.bucket_count)

    @property
    def default_tolerance(self) -> int:
        return self.bucket_width // 2

    @property
    def max_tolerance(self) -> int:
        return max(self.bucket_width, CHANNEL_LEVELS - 1)

    def clamp_tolerance(self, value) -> int:
        return max(0, min(self.max_tolerance, int(value)))

    def set_tolerance(self, value) -> np.ndarray:
        """Composite at a new tolerance, clamped to [0, max_tolerance]."""
        return chroma_replace(self.foreground, self.background, self.key_color,
                              self.clamp_tolerance(value))


def report_key_color(session: ChromaKeySession) -> None:
    b, g, r = session.bin_index
    logger.info("Most common bin (B,G,R): [%d, %d, %d]", b, g, r)
    logger.info("Representative color:     [%d, %d, %d]", *session.key_color)
    logger.info("Pixel count: %d", session.pixel_count)
