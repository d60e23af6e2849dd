"""Small pixel helpers shared by the recognizers. Images are RGB uint8 arrays."""
from __future__ import annotations

from typing import Sequence, Tuple

import cv2
import numpy as np

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def luma(rgb) -> np.ndarray:
    """Luma of one color or of every pixel of an (..., 3) array."""
    return np.asarray(rgb, dtype=np.float64)[..., :3] @ LUMA_WEIGHTS


def crop(img: np.ndarray, x: int, y: int, w: int, h: int) -> np.ndarray:
    return img[y:y + h, x:x + w]


def sample(img: np.ndarray, points: Sequence[Tuple[int, int]], x0: int = 0, y0: int = 0) -> np.ndarray:
    """Pixels at (x, y) points relative to (x0, y0), as an (n, 3) float array."""
    xs = [x0 + x for x, _ in points]
    ys = [y0 + y for _, y in points]
    return img[ys, xs, :3].astype(np.float64)


def quadratic_mean(colors: np.ndarray, axis: int = -2) -> np.ndarray:
    """Root of the mean of squares, channel-wise.

    A plain average of sub-pixels reads too dark on blurry captures.
    """
    colors = np.asarray(colors, dtype=np.float64)
    return np.sqrt(np.mean(colors * colors, axis=axis))


def rgb2lab(colors) -> np.ndarray:
    """Convert RGB colors in 0..255 (any leading shape, last axis 3) to CIE L*a*b*."""
    arr = np.asarray(colors, dtype=np.float32)
    shape = arr.shape
    flat = (arr.reshape(1, -1, 3) / 255.0).astype(np.float32)
    lab = cv2.cvtColor(flat, cv2.COLOR_RGB2LAB)
    return lab.reshape(shape).astype(np.float64)
