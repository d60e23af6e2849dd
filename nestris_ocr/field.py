"""Playfield cell classification and the small color/pause probes.

Colors are compared in CIE L*a*b*, where euclidean distance tracks what the
eye sees much better than RGB distance does on washed-out captures.
"""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .constants import FIELD_COLS, FIELD_ROWS, PAUSE_LUMA_THRESHOLD, SHINE_LUMA_THRESHOLD
from .imaging import luma, quadratic_mean, rgb2lab, sample

BLOCK_PITCH = 8

# any-lit pre-check, then the interior probes used for the block color
FIELD_SHINE_PIX_REFS = ((1, 1), (1, 2), (2, 1))
FIELD_COLOR_PIX_REFS = ((2, 4), (3, 3), (4, 4), (4, 2))

COLOR_PIX_REFS = ((3, 2), (3, 3), (2, 3))

# bottom edge of "U", "S" and "E" in the PAUSE text
PAUSE_PIX_REFS = ((2, 0), (10, 0), (17, 0), (18, 0))


def _block_pixels(field_img: np.ndarray, refs) -> np.ndarray:
    """(rows, cols, len(refs), 3) float array of the probe pixels of every block."""
    ys = np.arange(FIELD_ROWS)[:, None, None] * BLOCK_PITCH + np.array([y for _, y in refs])
    xs = np.arange(FIELD_COLS)[None, :, None] * BLOCK_PITCH + np.array([x for x, _ in refs])
    return field_img[ys, xs, :3].astype(np.float64)


def scan_field(field_img: np.ndarray, colors: Sequence[Sequence[float]]) -> np.ndarray:
    """Classify the 20x10 grid of a resampled 79x159 field image.

    colors holds 3 candidates (white, color2, color3) or 4 (black first).
    Unlit cells are 0; lit cells get the nearest candidate's index, shifted
    by one when black is not among the candidates.
    """
    index_offset = 0 if len(colors) == 4 else 1
    lab_colors = rgb2lab(np.asarray(colors, dtype=np.float64))

    lit = (luma(_block_pixels(field_img, FIELD_SHINE_PIX_REFS)) > SHINE_LUMA_THRESHOLD).any(axis=-1)

    block_colors = quadratic_mean(_block_pixels(field_img, FIELD_COLOR_PIX_REFS))
    block_lab = rgb2lab(block_colors)

    dists = ((block_lab[:, :, None, :] - lab_colors[None, None, :, :]) ** 2).sum(axis=-1)
    nearest = np.argmin(dists, axis=-1) + index_offset

    return np.where(lit, nearest, 0).astype(np.uint8)


def scan_color(img: np.ndarray) -> np.ndarray:
    """Color of a 5x5 reference swatch (quadratic mean of the center probes)."""
    return quadratic_mean(sample(img, COLOR_PIX_REFS), axis=0)


def scan_white(img: np.ndarray) -> np.ndarray:
    """Brightest value per channel over the swatch interior.

    The white swatch bleeds into its border on most capture cards, so the
    max beats any average here.
    """
    interior = img[1:-1, 1:-1, :3]
    return interior.reshape(-1, 3).max(axis=0).astype(np.float64)


def scan_pause(img: np.ndarray) -> Tuple[int, bool]:
    """(average luma, lit) of the pause text probe row."""
    avg = float(np.mean(luma(sample(img, PAUSE_PIX_REFS))))
    return round(avg), avg > PAUSE_LUMA_THRESHOLD
