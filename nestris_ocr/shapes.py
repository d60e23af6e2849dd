"""Tetromino recognition from block highlights.

Every NES block has a bright "shine" pixel cluster in its top-left corner.
Probing a handful of fixed block positions for that shine is enough to tell
the seven pieces apart in the preview box and in the DAS trainer's current
piece box.
"""
from __future__ import annotations

from typing import Optional

import numpy as np

from .constants import SHINE_LUMA_THRESHOLD
from .imaging import luma

SHINE_PIX_REFS = ((0, 0), (1, 1), (1, 2))


def has_shine(img: np.ndarray, x: int, y: int) -> bool:
    """True if any probe pixel of the 2x3 area at (x, y) is brighter than the shine threshold."""
    return any(luma(img[y + dy, x + dx]) > SHINE_LUMA_THRESHOLD for dx, dy in SHINE_PIX_REFS)


def scan_preview(img: np.ndarray) -> Optional[str]:
    if has_shine(img, 0, 4) and has_shine(img, 28, 4):
        return "I"

    top_row = [has_shine(img, 4, 0), has_shine(img, 12, 0), has_shine(img, 20, 0)]

    if all(top_row):
        if has_shine(img, 4, 8):
            return "L"
        if has_shine(img, 12, 8):
            return "T"
        if has_shine(img, 20, 8):
            return "J"
        return None

    if top_row[1] and top_row[2]:
        if has_shine(img, 4, 8) and has_shine(img, 12, 8):
            return "S"

    if top_row[0] and top_row[1]:
        if has_shine(img, 12, 8) and has_shine(img, 20, 8):
            return "Z"

    if (has_shine(img, 8, 0) and has_shine(img, 16, 0)
            and has_shine(img, 8, 8) and has_shine(img, 16, 8)):
        return "O"

    return None


def scan_cur_piece(img: np.ndarray) -> Optional[str]:
    # L and J render one pixel higher than S, Z, T and O in this box
    if has_shine(img, 0, 4) and has_shine(img, 20, 4):
        return "I"

    top_row = [has_shine(img, 2, 0), has_shine(img, 8, 0), has_shine(img, 14, 0)]

    if all(top_row):
        if has_shine(img, 2, 6):
            return "L"
        if has_shine(img, 14, 6):
            return "J"

    top_row = [has_shine(img, 2, 1), has_shine(img, 8, 1), has_shine(img, 14, 1)]

    if all(top_row):
        if has_shine(img, 8, 7):
            return "T"
        return None

    if top_row[1] and top_row[2]:
        if has_shine(img, 2, 7) and has_shine(img, 8, 7):
            return "S"

    if top_row[0] and top_row[1]:
        if has_shine(img, 8, 7) and has_shine(img, 14, 7):
            return "Z"

    if (has_shine(img, 5, 1) and has_shine(img, 11, 1)
            and has_shine(img, 5, 7) and has_shine(img, 11, 7)):
        return "O"

    return None
