"""Template-matched digit recognition.

Each glyph of a resampled digit task is compared pixel by pixel against the
reference templates (sum of squared luma differences); the closest template
wins. The blank template (index 0) means "nothing legible here", and a
single blank glyph voids the whole reading for that frame.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from .constants import DIGIT_PITCH, DIGIT_SIZE, PATTERN_MAX_INDEXES, RED_SCALE
from .imaging import luma

Digits = List[int]


def glyph_luma(glyph: np.ndarray, red: bool = False) -> np.ndarray:
    if red:
        # only the red component, scaled as if capped at 155
        return np.minimum(glyph[..., 0].astype(np.float64) * RED_SCALE, 255.0)
    return luma(glyph)


def get_digit(glyph: np.ndarray, templates: np.ndarray, max_check_index: int, red: bool = False) -> int:
    """Index of the closest template among the first max_check_index ones."""
    values = glyph_luma(glyph, red)
    diffs = templates[:max_check_index] - values
    sums = np.einsum("ijk,ijk->i", diffs, diffs)
    return int(np.argmin(sums))


def recognize(region: np.ndarray, templates: np.ndarray, pattern: str, red: bool = False) -> Optional[Digits]:
    """Read len(pattern) digits from a resampled task image.

    Returns None, never a partial list, if any glyph matches the blank template.
    """
    digits = []
    for idx, char in enumerate(pattern):
        x = idx * DIGIT_PITCH
        glyph = region[:DIGIT_SIZE, x:x + DIGIT_SIZE]
        digit = get_digit(glyph, templates, PATTERN_MAX_INDEXES[char], red)
        if not digit:
            return None
        digits.append(digit - 1)
    return digits


def digits_to_value(digits: Optional[Sequence[int]]) -> Optional[int]:
    if not digits:
        return None
    value = 0
    for d in digits:
        value = value * 10 + d
    return value


def digits_equal(a: Optional[Sequence[int]], b: Optional[Sequence[int]]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))
