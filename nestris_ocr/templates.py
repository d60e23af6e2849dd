"""Reference glyph templates for digit matching.

Templates are a (17, 14, 14) float array of luma values: index 0 is the
blank glyph (no confident match), then 0-9, then A-F.
"""
from __future__ import annotations

import logging

import cv2
import numpy as np
from PIL import Image

from .constants import DIGIT_SIZE, TEMPLATE_COUNT, TEMPLATE_GLYPHS

log = logging.getLogger(__name__)


def load_templates(path: str) -> np.ndarray:
    """Load a horizontal PNG strip of 17 glyphs, each 14x14, ordered blank, 0-9, A-F."""
    with Image.open(path) as im:
        gray = np.asarray(im.convert("L"), dtype=np.float64)
    expected = (DIGIT_SIZE, DIGIT_SIZE * TEMPLATE_COUNT)
    if gray.shape != expected:
        raise ValueError(f"template strip {path} is {gray.shape[1]}x{gray.shape[0]}, "
                         f"expected {expected[1]}x{expected[0]}")
    templates = gray.reshape(DIGIT_SIZE, TEMPLATE_COUNT, DIGIT_SIZE).transpose(1, 0, 2)
    log.debug("Loaded %d glyph templates from %s", TEMPLATE_COUNT, path)
    return np.ascontiguousarray(templates)


def generate_templates(font_scale: float = 0.5, thickness: int = 1) -> np.ndarray:
    """Render stand-in glyph templates with cv2.putText (no external files).

    Real captures match far better against templates cut from the game,
    but these keep the pipeline usable out of the box.
    """
    templates = np.zeros((TEMPLATE_COUNT, DIGIT_SIZE, DIGIT_SIZE), np.float64)
    for idx, glyph in enumerate(TEMPLATE_GLYPHS):
        if glyph == " ":
            continue
        canvas = np.zeros((DIGIT_SIZE, DIGIT_SIZE), np.uint8)
        cv2.putText(canvas, glyph, (2, 12), cv2.FONT_HERSHEY_SIMPLEX, font_scale, 255, thickness, cv2.LINE_8)
        templates[idx] = canvas
    return templates


def save_templates(templates: np.ndarray, path: str):
    strip = np.clip(templates, 0, 255).astype(np.uint8).transpose(1, 0, 2).reshape(DIGIT_SIZE, -1)
    Image.fromarray(strip).save(path)
