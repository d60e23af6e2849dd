"""Where each task is cropped from the frame and where it lands on the sheet.

Every task crop is resampled to a fixed size (TASK_RESIZE) and packed into
one small "sprite sheet" image, so a frame costs one resize pass and the
recognizers always see the same pixel geometry:

    +-------+---+
    | field | T |
    |       | J |  piece counters, then lines, level,
    |       |...|  preview (color swatches to its right)
    |       |cur|  and the current piece
    +-------+---+
    | pause |
    +-----------------------------+
    | score                       |
    | inst das | piece das | count|
    +-----------------------------+
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .config import OCRConfig, resize_for
from .constants import (
    GYM_PAUSE_CROP_RELATIVE_TO_FIELD,
    PIECES,
    PROFILE_DAS_TRAINER,
    SHEET_GAP,
    TASK_RESIZE,
)

log = logging.getLogger(__name__)

Rect = Tuple[int, int, int, int]


@dataclass
class TaskLayout:
    name: str
    crop: Rect
    sheet: Rect


@dataclass
class Layout:
    tasks: Dict[str, TaskLayout] = field(default_factory=dict)
    sheet_size: Tuple[int, int] = (1, 1)
    capture_area: Rect = (0, 0, 0, 0)

    @property
    def gym_pause_enabled(self) -> bool:
        return "gym_pause" in self.tasks


def gym_pause_crop(field_crop: Rect) -> Optional[Rect]:
    """Pause probe crop scaled from the field crop, or None if it collapses to nothing."""
    fx, fy, fw, fh = field_crop
    scale_x = fw / TASK_RESIZE["field"][0]
    scale_y = fh / TASK_RESIZE["field"][1]
    rx, ry, rw, rh = GYM_PAUSE_CROP_RELATIVE_TO_FIELD

    crop = (
        round(fx + rx * scale_x),
        round(fy + ry * scale_y),
        round(rw * scale_x),
        round(rh * scale_y),
    )
    if crop[2] <= 0 or crop[3] <= 0:
        log.warning(
            "Unexpected zero-size gym crop coordinates %s (in relation to field crop coordinates %s "
            "- with scale factors %sx%s). Gym Pause scanning is disabled.",
            list(crop), list(field_crop), scale_x, scale_y,
        )
        return None
    return crop


def sheet_coordinates(score7: bool = False) -> Dict[str, Rect]:
    coords = {}
    gap = SHEET_GAP
    field_w, field_h = TASK_RESIZE["field"]

    coords["field"] = (0, 0, field_w, field_h)
    coords["gym_pause"] = (0, field_h + gap) + TASK_RESIZE["gym_pause"]

    x, y = field_w + gap, 0
    for piece in PIECES:
        coords[piece.value] = (x, y) + TASK_RESIZE["piece_count"]
        y += TASK_RESIZE["score"][1] + gap
    for name in ("lines", "level", "preview", "cur_piece"):
        coords[name] = (x, y) + TASK_RESIZE[name]
        y += TASK_RESIZE[name][1] + gap

    px, _, pw, _ = coords["preview"]
    _, ly, _, lh = coords["lines"]
    x, y = px + pw + gap, ly + lh + gap
    for name in ("color1", "color2", "color3"):
        coords[name] = (x, y) + TASK_RESIZE[name]
        y += TASK_RESIZE[name][1] + gap

    _, gy, _, gh = coords["gym_pause"]
    _, cy, _, ch = coords["cur_piece"]
    x, y = 0, max(gy + gh, cy + ch) + gap
    coords["score"] = (x, y) + resize_for("score", score7)
    y += TASK_RESIZE["score"][1] + gap
    for name in ("instant_das", "cur_piece_das", "piece_count"):
        coords[name] = (x, y) + TASK_RESIZE[name]
        x += TASK_RESIZE[name][0] + gap

    return coords


def compute_layout(config: OCRConfig) -> Layout:
    crops = {name: task.crop for name, task in config.tasks.items()}

    # the das trainer has no pause text
    if config.profile != PROFILE_DAS_TRAINER and "field" in crops:
        pause_crop = gym_pause_crop(crops["field"])
        if pause_crop is not None:
            crops["gym_pause"] = pause_crop

    coords = sheet_coordinates(config.score7)
    layout = Layout()

    left = top = None
    right = bottom = None
    for name, crop in crops.items():
        if config.palette and name.startswith("color"):
            continue
        if name not in coords:
            log.debug("Ignoring unknown task %r", name)
            continue
        x, y, w, h = crop
        left = x if left is None else min(left, x)
        top = y if top is None else min(top, y)
        right = x + w if right is None else max(right, x + w)
        bottom = y + h if bottom is None else max(bottom, y + h)
        layout.tasks[name] = TaskLayout(name, crop, coords[name])

    layout.sheet_size = (
        max(1, max(sx + sw for sx, _, sw, _ in coords.values())),
        max(1, max(sy + sh for _, sy, _, sh in coords.values())),
    )
    if left is not None:
        layout.capture_area = (left, top, right - left, bottom - top)
    return layout
