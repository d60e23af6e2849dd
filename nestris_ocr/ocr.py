"""Per-frame OCR over the task sheet.

Step 1 (scan) reads everything that does not depend on game state. Step 2
(classify_field) needs the level to pick the block colors, so it runs on
the stabilized scan once the session has derived the level.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import numpy as np

from .backends import AcquisitionBackend, make_backend
from .config import OCRConfig
from .constants import DEFAULT_COLOR_0, DEFAULT_COLOR_1, PIECES
from .digits import recognize
from .field import scan_color, scan_field, scan_pause, scan_white
from .frames import Color, FieldResult, FrameScan
from .imaging import crop
from .layout import Layout, compute_layout
from .shapes import scan_cur_piece, scan_preview

log = logging.getLogger(__name__)


def fix_palette(palette: Optional[List[List[Color]]]) -> Optional[List[List[Color]]]:
    """Two-color palette entries get white in front, matching color1/2/3."""
    if palette is None:
        return None
    return [[DEFAULT_COLOR_1] + list(colors) if len(colors) == 2 else list(colors) for colors in palette]


def _round_color(color) -> Color:
    return tuple(int(round(float(c))) for c in color)


class SheetOCR:
    def __init__(
        self,
        templates: np.ndarray,
        palettes: Optional[Dict[str, List[List[Color]]]],
        config: OCRConfig,
        backend: str = "software",
    ):
        self.templates = templates
        self.palettes = palettes or {}
        self.backend_name = backend
        self.backend: Optional[AcquisitionBackend] = None
        self.set_config(config)

    def set_config(self, config: OCRConfig):
        self.config = config
        self.palette = fix_palette(self.palettes.get(config.palette)) if config.palette else None
        self.layout: Layout = compute_layout(config)
        if self.backend is None:
            self.backend = make_backend(self.backend_name, config, self.layout)
        else:
            self.backend.configure(config, self.layout)
        log.debug("Sheet is %dx%d, capture area %s", *self.layout.sheet_size, self.layout.capture_area)

    def task_image(self, sheet_img: np.ndarray, name: str) -> np.ndarray:
        return crop(sheet_img, *self.layout.tasks[name].sheet)

    def _digits(self, sheet_img: np.ndarray, name: str):
        task = self.config.tasks[name]
        return recognize(self.task_image(sheet_img, name), self.templates, task.pattern, task.red)

    def scan(self, frame: np.ndarray) -> FrameScan:
        source_img, sheet_img = self.backend.acquire(frame)

        res = FrameScan(
            score=self._digits(sheet_img, "score"),
            level=self._digits(sheet_img, "level"),
            lines=self._digits(sheet_img, "lines"),
            preview=scan_preview(self.task_image(sheet_img, "preview")),
            source_img=source_img,
            sheet_img=sheet_img,
        )

        if self.config.tracks_das:
            res.instant_das = self._digits(sheet_img, "instant_das")
            res.cur_piece_das = self._digits(sheet_img, "cur_piece_das")
            res.cur_piece = scan_cur_piece(self.task_image(sheet_img, "cur_piece"))

        if self.config.tracks_piece_counts:
            res.piece_counts = {p: self._digits(sheet_img, p.value) for p in PIECES}

        if self.layout.gym_pause_enabled:
            res.gym_pause = scan_pause(self.task_image(sheet_img, "gym_pause"))

        return res

    def classify_field(self, scan: FrameScan, level: Optional[int]) -> FieldResult:
        """Block colors for the level, then the 20x10 field grid.

        Without a level (paused or illegible) the level 0 colors are used.
        """
        level_units = (level or 0) % 10
        sheet_img = scan.sheet_img

        if self.palette is not None:
            color1, color2, color3 = self.palette[level_units]
        else:
            color2 = scan_color(self.task_image(sheet_img, "color2"))
            color3 = scan_color(self.task_image(sheet_img, "color3"))
            if "color1" in self.layout.tasks:
                color1 = scan_white(self.task_image(sheet_img, "color1"))
            else:
                color1 = DEFAULT_COLOR_1

        colors = [color1, color2, color3]
        # X6 and X7 colors sit too close to black on some capture setups
        if level_units not in (6, 7):
            colors.insert(0, DEFAULT_COLOR_0)

        field = scan_field(self.task_image(sheet_img, "field"), colors)

        return FieldResult(
            field=field,
            color1=_round_color(color1),
            color2=_round_color(color2),
            color3=_round_color(color3),
        )

    def release(self, scan: FrameScan):
        """Hand the scan's pixel buffers back to the backend."""
        self.backend.release(scan.source_img, scan.sheet_img)
        scan.source_img = None
        scan.sheet_img = None
