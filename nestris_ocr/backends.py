"""Acquisition backends: turn a raw frame into the capture-area image and the task sheet.

Both backends share the frame preparation (half height, brightness and
contrast) and the buffer pool. They differ in how the sheet is built:

- SoftwareBackend resizes each task crop on its own (bicubic) and pastes it.
- RemapBackend precomputes one coordinate map for the whole sheet when the
  configuration changes, then builds the sheet with a single cv2.remap.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Type

import cv2
import numpy as np

from .config import OCRConfig
from .constants import SHEET_FILL
from .layout import Layout

log = logging.getLogger(__name__)

# remap coordinate for sheet pixels that no task covers (always out of frame)
UNMAPPED = -16.0


class BufferPool:
    """Free list of image buffers. A released buffer is reused only for the same shape."""

    def __init__(self, max_free: int = 8):
        self.max_free = max_free
        self._free: List[np.ndarray] = []

    def take(self, shape: Tuple[int, ...]) -> np.ndarray:
        for idx, buf in enumerate(self._free):
            if buf.shape == shape:
                return self._free.pop(idx)
        return np.empty(shape, np.uint8)

    def give(self, buf: Optional[np.ndarray]):
        if buf is None or len(self._free) >= self.max_free:
            return
        self._free.append(buf)

    def clear(self):
        self._free.clear()

    def __len__(self):
        return len(self._free)


def prepare_frame(frame: np.ndarray, config: OCRConfig) -> np.ndarray:
    """Apply half height and the brightness/contrast filters to an RGB frame."""
    if frame.ndim == 3 and frame.shape[2] == 4:
        frame = np.ascontiguousarray(frame[..., :3])

    if config.use_half_height:
        h, w = frame.shape[:2]
        frame = cv2.resize(frame, (w, max(1, h >> 1)), interpolation=cv2.INTER_NEAREST)

    # brightness only ever boosts; contrast pivots on mid gray and saturates at both ends
    brightness = config.brightness if config.brightness and config.brightness > 1 else 1.0
    contrast = config.contrast if config.contrast else 1.0
    if brightness != 1.0 or contrast != 1.0:
        frame = cv2.addWeighted(frame, brightness * contrast, frame, 0.0, 128.0 * (1.0 - contrast))

    return frame


class AcquisitionBackend(ABC):
    name = "base"

    def __init__(self, config: OCRConfig, layout: Layout):
        self.pool = BufferPool()
        self.configure(config, layout)

    def configure(self, config: OCRConfig, layout: Layout):
        """Whole replace of the configuration; pooled buffers are dropped."""
        self.config = config
        self.layout = layout
        self.pool.clear()

    def acquire(self, frame: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """(source_img, sheet_img) for one frame, both borrowed from the pool."""
        frame = prepare_frame(frame, self.config)

        sw, sh = self.layout.sheet_size
        sheet = self.pool.take((sh, sw, 3))
        self.render_sheet(frame, sheet)

        ax, ay, aw, ah = self.layout.capture_area
        source = self.pool.take((ah, aw, 3))
        source.fill(0)
        region = frame[max(0, ay):ay + ah, max(0, ax):ax + aw]
        source[:region.shape[0], :region.shape[1]] = region

        return source, sheet

    def release(self, source_img: Optional[np.ndarray], sheet_img: Optional[np.ndarray]):
        self.pool.give(source_img)
        self.pool.give(sheet_img)

    @abstractmethod
    def render_sheet(self, frame: np.ndarray, sheet: np.ndarray):
        ...


class SoftwareBackend(AcquisitionBackend):
    name = "software"

    def render_sheet(self, frame: np.ndarray, sheet: np.ndarray):
        sheet.fill(SHEET_FILL)
        fh, fw = frame.shape[:2]
        for task in self.layout.tasks.values():
            x, y, w, h = task.crop
            region = frame[max(0, y):min(fh, y + h), max(0, x):min(fw, x + w)]
            if region.size == 0:
                log.debug("Task %s crop %s is outside the %dx%d frame", task.name, task.crop, fw, fh)
                continue
            sx, sy, sw, sh = task.sheet
            sheet[sy:sy + sh, sx:sx + sw] = cv2.resize(region, (sw, sh), interpolation=cv2.INTER_CUBIC)


def build_remap(layout: Layout) -> Tuple[np.ndarray, np.ndarray]:
    """Per sheet pixel, the (fractional) frame coordinate it samples.

    Pixel centers are matched the way cv2.resize matches them, so a task
    sampled through the map lines up with a task resized on its own.
    """
    sw, sh = layout.sheet_size
    map_x = np.full((sh, sw), UNMAPPED, np.float32)
    map_y = np.full((sh, sw), UNMAPPED, np.float32)

    for task in layout.tasks.values():
        cx, cy, cw, ch = task.crop
        sx, sy, tw, th = task.sheet
        xs = cx + (np.arange(tw, dtype=np.float32) + 0.5) * (cw / tw) - 0.5
        ys = cy + (np.arange(th, dtype=np.float32) + 0.5) * (ch / th) - 0.5
        map_x[sy:sy + th, sx:sx + tw] = xs[None, :]
        map_y[sy:sy + th, sx:sx + tw] = ys[:, None]

    return map_x, map_y


class RemapBackend(AcquisitionBackend):
    name = "remap"

    def configure(self, config: OCRConfig, layout: Layout):
        super().configure(config, layout)
        self.map_x, self.map_y = build_remap(layout)

    def render_sheet(self, frame: np.ndarray, sheet: np.ndarray):
        cv2.remap(
            frame, self.map_x, self.map_y, cv2.INTER_CUBIC,
            dst=sheet,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(SHEET_FILL, SHEET_FILL, SHEET_FILL),
        )


BACKENDS: Dict[str, Type[AcquisitionBackend]] = {
    SoftwareBackend.name: SoftwareBackend,
    RemapBackend.name: RemapBackend,
}


def make_backend(name: str, config: OCRConfig, layout: Layout) -> AcquisitionBackend:
    try:
        cls = BACKENDS[name]
    except KeyError:
        raise ValueError(f"unknown backend {name!r}, expected one of {sorted(BACKENDS)}")
    return cls(config, layout)
