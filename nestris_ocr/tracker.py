"""GameTracker: the single entry point from raw frames to dispatch events.

Events come out BUFFER_MAXSIZE frames behind the input. A value read on
an interlaced transition frame can be wrong, so every change has to hold
for the whole buffer before it is dispatched (see stabilizer).
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import numpy as np

from .config import OCRConfig
from .constants import BUFFER_MAXSIZE, PIECES
from .correctors import LevelFixer, ScoreFixer
from .digits import digits_to_value
from .frames import Color, DispatchEvent, FrameScan
from .ocr import SheetOCR
from .session import GameSessionManager, SessionStore
from .stabilizer import TemporalStabilizer

log = logging.getLogger(__name__)


def _noop(*args):
    pass


class GameTracker:
    def __init__(
        self,
        templates: np.ndarray,
        palettes: Optional[Dict[str, List[List[Color]]]],
        config: OCRConfig,
        store: Optional[SessionStore] = None,
        backend: str = "software",
        on_message: Optional[Callable[[DispatchEvent], None]] = None,
        on_new_game: Optional[Callable[[int], None]] = None,
        on_palette: Optional[Callable[[list], None]] = None,
        capacity: int = BUFFER_MAXSIZE,
    ):
        self.on_message = on_message or _noop
        self.on_new_game = on_new_game or _noop
        self.on_palette = on_palette or _noop

        self.capacity = capacity
        self.config = config
        self.ocr = SheetOCR(templates, palettes, config, backend=backend)
        self.level_fixer = LevelFixer()
        self.score_fixer = ScoreFixer(enabled=not config.score7)
        self.session = GameSessionManager(store, self.level_fixer, self.score_fixer, palette_capacity=capacity)
        self.stabilizer = TemporalStabilizer(config.profile, capacity)

    @property
    def gameid(self) -> int:
        return self.session.state.gameid

    def set_config(self, config: OCRConfig):
        """Replace the whole configuration. Buffered frames are dropped."""
        for scan in self.stabilizer.buffer:
            self.ocr.release(scan)
        self.config = config
        self.ocr.set_config(config)
        self.score_fixer.enabled = not config.score7
        self.stabilizer = TemporalStabilizer(config.profile, self.capacity)
        log.info("Configuration replaced (%s profile)", config.profile)

    def _blank_paused(self, dispatch: FrameScan):
        # a gym pause reads like a vanilla pause: everything illegible
        dispatch.score = None
        dispatch.lines = None
        dispatch.level = None
        dispatch.preview = None
        if self.config.tracks_piece_counts:
            dispatch.piece_counts = {p: None for p in PIECES}

    def process_frame(self, frame: np.ndarray) -> Optional[DispatchEvent]:
        scan = self.ocr.scan(frame)
        scan.level = self.level_fixer.fix(scan.level)

        raw = self.stabilizer.push(scan)
        if raw is None:
            return None

        dispatch = raw.copy()
        if dispatch.gym_pause_active:
            self._blank_paused(dispatch)

        update = self.session.update(dispatch, self.config.tracks_piece_counts)
        if update.new_game:
            self.on_new_game(update.gameid)

        field = self.ocr.classify_field(dispatch, update.level)

        if self.session.learn_palette(update.level, [field.color1, field.color2, field.color3]):
            log.info("Palette complete for game %d", update.gameid)
            self.on_palette(self.session.palette)

        event = DispatchEvent(
            gameid=update.gameid,
            lines=update.lines,
            level=update.level,
            score=digits_to_value(self.score_fixer.fix(dispatch.score)),
            preview=dispatch.preview,
            gym_pause_active=dispatch.gym_pause_active,
            field=field.field,
            color1=field.color1,
            color2=field.color2,
            color3=field.color3,
            raw=raw,
            piece_counts=update.piece_counts,
        )

        if self.config.tracks_das:
            event.instant_das = digits_to_value(dispatch.instant_das)
            event.cur_piece_das = digits_to_value(dispatch.cur_piece_das)
            event.cur_piece = dispatch.cur_piece

        try:
            self.on_message(event)
        finally:
            self.ocr.release(raw)

        return event
