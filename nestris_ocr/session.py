"""Game sessions: new-game detection, ids, counter wraparound and palette learning.

Everything here works on stabilized scans. Lines and level dispatched from
here are derived values: past the level 29 kill screen the on-screen lines
counter and level stop being trustworthy, so lines are extended across
their wrap and level is recomputed from lines and the start level.
"""
from __future__ import annotations

import json
import logging
import os
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .constants import (
    BUFFER_MAXSIZE,
    FALLBACK_START_LEVEL,
    LINES_WRAP_BOUNDARY,
    NEW_GAME_LINES,
    PIECE_WRAP_BOUNDARY,
    PIECES,
    SESSION_ID_KEY,
    SESSION_ID_MODULO,
    TRANSITIONS,
    Piece,
)
from .correctors import LevelFixer, ScoreFixer
from .digits import Digits, digits_to_value
from .frames import Color, FrameScan
from .output import atomic_write_json

log = logging.getLogger(__name__)

PALETTE_SLOTS = 10


class SessionStore(ABC):
    """Durable key/value storage for the few values that outlive a run."""

    @abstractmethod
    def get(self, key: str):
        ...

    @abstractmethod
    def set(self, key: str, value):
        ...


class MemoryStore(SessionStore):
    def __init__(self, data: Optional[dict] = None):
        self.data = dict(data or {})

    def get(self, key: str):
        return self.data.get(key)

    def set(self, key: str, value):
        self.data[key] = value


class JsonFileStore(SessionStore):
    """Stores values in one JSON object on disk, rewritten atomically on every set."""

    def __init__(self, path: str):
        self.path = path
        self.data = {}
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    self.data = loaded
                else:
                    log.warning("State file %s does not hold an object, starting fresh", path)
            except (OSError, ValueError) as e:
                log.warning("Could not read state file %s: %s", path, e)

    def get(self, key: str):
        return self.data.get(key)

    def set(self, key: str, value):
        self.data[key] = value
        atomic_write_json(self.path, self.data)


def is_new_game(score: Sequence[int], lines: Sequence[int]) -> bool:
    """Score of 0 or 1 (a single push down point) with lines at a starting count."""
    return (
        all(d == 0 for d in score[:-1])
        and score[-1] in (0, 1)
        and list(lines) in [list(start) for start in NEW_GAME_LINES]
    )


def extend_counter(total: Optional[int], digits: Optional[Sequence[int]], boundary: int) -> Optional[int]:
    """Running total of a counter whose display stops being reliable at boundary.

    Below the boundary the reading is the total. From the boundary on only
    the units digit is trusted: a greater units digit adds the difference, a
    lower one means the tens rolled over.
    """
    if digits is None:
        return None
    if total is None or total < boundary:
        return digits_to_value(digits)

    new_units = digits[-1]
    cur_units = total % 10
    if new_units > cur_units:
        return total + new_units - cur_units
    if new_units < cur_units:
        return -(-total // 10) * 10 + new_units
    return total


@dataclass
class SessionState:
    gameid: int = 0
    in_game: bool = False
    start_level: int = 0
    transition: Optional[int] = None
    cur_lines: Optional[int] = None
    piece_counts: Dict[Piece, Optional[int]] = field(default_factory=dict)
    palette: List[Optional[List[Color]]] = field(default_factory=lambda: [None] * PALETTE_SLOTS)
    palette_countdown: List[Optional[int]] = field(default_factory=lambda: [None] * PALETTE_SLOTS)

    def reset_palette(self):
        self.palette = [None] * PALETTE_SLOTS
        self.palette_countdown = [None] * PALETTE_SLOTS


@dataclass
class SessionUpdate:
    gameid: int
    new_game: bool
    lines: Optional[int]
    level: Optional[int]
    piece_counts: Optional[Dict[Piece, Optional[int]]] = None


class GameSessionManager:
    def __init__(
        self,
        store: Optional[SessionStore] = None,
        level_fixer: Optional[LevelFixer] = None,
        score_fixer: Optional[ScoreFixer] = None,
        palette_capacity: int = BUFFER_MAXSIZE,
    ):
        self.store = store if store is not None else MemoryStore()
        self.level_fixer = level_fixer if level_fixer is not None else LevelFixer()
        self.score_fixer = score_fixer if score_fixer is not None else ScoreFixer()
        self.palette_capacity = palette_capacity
        self._last_gameid: Optional[int] = None
        self.state = SessionState()
        # allocated up front so events before the first detected game carry an id
        self.state.gameid = self.next_session_id()

    def next_session_id(self) -> int:
        """Allocate the next 16-bit session id (never 0) and persist it.

        On first use the counter continues from the stored id, so restarts
        don't hand out an id that was just used.
        """
        if self._last_gameid is None:
            raw = self.store.get(SESSION_ID_KEY)
            try:
                gameid = int(raw) + 1
            except (TypeError, ValueError):
                if raw is not None:
                    log.warning("Ignoring unreadable stored %s %r", SESSION_ID_KEY, raw)
                gameid = int(time.time() * 1000) + random.randrange(1 << 30)
        else:
            gameid = self._last_gameid + 1

        gameid %= SESSION_ID_MODULO
        if not gameid:
            gameid = 1

        self._last_gameid = gameid
        self.store.set(SESSION_ID_KEY, gameid)
        return gameid

    def _start_game(self, scan: FrameScan, tracks_piece_counts: bool):
        state = self.state
        state.gameid = self.next_session_id()

        self.level_fixer.reset()
        self.score_fixer.reset()
        self.score_fixer.fix(scan.score)

        state.cur_lines = digits_to_value(scan.lines)
        state.start_level = digits_to_value(scan.level)
        state.transition = TRANSITIONS.get(state.start_level)
        state.reset_palette()

        if tracks_piece_counts and scan.piece_counts is not None:
            state.piece_counts = {p: digits_to_value(scan.piece_counts.get(p)) for p in PIECES}
        else:
            state.piece_counts = {}

        if state.transition is None:
            log.warning("Unable to find transition lines for start level %s, set as %d-start.",
                        state.start_level, FALLBACK_START_LEVEL)
            state.start_level = FALLBACK_START_LEVEL
            state.transition = TRANSITIONS[FALLBACK_START_LEVEL]

        log.info("New game %d (start level %d)", state.gameid, state.start_level)

    def level_from_lines(self, lines: Optional[int], level_digits: Optional[Digits]) -> Optional[int]:
        if lines is None or level_digits is None:
            return None
        if not self.state.transition:
            return digits_to_value(level_digits)
        if lines < self.state.transition:
            return self.state.start_level
        return self.state.start_level + 1 + (lines - self.state.transition) // 10

    def update(self, scan: FrameScan, tracks_piece_counts: bool = False) -> SessionUpdate:
        """Interpret one stabilized (and pause-blanked) scan."""
        state = self.state
        new_game = False

        if scan.gym_pause_active or scan.lines is None or scan.score is None or scan.level is None:
            state.in_game = False
        elif not state.in_game:
            state.in_game = True
            if is_new_game(scan.score, scan.lines) or state.cur_lines is None:
                self._start_game(scan, tracks_piece_counts)
                new_game = True

        lines = extend_counter(state.cur_lines, scan.lines, LINES_WRAP_BOUNDARY)
        if lines is not None:
            state.cur_lines = lines

        level = self.level_from_lines(lines, scan.level)

        piece_counts = None
        if tracks_piece_counts and scan.piece_counts is not None:
            piece_counts = {}
            for p in PIECES:
                value = extend_counter(state.piece_counts.get(p), scan.piece_counts.get(p), PIECE_WRAP_BOUNDARY)
                if value is not None:
                    state.piece_counts[p] = value
                piece_counts[p] = value

        return SessionUpdate(
            gameid=state.gameid,
            new_game=new_game,
            lines=lines,
            level=level,
            piece_counts=piece_counts,
        )

    def learn_palette(self, level: Optional[int], colors: List[Color]) -> bool:
        """Record colors for level % 10 once that level has held for a while.

        Returns True exactly when the last of the 10 slots gets filled.
        """
        if level is None:
            return False
        state = self.state
        slot = level % 10

        if state.palette[slot] is not None:
            return False

        if state.palette_countdown[slot] is None:
            state.palette_countdown[slot] = self.palette_capacity
            return False

        state.palette_countdown[slot] -= 1
        if state.palette_countdown[slot] != 0:
            return False

        state.palette[slot] = [tuple(int(c) for c in color) for color in colors]
        log.debug("Learned palette slot %d: %s", slot, state.palette[slot])
        return all(entry is not None for entry in state.palette)

    @property
    def palette(self) -> List[Optional[List[Color]]]:
        return self.state.palette
