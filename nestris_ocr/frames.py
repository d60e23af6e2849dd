"""Per-frame readings and the events dispatched from them."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

import numpy as np

from .constants import Piece
from .digits import Digits

Color = Tuple[int, int, int]


@dataclass
class FrameScan:
    """Raw readings of one frame, before stabilization.

    Every reading is None when illegible. source_img and sheet_img are
    borrowed from the acquisition backend and handed back after dispatch.
    """
    score: Optional[Digits] = None
    level: Optional[Digits] = None
    lines: Optional[Digits] = None
    preview: Optional[str] = None
    cur_piece: Optional[str] = None
    instant_das: Optional[Digits] = None
    cur_piece_das: Optional[Digits] = None
    piece_counts: Optional[Dict[Piece, Optional[Digits]]] = None
    gym_pause: Optional[Tuple[int, bool]] = None
    gym_pause_active: bool = False
    source_img: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    sheet_img: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    def copy(self) -> "FrameScan":
        counts = dict(self.piece_counts) if self.piece_counts is not None else None
        return replace(self, piece_counts=counts)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "level": self.level,
            "lines": self.lines,
            "preview": self.preview,
            "cur_piece": self.cur_piece,
            "instant_das": self.instant_das,
            "cur_piece_das": self.cur_piece_das,
            "piece_counts": (
                {p.value: v for p, v in self.piece_counts.items()} if self.piece_counts is not None else None
            ),
            "gym_pause": list(self.gym_pause) if self.gym_pause is not None else None,
            "gym_pause_active": self.gym_pause_active,
        }


@dataclass
class FieldResult:
    field: np.ndarray
    color1: Color
    color2: Color
    color3: Color


def _color_list(color: Optional[Color]) -> Optional[List[int]]:
    return [int(c) for c in color] if color is not None else None


@dataclass
class DispatchEvent:
    gameid: int
    lines: Optional[int]
    level: Optional[int]
    score: Optional[int]
    preview: Optional[str]
    gym_pause_active: bool
    field: np.ndarray
    color1: Color
    color2: Color
    color3: Color
    raw: FrameScan
    piece_counts: Optional[Dict[Piece, Optional[int]]] = None
    instant_das: Optional[int] = None
    cur_piece_das: Optional[int] = None
    cur_piece: Optional[str] = None

    def to_dict(self) -> dict:
        """JSON friendly view: the field as nested lists, pieces keyed by letter."""
        data = {
            "gameid": self.gameid,
            "lines": self.lines,
            "level": self.level,
            "score": self.score,
            "preview": self.preview,
            "gym_pause_active": self.gym_pause_active,
            "field": self.field.tolist(),
            "color1": _color_list(self.color1),
            "color2": _color_list(self.color2),
            "color3": _color_list(self.color3),
            "instant_das": self.instant_das,
            "cur_piece_das": self.cur_piece_das,
            "cur_piece": self.cur_piece,
            "raw": self.raw.to_dict(),
        }
        if self.piece_counts is not None:
            data.update({p.value: v for p, v in self.piece_counts.items()})
        return data
