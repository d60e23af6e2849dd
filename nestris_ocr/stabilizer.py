"""Frame buffer and per-group stability counters.

With interlaced input a value changes over two frames, so a reading taken
on the transition frame can be garbage. Scans are delayed by the buffer
capacity: when a group's value changes, its counter is armed, and once the
new value has held for that many frames it is copied back over every
buffered frame. Dispatch always emits the oldest buffered frame.

How the tracked values relate:

- score may change on its own (push down points)
- lines only increase with score, and level only with lines
- piece counters change on their own, but one at a time
- preview and current piece change on their own
- instant DAS changes every frame, so it is never stabilized
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Tuple

from .constants import BUFFER_MAXSIZE, PROFILE_CLASSIC, PROFILE_DAS_TRAINER, PROFILE_MINIMAL, PROFILES
from .frames import FrameScan

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldGroup:
    name: str
    compare: Tuple[str, ...]
    broadcast: Tuple[str, ...]
    suppress_on_pause: bool = True


SCORE_GROUP = FieldGroup("score", ("score",), ("score",))
LINES_GROUP = FieldGroup("lines", ("lines",), ("lines", "level"))

PIECE_GROUPS = {
    PROFILE_CLASSIC: FieldGroup("pieces", ("preview", "piece_counts"), ("preview", "piece_counts")),
    # the das trainer has no pause text over its piece area
    PROFILE_DAS_TRAINER: FieldGroup(
        "pieces",
        ("preview", "cur_piece", "cur_piece_das"),
        ("preview", "cur_piece", "cur_piece_das"),
        suppress_on_pause=False,
    ),
    PROFILE_MINIMAL: FieldGroup("pieces", ("preview",), ("preview",)),
}


def groups_for_profile(profile: str) -> List[FieldGroup]:
    if profile not in PROFILES:
        raise ValueError(f"unknown task profile {profile!r}")
    return [SCORE_GROUP, LINES_GROUP, PIECE_GROUPS[profile]]


def is_gym_pause_active(scan: FrameScan) -> bool:
    """Pause text is lit while score, lines and level are all still legible."""
    return bool(
        scan.gym_pause is not None
        and scan.gym_pause[1]
        and scan.score is not None
        and scan.lines is not None
        and scan.level is not None
    )


def _values(scan: FrameScan, names: Tuple[str, ...]) -> tuple:
    return tuple(getattr(scan, name) for name in names)


class TemporalStabilizer:
    def __init__(self, profile: str, capacity: int = BUFFER_MAXSIZE):
        self.profile = profile
        self.capacity = capacity
        self.groups = groups_for_profile(profile)
        self.buffer: Deque[FrameScan] = deque()
        self.counters: Dict[str, int] = {g.name: 0 for g in self.groups}

    def reset(self):
        self.buffer.clear()
        self.counters = {g.name: 0 for g in self.groups}

    def push(self, scan: FrameScan) -> Optional[FrameScan]:
        """Buffer a raw scan; once the buffer is full, return the oldest one.

        The returned scan has had every stabilized value written back into
        it. Nothing is returned until the buffer has filled up.
        """
        if len(self.buffer) < self.capacity:
            self.buffer.append(scan)
            return None

        scan.gym_pause_active = is_gym_pause_active(scan)
        last = self.buffer[-1]

        for group in self.groups:
            self.counters[group.name] -= 1
            counter = self.counters[group.name]

            if counter > 0:
                continue

            if counter == 0:
                for frame in self.buffer:
                    for name in group.broadcast:
                        value = getattr(scan, name)
                        setattr(frame, name, dict(value) if isinstance(value, dict) else value)
                continue

            if group.suppress_on_pause and scan.gym_pause_active:
                continue

            if _values(scan, group.compare) != _values(last, group.compare):
                log.debug("%s changed, holding for %d frames", group.name, len(self.buffer))
                self.counters[group.name] = len(self.buffer)

        self.buffer.append(scan)
        return self.buffer.popleft()
