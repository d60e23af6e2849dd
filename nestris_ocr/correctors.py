"""Fixers for the OCR confusions the game's own digit encoding makes inevitable.

Past level 29 the level counter shows tile indexes rather than decimal
digits (see https://meatfighter.com/nintendotetrisai/#Level_30_and_Beyond),
and past 999,999 the score's leading glyph becomes a hex letter. Both
fixers keep the last accepted reading and use it to pick between aliases.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from .digits import Digits, digits_to_value

A, B, C, D, E = 0xA, 0xB, 0xC, 0xD, 0xE


class LevelFixer:
    """Maps level readings that alias levels 30 and above back to the real level.

    Nulls are not remembered: a paused or unreadable level keeps the last
    good digits around for the resume. Call reset() on a new game.
    """

    def __init__(self):
        self.last_good_digits: Optional[Digits] = None

    def reset(self):
        self.last_good_digits = None

    def fix(self, digits: Optional[Sequence[int]]) -> Optional[Digits]:
        if digits is None:
            return None

        digits = list(digits)

        if self.last_good_digits is None or len(digits) != 2:
            self.last_good_digits = digits
            return digits

        prev_high, prev_low = (list(self.last_good_digits) + [None, None])[:2]
        high, low = digits

        if high == 0x0:
            if low == 0x0:
                if prev_high in (2, 3):
                    high = 3
            elif low in (4, A):
                if prev_high == 3:
                    high, low = 3, 1
                else:
                    low = 4
            elif low == 6:
                if prev_high == 5:
                    high, low = 5, 4

        elif high == 0x1:
            if low == E:
                high, low = 3, 3
            elif low in (4, A):
                if prev_high == 3:
                    high, low = 3, 2
                else:
                    low = 4

        elif high == 0x2:
            if low in (8, B):
                if prev_high == 3:
                    high, low = 3, 4
                else:
                    low = 8
            elif low == 0:
                # 51 or 53
                if prev_high == 5:
                    high = 5
                    low = 1 if prev_low in (0, 1) else 3
            elif low == 1:
                # 55, 57, 59 or 61
                if prev_high == 6:
                    high = 6
                elif prev_high == 5:
                    high = 5
                    if prev_low in (4, 5):
                        low = 5
                    elif prev_low in (6, 7):
                        low = 7
                    else:
                        low = 9
            elif low == 6:
                if prev_high == 5:
                    high, low = 5, 6

        elif high == 0x3:
            if low == 2:
                low = 5
            elif low == C:
                low = 6

        elif high in (4, A):
            if low == 6:
                # 37 or 58
                if prev_high == 3:
                    high, low = 3, 7
                else:
                    high, low = 5, 8
            elif low == 0:
                high, low = 4, 6
            else:
                high, low = 4, 7

        elif high == 0x5:
            high = 3
            low = 8 if low == 0 else 9

        elif high == 0x6:
            if low == E:
                high, low = 4, 1
            elif low == 6:
                low = 0
            else:
                high, low = 4, 0

        elif high == 0x7:
            high, low = 4, 2

        elif high in (8, B):
            high, low = {2: (4, 3), 6: (6, 2), C: (4, 4), E: (4, 8)}.get(low, (4, 9))

        elif high == 0x9:
            high, low = 4, 5

        elif high == C:
            high, low = 5, 0

        elif high == E:
            high, low = 5, 2

        # A and B can't be a second digit, at least until level 49
        if low == A:
            low = 4
        elif low == B:
            low = 8

        digits = [high, low]
        self.last_good_digits = digits
        return digits


# leading score glyphs that template matching mixes up
SCORE_ALIASES = {4: A, A: 4, 8: B, B: 8, 0: D, D: 0}


class ScoreFixer:
    """Resolves the hex leading glyph of scores past 999,999.

    A score never goes down during a game, so of a reading and its leading
    glyph alias, the one at or above the last accepted score and closest to
    it wins. With neither candidate qualifying, the reading stands.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.last_value: Optional[int] = None

    def reset(self):
        self.last_value = None

    def fix(self, digits: Optional[Sequence[int]]) -> Optional[Digits]:
        if digits is None:
            return None

        digits = list(digits)
        if not self.enabled or not digits:
            return digits

        if self.last_value is None:
            self.last_value = digits_to_value(digits)
            return digits

        candidates: List[Digits] = [digits]
        alias = SCORE_ALIASES.get(digits[0])
        if alias is not None:
            candidates.append([alias] + digits[1:])

        best = None
        for candidate in candidates:
            value = digits_to_value(candidate)
            if value < self.last_value:
                continue
            if best is None or value < digits_to_value(best):
                best = candidate

        if best is None:
            best = digits

        self.last_value = digits_to_value(best)
        return best
