"""Fixed values describing the NES Tetris screen and the tracker."""

from enum import Enum


class Piece(Enum):
    """The seven tetrominoes, in the order of the on-screen statistics."""
    T = "T"
    J = "J"
    Z = "Z"
    O = "O"
    S = "S"
    L = "L"
    I = "I"


PIECES = tuple(Piece)

PROFILE_CLASSIC = "classic"
PROFILE_DAS_TRAINER = "das-trainer"
PROFILE_MINIMAL = "minimal"
PROFILES = (PROFILE_CLASSIC, PROFILE_DAS_TRAINER, PROFILE_MINIMAL)

# Readings must hold for this many frames before they are trusted.
# Interlaced captures spread a change over 2 frames; 3 leaves some margin.
BUFFER_MAXSIZE = 3

# (width, height) each task is resampled to on the sheet
TASK_RESIZE = {
    "score": (94, 14),
    "score7": (110, 14),
    "level": (30, 14),
    "lines": (46, 14),
    "field": (79, 159),
    "preview": (31, 15),
    "cur_piece": (23, 12),
    "instant_das": (30, 14),
    "cur_piece_das": (30, 14),
    "color1": (5, 5),
    "color2": (5, 5),
    "color3": (5, 5),
    "piece_count": (46, 14),
    "gym_pause": (22, 1),
}

# Glyphs are 14x14 on a 16 pixel pitch once resampled
DIGIT_SIZE = 14
DIGIT_PITCH = 16

# Template count to test per pattern character (index 0 is the blank glyph)
PATTERN_MAX_INDEXES = {
    "B": 3,   # binary
    "T": 4,   # ternary
    "D": 11,  # decimal
    "A": 17,  # hexadecimal
}
TEMPLATE_COUNT = 17
TEMPLATE_GLYPHS = " 0123456789ABCDEF"

RED_SCALE = 255 / 155

SHINE_LUMA_THRESHOLD = 75
PAUSE_LUMA_THRESHOLD = 75

# Pause probe crop, in resampled field coordinates (x, y, w, h).
# It sits on the bottom edge of "USE" in the PAUSE text.
GYM_PAUSE_CROP_RELATIVE_TO_FIELD = (29, 83, 22, 1)

DEFAULT_COLOR_0 = (0, 0, 0)
DEFAULT_COLOR_1 = (255, 255, 255)

FIELD_ROWS = 20
FIELD_COLS = 10

# Lines at which leveling resumes its normal 10-line cadence, per start level
TRANSITIONS = {
    0: 10, 1: 20, 2: 30, 3: 40, 4: 50,
    5: 60, 6: 70, 7: 80, 8: 90, 9: 100,
    10: 100, 11: 100, 12: 100, 13: 100, 14: 100, 15: 100,
    16: 110, 17: 120, 18: 130, 19: 140,
    29: 200,
}
FALLBACK_START_LEVEL = 18

# Past these totals the displayed counters no longer hold the full value
LINES_WRAP_BOUNDARY = 340
PIECE_WRAP_BOUNDARY = 100

# Starting line counts for mode A and mode B (25 lines)
NEW_GAME_LINES = ([0, 0, 0], [0, 2, 5])

SESSION_ID_KEY = "gameid"
SESSION_ID_MODULO = 0xFFFF

SHEET_GAP = 1
SHEET_FILL = 128
