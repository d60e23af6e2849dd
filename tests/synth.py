"""Synthetic frames for the tests.

Crops are sized exactly like the sheet tasks they feed, so both backends
copy them onto the sheet pixel for pixel and the readings are exact.
"""
import numpy as np

from nestris_ocr.config import config_from_dict
from nestris_ocr.constants import PIECES

FRAME_SIZE = (320, 240)

CROPS = {
    "field": [10, 10, 79, 159],
    "score": [100, 10, 94, 14],
    "lines": [100, 30, 46, 14],
    "level": [100, 50, 30, 14],
    "preview": [100, 70, 31, 15],
    "color1": [140, 90, 5, 5],
    "color2": [150, 90, 5, 5],
    "color3": [160, 90, 5, 5],
    "instant_das": [100, 100, 30, 14],
    "cur_piece_das": [100, 120, 30, 14],
    "cur_piece": [140, 100, 23, 12],
}
for _i, _p in enumerate(PIECES):
    CROPS[_p.value] = [200, 10 + 18 * _i, 46, 14]

CLASSIC_TASKS = ["field", "score", "lines", "level", "preview", "color1", "color2", "color3"] + [p.value for p in PIECES]
DAS_TASKS = ["field", "score", "lines", "level", "preview", "color2", "color3", "instant_das", "cur_piece_das", "cur_piece"]
MINIMAL_TASKS = ["field", "score", "lines", "level", "preview", "color2", "color3"]

PROFILE_TASKS = {"classic": CLASSIC_TASKS, "das-trainer": DAS_TASKS, "minimal": MINIMAL_TASKS}

# gym pause probe, derived from the field crop at scale 1
PAUSE_PROBE = (10 + 29, 10 + 83)

WHITE = (255, 255, 255)
COLOR2 = (255, 64, 64)
COLOR3 = (64, 128, 255)


def make_templates(seed=0):
    rng = np.random.default_rng(seed)
    templates = rng.integers(40, 256, (17, 14, 14)).astype(np.float64)
    templates[0] = 0
    return templates


def profile_dict(profile="classic", **extra):
    data = {
        "profile": profile,
        "tasks": {name: {"crop": list(CROPS[name])} for name in PROFILE_TASKS[profile]},
    }
    data.update(extra)
    return data


def make_config(profile="classic", palettes=None, **extra):
    return config_from_dict(profile_dict(profile, **extra), palettes)


def draw_digits(img, x, y, digits, templates):
    for idx, d in enumerate(digits):
        glyph = templates[d + 1].astype(np.uint8)
        img[y:y + 14, x + 16 * idx:x + 16 * idx + 14] = glyph[..., None]


def draw_shine(img, x, y, color=WHITE):
    img[y:y + 3, x:x + 2] = color


PREVIEW_SHINES = {
    "T": [(4, 0), (12, 0), (20, 0), (12, 8)],
    "J": [(4, 0), (12, 0), (20, 0), (20, 8)],
    "Z": [(4, 0), (12, 0), (12, 8), (20, 8)],
    "O": [(8, 0), (16, 0), (8, 8), (16, 8)],
    "S": [(12, 0), (20, 0), (4, 8), (12, 8)],
    "L": [(4, 0), (12, 0), (20, 0), (4, 8)],
    "I": [(0, 4), (28, 4)],
}

CUR_PIECE_SHINES = {
    "T": [(2, 1), (8, 1), (14, 1), (8, 7)],
    "J": [(2, 0), (8, 0), (14, 0), (14, 6)],
    "Z": [(2, 1), (8, 1), (8, 7), (14, 7)],
    "O": [(5, 1), (11, 1), (5, 7), (11, 7)],
    "S": [(8, 1), (14, 1), (2, 7), (8, 7)],
    "L": [(2, 0), (8, 0), (14, 0), (2, 6)],
    "I": [(0, 4), (20, 4)],
}


def piece_image(piece, size, shines):
    w, h = size
    img = np.zeros((h, w, 3), np.uint8)
    if piece is not None:
        for x, y in shines[piece]:
            draw_shine(img, x, y)
    return img


def paint_cell(field_img, row, col, color):
    field_img[row * 8:row * 8 + 7, col * 8:col * 8 + 7] = color


def make_frame(
    templates,
    score=(0, 0, 0, 0, 0, 0),
    lines=(0, 0, 0),
    level=(1, 8),
    preview="T",
    counts=None,
    cells=None,
    paused=False,
    instant_das=None,
    cur_piece_das=None,
    cur_piece=None,
):
    """RGB frame with the given readings drawn into their crops. None leaves a crop black."""
    w, h = FRAME_SIZE
    frame = np.zeros((h, w, 3), np.uint8)

    for name, digits in (("score", score), ("lines", lines), ("level", level),
                         ("instant_das", instant_das), ("cur_piece_das", cur_piece_das)):
        if digits is not None:
            x, y, _, _ = CROPS[name]
            draw_digits(frame, x, y, digits, templates)

    for piece in PIECES:
        value = (counts or {}).get(piece)
        if value is not None:
            x, y, _, _ = CROPS[piece.value]
            draw_digits(frame, x, y, value, templates)

    px, py, pw, ph = CROPS["preview"]
    frame[py:py + ph, px:px + pw] = piece_image(preview, (pw, ph), PREVIEW_SHINES)

    cx, cy, cw, ch = CROPS["cur_piece"]
    frame[cy:cy + ch, cx:cx + cw] = piece_image(cur_piece, (cw, ch), CUR_PIECE_SHINES)

    for name, color in (("color1", WHITE), ("color2", COLOR2), ("color3", COLOR3)):
        x, y, sw, sh = CROPS[name]
        frame[y:y + sh, x:x + sw] = color

    fx, fy, fw, fh = CROPS["field"]
    field_img = frame[fy:fy + fh, fx:fx + fw]
    for (row, col), color in (cells or {}).items():
        paint_cell(field_img, row, col, color)

    if paused:
        x, y = PAUSE_PROBE
        frame[y, x:x + 22] = WHITE

    return frame
