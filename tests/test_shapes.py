import numpy as np
import pytest

from nestris_ocr.constants import TASK_RESIZE
from nestris_ocr.shapes import has_shine, scan_cur_piece, scan_preview

from synth import CUR_PIECE_SHINES, PREVIEW_SHINES, draw_shine, piece_image


def test_has_shine_checks_probe_pixels_only():
    img = np.zeros((3, 2, 3), np.uint8)
    assert not has_shine(img, 0, 0)

    # (1, 0) is inside the 2x3 area but is not a probe
    img[0, 1] = 255
    assert not has_shine(img, 0, 0)

    img[2, 1] = 255
    assert has_shine(img, 0, 0)


def test_has_shine_threshold():
    img = np.full((3, 2, 3), 75, np.uint8)
    assert not has_shine(img, 0, 0)
    img[0, 0] = 80
    assert has_shine(img, 0, 0)


@pytest.mark.parametrize("piece", list(PREVIEW_SHINES))
def test_scan_preview(piece):
    img = piece_image(piece, TASK_RESIZE["preview"], PREVIEW_SHINES)
    assert scan_preview(img) == piece


@pytest.mark.parametrize("piece", list(CUR_PIECE_SHINES))
def test_scan_cur_piece(piece):
    img = piece_image(piece, TASK_RESIZE["cur_piece"], CUR_PIECE_SHINES)
    assert scan_cur_piece(img) == piece


def test_empty_boxes_read_as_nothing():
    assert scan_preview(piece_image(None, TASK_RESIZE["preview"], PREVIEW_SHINES)) is None
    assert scan_cur_piece(piece_image(None, TASK_RESIZE["cur_piece"], CUR_PIECE_SHINES)) is None


def test_full_top_row_without_bottom_block_is_unknown():
    img = piece_image(None, TASK_RESIZE["preview"], PREVIEW_SHINES)
    for x in (4, 12, 20):
        draw_shine(img, x, 0)
    assert scan_preview(img) is None
