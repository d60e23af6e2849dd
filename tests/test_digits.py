import numpy as np

from nestris_ocr.digits import digits_equal, digits_to_value, get_digit, recognize

from synth import draw_digits


def region_for(digits, templates, width=None):
    width = width or 16 * len(digits)
    img = np.zeros((14, width, 3), np.uint8)
    draw_digits(img, 0, 0, digits, templates)
    return img


def test_recognize_reads_each_glyph(templates):
    img = region_for([0, 1, 2, 9, 5, 7], templates)
    assert recognize(img, templates, "DDDDDD") == [0, 1, 2, 9, 5, 7]


def test_hex_leading_digit(templates):
    img = region_for([0xA, 2, 3, 4, 5, 6], templates)
    assert recognize(img, templates, "ADDDDD") == [10, 2, 3, 4, 5, 6]


def test_blank_glyph_voids_the_whole_reading(templates):
    img = region_for([1, 2, 3], templates)
    img[:, 16:30] = 0
    assert recognize(img, templates, "DDD") is None


def test_pattern_limits_candidates(templates):
    # an "A" glyph read as a decimal digit can never come back as 10
    img = region_for([0xA], templates)
    digits = recognize(img, templates, "D")
    assert digits is not None
    assert 0 <= digits[0] <= 9


def test_red_mode_reads_scaled_red_channel(templates):
    glyph = np.zeros((14, 14, 3), np.uint8)
    # red at 155 scales to full 255; green and blue are ignored
    target = templates[4].copy()
    glyph[..., 0] = np.round(np.minimum(target, 255) * 155 / 255).astype(np.uint8)
    glyph[..., 1] = 255
    assert get_digit(glyph, templates, 11, red=True) == 4


def test_digits_to_value():
    assert digits_to_value([0, 1, 2, 3, 4, 5]) == 12345
    assert digits_to_value([0xA, 0, 0, 0, 0, 0]) == 1_000_000
    assert digits_to_value(None) is None


def test_digits_equal():
    assert digits_equal(None, None)
    assert digits_equal([1, 2], [1, 2])
    assert not digits_equal([1, 2], None)
    assert not digits_equal([1, 2], [1, 2, 0])
    assert not digits_equal([1, 2], [2, 1])
