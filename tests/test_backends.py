import numpy as np
import pytest

from nestris_ocr.backends import BufferPool, RemapBackend, SoftwareBackend, make_backend, prepare_frame
from nestris_ocr.constants import SHEET_FILL
from nestris_ocr.layout import compute_layout

from synth import CROPS, make_config, make_frame


@pytest.fixture
def frame(templates):
    return make_frame(templates, score=(0, 1, 2, 3, 4, 5), preview="L")


@pytest.mark.parametrize("cls", [SoftwareBackend, RemapBackend])
def test_tasks_land_on_sheet(cls, frame):
    config = make_config("classic")
    layout = compute_layout(config)
    backend = cls(config, layout)

    source, sheet = backend.acquire(frame)

    for name in ("score", "lines", "level", "preview", "field", "T"):
        x, y, w, h = CROPS[name]
        sx, sy, sw, sh = layout.tasks[name].sheet
        np.testing.assert_array_equal(sheet[sy:sy + sh, sx:sx + sw], frame[y:y + h, x:x + w], err_msg=name)

    ax, ay, aw, ah = layout.capture_area
    np.testing.assert_array_equal(source, frame[ay:ay + ah, ax:ax + aw])


@pytest.mark.parametrize("name", ["software", "remap"])
def test_unused_sheet_area_is_gray(name, frame):
    config = make_config("minimal")
    layout = compute_layout(config)
    backend = make_backend(name, config, layout)
    _, sheet = backend.acquire(frame)
    # the das row is not part of the minimal profile
    x, y, w, h = 0, 179, 30, 14
    assert (sheet[y:y + h, x:x + w] == SHEET_FILL).all()


def test_unknown_backend():
    config = make_config("minimal")
    with pytest.raises(ValueError):
        make_backend("webgl", config, compute_layout(config))


def test_released_buffers_are_reused(frame):
    config = make_config("minimal")
    backend = SoftwareBackend(config, compute_layout(config))

    source, sheet = backend.acquire(frame)
    backend.release(source, sheet)
    assert len(backend.pool) == 2

    source2, sheet2 = backend.acquire(frame)
    assert source2 is source
    assert sheet2 is sheet
    assert len(backend.pool) == 0


def test_pool_only_reuses_matching_shape():
    pool = BufferPool()
    buf = np.zeros((4, 4, 3), np.uint8)
    pool.give(buf)
    assert pool.take((5, 4, 3)) is not buf
    assert pool.take((4, 4, 3)) is buf


def test_reconfigure_drops_pooled_buffers(frame):
    config = make_config("minimal")
    backend = RemapBackend(config, compute_layout(config))
    backend.release(*backend.acquire(frame))
    backend.configure(config, compute_layout(config))
    assert len(backend.pool) == 0


def test_prepare_frame_filters():
    frame = np.full((4, 6, 3), 100, np.uint8)

    assert prepare_frame(frame, make_config("minimal")) is frame

    half = prepare_frame(frame, make_config("minimal", use_half_height=True))
    assert half.shape == (2, 6, 3)

    bright = prepare_frame(frame, make_config("minimal", brightness=2.0))
    assert (bright == 200).all()

    # brightness below 1 is ignored
    dim = prepare_frame(frame, make_config("minimal", brightness=0.5))
    assert (dim == 100).all()

    # contrast pivots on mid gray: 128 + (100 - 128) * 2
    contrast = prepare_frame(frame, make_config("minimal", contrast=2.0))
    assert (contrast == 72).all()


def test_contrast_saturates_instead_of_folding():
    frame = np.zeros((4, 6, 3), np.uint8)
    frame[:, 3:] = 255
    out = prepare_frame(frame, make_config("minimal", contrast=2.0))
    assert (out[:, :3] == 0).all()
    assert (out[:, 3:] == 255).all()

    # 0.5 pulls both ends towards mid gray
    soft = prepare_frame(frame, make_config("minimal", contrast=0.5))
    assert (soft[:, :3] == 64).all()
