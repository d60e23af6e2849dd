import pytest

from nestris_ocr.constants import PIECES
from nestris_ocr.frames import FrameScan
from nestris_ocr.stabilizer import TemporalStabilizer, is_gym_pause_active

SCORE_A = [0, 0, 1, 2, 0, 0]
SCORE_B = [0, 0, 1, 2, 4, 0]


def scan(score=SCORE_A, lines=(0, 1, 0), level=(1, 8), preview="T", paused=False, **kw):
    return FrameScan(
        score=list(score) if score is not None else None,
        lines=list(lines) if lines is not None else None,
        level=list(level) if level is not None else None,
        preview=preview,
        gym_pause=(200, True) if paused else (0, False),
        **kw,
    )


def feed(stab, scans):
    return [stab.push(s) for s in scans]


def test_prefill_emits_nothing():
    stab = TemporalStabilizer("classic")
    assert feed(stab, [scan(), scan(), scan()]) == [None, None, None]
    assert len(stab.buffer) == 3


def test_buffer_never_exceeds_capacity():
    stab = TemporalStabilizer("minimal")
    for _ in range(10):
        stab.push(scan())
        assert len(stab.buffer) <= 3


def test_identical_frames_come_out_unchanged():
    stab = TemporalStabilizer("classic")
    out = [o for o in feed(stab, [scan() for _ in range(8)]) if o is not None]
    assert len(out) == 5
    for o in out:
        assert o.score == SCORE_A
        assert o.lines == [0, 1, 0]
        assert o.level == [1, 8]
        assert o.preview == "T"


def test_change_is_dispatched_once_it_holds():
    stab = TemporalStabilizer("minimal")
    scans = [scan() for _ in range(3)] + [scan(score=SCORE_B) for _ in range(5)]
    out = [o for o in feed(stab, scans) if o is not None]
    assert [o.score for o in out] == [SCORE_A, SCORE_A, SCORE_A, SCORE_B, SCORE_B]


def test_single_frame_glitch_is_overwritten():
    stab = TemporalStabilizer("minimal")
    scans = [scan() for _ in range(3)] + [scan(score=SCORE_B, preview="I")] + [scan() for _ in range(5)]
    out = [o for o in feed(stab, scans) if o is not None]
    assert all(o.score == SCORE_A for o in out)
    assert all(o.preview == "T" for o in out)


def test_two_frame_glitch_is_overwritten():
    stab = TemporalStabilizer("minimal")
    scans = [scan() for _ in range(3)] + [scan(score=SCORE_B) for _ in range(2)] + [scan() for _ in range(6)]
    out = [o for o in feed(stab, scans) if o is not None]
    assert len(out) == 8
    assert all(o.score == SCORE_A for o in out)


def test_replay_gives_same_dispatches():
    scans = (
        [scan() for _ in range(3)]
        + [scan(score=SCORE_B, preview="I")]
        + [scan(lines=(0, 2, 0), level=None)]
        + [scan(score=SCORE_B, lines=(0, 2, 0), level=(1, 9)) for _ in range(4)]
        + [scan(paused=True) for _ in range(3)]
    )

    def run():
        out = feed(TemporalStabilizer("classic"), [s.copy() for s in scans])
        return [None if o is None else (o.score, o.lines, o.level, o.preview) for o in out]

    first = run()
    assert first == run()
    assert any(o is not None for o in first)


def test_lines_and_level_move_together():
    stab = TemporalStabilizer("minimal")
    scans = [scan() for _ in range(3)]
    # transition frame: lines already up, level still garbage
    scans.append(scan(lines=(0, 2, 0), level=None))
    scans += [scan(lines=(0, 2, 0), level=(1, 9)) for _ in range(4)]
    out = [o for o in feed(stab, scans) if o is not None]
    assert out[-2].lines == [0, 2, 0]
    assert out[-2].level == [1, 9]


def test_counters_are_independent():
    stab = TemporalStabilizer("minimal")
    feed(stab, [scan() for _ in range(3)])
    stab.push(scan(score=SCORE_B))
    assert stab.counters["score"] == 3
    assert stab.counters["lines"] < 0
    assert stab.counters["pieces"] < 0


def test_gym_pause_active():
    assert is_gym_pause_active(scan(paused=True))
    assert not is_gym_pause_active(scan(paused=False))
    assert not is_gym_pause_active(scan(paused=True, score=None))
    assert not is_gym_pause_active(FrameScan(score=SCORE_A, lines=[0, 0, 0], level=[0, 0]))


@pytest.mark.parametrize("profile", ["classic", "minimal"])
def test_pause_suppresses_rearming(profile):
    stab = TemporalStabilizer(profile)
    feed(stab, [scan() for _ in range(3)])
    paused = scan(score=SCORE_B, lines=(0, 2, 0), preview="I", paused=True)
    stab.push(paused)
    assert paused.gym_pause_active
    assert all(c < 0 for c in stab.counters.values())


def test_das_trainer_piece_group_ignores_pause():
    stab = TemporalStabilizer("das-trainer")
    feed(stab, [scan(cur_piece="T", cur_piece_das=[1, 0]) for _ in range(3)])
    stab.push(scan(preview="I", cur_piece="T", cur_piece_das=[1, 0], paused=True))
    assert stab.counters["pieces"] == 3
    assert stab.counters["score"] < 0


def test_classic_piece_counters_are_stabilized_with_preview():
    stab = TemporalStabilizer("classic")
    counts_a = {p: [0, 0, 1] for p in PIECES}
    counts_b = dict(counts_a)
    counts_b[PIECES[0]] = [0, 0, 2]

    scans = [scan(piece_counts=dict(counts_a)) for _ in range(3)]
    scans.append(scan(preview="I", piece_counts=dict(counts_b)))
    scans += [scan(preview="I", piece_counts=dict(counts_b)) for _ in range(4)]
    out = [o for o in feed(stab, scans) if o is not None]

    assert out[0].piece_counts == counts_a
    assert out[-2].piece_counts == counts_b
    assert out[-2].preview == "I"


def test_reset_clears_buffer_and_counters():
    stab = TemporalStabilizer("classic")
    feed(stab, [scan() for _ in range(4)])
    stab.push(scan(score=SCORE_B))
    stab.reset()
    assert len(stab.buffer) == 0
    assert all(c == 0 for c in stab.counters.values())
    assert stab.push(scan()) is None
