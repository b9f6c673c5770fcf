import random

import pytest

from core.derived import absolute, compute_difference, compute_provider_transition, point_difference
from core.series import ABSENT, Present, Series
from core.summary import series_average, series_sum


def test_difference_example():
    a = Series.from_raw("a", [100, None, 300])
    b = Series.from_raw("b", [150, 200, 250])
    overlay = compute_difference(a, b)
    assert overlay.base.to_list() == [100.0, None, 250.0]
    assert overlay.diff.to_list() == [50.0, None, 50.0]
    assert overlay.base.name == "a_b_base"
    assert overlay.diff.name == "a_b_diff"
    assert series_sum(a) == 400
    assert series_sum(b) == 600
    assert series_average(a) == 200
    assert series_average(b) == 200


def test_difference_non_negative_where_both_present():
    a = Series.from_raw("a", [5, None, -3, 7, 0])
    b = Series.from_raw("b", [9, 4, 2, None, 0])
    overlay = compute_difference(a, b)
    for va, vb, d in zip(a, b, overlay.diff):
        if isinstance(va, Present) and isinstance(vb, Present):
            assert d.value >= 0
            assert d.value == abs(va.value - vb.value)
        else:
            assert d is ABSENT


def test_difference_length_mismatch():
    with pytest.raises(ValueError):
        compute_difference(Series.from_raw("a", [1, 2]), Series.from_raw("b", [1]))


def test_transition_example():
    before = Series.from_raw("before", [10, 20, 30])
    after = Series.from_raw("after", [1, 2, 3])
    t = compute_provider_transition(before, after, 1)
    assert t.before_segment.to_list() == [10.0, 22.0, None]
    assert t.after_segment.to_list() == [None, 22.0, 3.0]
    assert t.cutover_index == 1


def test_transition_segments_overlap_only_at_cutover():
    before = Series.from_raw("before", [1, 2, 3, 4, 5])
    after = Series.from_raw("after", [None, None, 7, 8, 9])
    t = compute_provider_transition(before, after, 2)
    for i, (vb, va) in enumerate(zip(t.before_segment, t.after_segment)):
        if i == 2:
            assert vb == va == Present(10.0)
        else:
            assert not (isinstance(vb, Present) and isinstance(va, Present))


def test_transition_zero_fills_one_missing_side():
    before = Series.from_raw("before", [10, None, 30])
    after = Series.from_raw("after", [None, 5, None])
    t = compute_provider_transition(before, after, 1)
    assert t.before_segment[1] == Present(5.0)
    assert t.after_segment[1] == Present(5.0)


def test_transition_both_missing_at_cutover_sums_to_zero():
    before = Series.from_raw("before", [10, None, 30])
    after = Series.from_raw("after", [1, None, 3])
    t = compute_provider_transition(before, after, 1)
    assert t.before_segment[1] == Present(0.0)
    assert t.after_segment[1] == Present(0.0)
    assert t.before_segment.to_list() == [10.0, 0.0, None]
    assert t.after_segment.to_list() == [None, 0.0, 3.0]


def _random_series(rng, name, length, missing=0.3):
    return Series.from_raw(
        name, [None if rng.random() < missing else rng.uniform(-1000, 1000) for _ in range(length)]
    )


@pytest.mark.parametrize("seed", range(25))
def test_difference_properties_on_random_series(seed):
    rng = random.Random(seed)
    length = rng.randint(1, 40)
    a = _random_series(rng, "a", length)
    b = _random_series(rng, "b", length)
    overlay = compute_difference(a, b)
    assert len(overlay.base) == len(overlay.diff) == length
    for va, vb, base, diff in zip(a, b, overlay.base, overlay.diff):
        if isinstance(va, Present) and isinstance(vb, Present):
            assert diff.value >= 0
            assert base.value == min(va.value, vb.value)
            assert base.value + diff.value == pytest.approx(max(va.value, vb.value))
        else:
            assert base is ABSENT
            assert diff is ABSENT


@pytest.mark.parametrize("seed", range(25))
def test_transition_properties_on_random_series(seed):
    rng = random.Random(seed)
    length = rng.randint(1, 40)
    before = _random_series(rng, "before", length)
    after = _random_series(rng, "after", length)
    cutover = rng.randrange(length)
    t = compute_provider_transition(before, after, cutover)
    expected = sum(v.value for v in (before[cutover], after[cutover]) if isinstance(v, Present))
    for i, (vb, va) in enumerate(zip(t.before_segment, t.after_segment)):
        if i == cutover:
            assert vb == va
            assert vb.value == pytest.approx(expected)
        elif i < cutover:
            assert vb == before[i]
            assert va is ABSENT
        else:
            assert vb is ABSENT
            assert va == after[i]


def test_transition_cutover_out_of_range():
    s = Series.from_raw("s", [1, 2])
    with pytest.raises(IndexError):
        compute_provider_transition(s, s, 2)
    with pytest.raises(IndexError):
        compute_provider_transition(s, s, -1)


def test_shipped_transition_matches_handover_month(data_ctx):
    master = data_ctx["master"]
    t = compute_provider_transition(master.get("ul"), master.get("secondary_provider"), 18)
    assert t.before_segment[18] == Present(36725.0 + 41620.0)
    assert t.after_segment[19] == Present(184428.0)
    assert t.after_segment[17] is ABSENT


def test_absolute_and_point_difference():
    a = Series.from_raw("a", [-8081, None, 7000])
    assert absolute(a).to_list() == [8081.0, None, 7000.0]
    b = Series.from_raw("b", [8000, 1, 7500])
    assert point_difference(absolute(a), b, 0) == 81.0
    assert point_difference(a, b, 1) is None
