import pytest

from core.phases import (
    ALL_PHASE,
    PhaseBoundaryError,
    PhaseBoundaryTable,
    PhaseDefinition,
    current_view,
    filter_by_phase_visibility,
    reverse_for_rtl,
    segment_phases,
)
from core.series import Series


def test_segment_slices_align_with_master(small_master, small_definitions):
    table = segment_phases(small_master, small_definitions)
    assert table.keys() == [ALL_PHASE, "p1", "p2", "p3"]
    for key in ("p1", "p2", "p3"):
        phase = table[key]
        assert len(phase.months) == phase.end - phase.start
        for i, month in enumerate(phase.months):
            assert month == small_master.months[phase.start + i]
            for name, s in phase.series.items():
                assert s[i] == small_master.series[name][phase.start + i]
    assert table.all.months == small_master.months
    assert table["p2"].period == "second"


def test_boundary_gap_rejected():
    defs = [
        PhaseDefinition(key="p1", name="P1", start=0, end=2, period=""),
        PhaseDefinition(key="p2", name="P2", start=3, end=6, period=""),
    ]
    with pytest.raises(PhaseBoundaryError):
        PhaseBoundaryTable.from_definitions(defs, 6)


def test_boundary_overlap_rejected():
    defs = [
        PhaseDefinition(key="p1", name="P1", start=0, end=3, period=""),
        PhaseDefinition(key="p2", name="P2", start=2, end=6, period=""),
    ]
    with pytest.raises(PhaseBoundaryError):
        PhaseBoundaryTable.from_definitions(defs, 6)


def test_boundary_must_cover_timeline():
    defs = [PhaseDefinition(key="p1", name="P1", start=0, end=4, period="")]
    with pytest.raises(PhaseBoundaryError):
        PhaseBoundaryTable.from_definitions(defs, 6)


def test_series_length_mismatch_rejected(small_master, small_definitions):
    bad = dict(small_master.series)
    bad["c"] = Series.from_raw("c", [1, 2])
    master = small_master.__class__(**{**small_master.__dict__, "series": bad})
    with pytest.raises(PhaseBoundaryError):
        segment_phases(master, small_definitions)


def test_boundary_lookup(small_master, small_definitions):
    table = segment_phases(small_master, small_definitions)
    b = table.boundaries
    assert b.keys == ["p1", "p2", "p3"]
    assert b.range_of("p2") == (2, 5)
    assert b.phase_at(5) == "p3"
    with pytest.raises(IndexError):
        b.phase_at(6)


def test_all_visible_returns_all_phase_unchanged(small_master, small_definitions):
    table = segment_phases(small_master, small_definitions)
    assert filter_by_phase_visibility(table.all, {}, table.boundaries) is table.all


def test_hidden_phase_values_blanked_and_labels_kept(small_master, small_definitions):
    table = segment_phases(small_master, small_definitions)
    masked = filter_by_phase_visibility(table.all, {"p2": False}, table.boundaries)
    assert masked.months == small_master.months
    assert masked.get("a").to_list() == [1.0, 2.0, None, None, None, 6.0]
    assert masked.get("b").to_list() == [10.0, None, None, None, None, 60.0]


@pytest.mark.parametrize("only", ["p1", "p2", "p3"])
def test_masked_all_view_matches_segment(small_master, small_definitions, only):
    table = segment_phases(small_master, small_definitions)
    mask = {k: k == only for k in table.boundaries.keys}
    masked = filter_by_phase_visibility(table.all, mask, table.boundaries)
    start, end = table.boundaries.range_of(only)
    for name in small_master.series:
        assert masked.get(name).values[start:end] == table[only].get(name).values
        outside = masked.get(name).values[:start] + masked.get(name).values[end:]
        assert all(not v for v in outside)


def test_current_view_selects_phase_or_masked_all(small_master, small_definitions):
    table = segment_phases(small_master, small_definitions)
    assert current_view(table, "p3", {"p3": False}) is table["p3"]
    view = current_view(table, ALL_PHASE, {"p1": False})
    assert view.get("a").to_list()[:2] == [None, None]


def test_reverse_for_rtl(small_master):
    rev = reverse_for_rtl(small_master)
    assert rev.months == tuple(reversed(small_master.months))
    assert rev.get("a").to_list() == [6.0, 5.0, 4.0, None, 2.0, 1.0]


def test_shipped_phase_table(data_ctx):
    table = data_ctx["phase_table"]
    assert table.boundaries.bounds == (("phase1", 0, 12), ("phase2", 12, 19), ("phase3", 19, 20))
    assert table["phase2"].months[-1] == "Jan-22"
    assert table["phase3"].months == ("Feb-22",)
    assert data_ctx["provider_cutover_index"] == 18
