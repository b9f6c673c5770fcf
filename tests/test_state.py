from core.phases import ALL_PHASE
from core.state import DIFFERENCE_KEYS, PHASE_KEYS, SERIES_KEYS, DashboardConfig, ViewState, normalize_view_state


def test_defaults():
    state = ViewState()
    assert state.selected_phase == ALL_PHASE
    assert all(state.visibility.series[k] for k in SERIES_KEYS)
    assert all(state.visibility.phases[k] for k in PHASE_KEYS)
    assert not any(state.visibility.differences[k] for k in DIFFERENCE_KEYS)
    assert state.selected_index is None
    assert state.config.official_rate == 1515


def test_toggles_are_pure():
    state = ViewState()
    hidden = state.toggle_series("ul")
    assert state.visibility.series["ul"] is True
    assert hidden.visibility.series["ul"] is False
    assert hidden.toggle_series("ul") == state
    assert state.toggle_difference("estimated_ul").visibility.differences["estimated_ul"] is True
    assert state.toggle_transition().show_transition is True


def test_select_phase_clears_pin():
    state = ViewState().pin(4).select_phase("phase2")
    assert state.selected_phase == "phase2"
    assert state.selected_index is None


def test_normalize_replaces_bad_values():
    state = normalize_view_state(
        {
            "selected_phase": "phase9",
            "selected_index": -3,
            "visibility": {"series": {"ul": False, "unknown": False}, "phases": {"phase1": 0}},
            "config": {"official_rate": "not-a-number"},
            "extra": 1,
        }
    )
    assert state.selected_phase == ALL_PHASE
    assert state.selected_index is None
    assert state.visibility.series["ul"] is False
    assert "unknown" not in state.visibility.series
    assert state.visibility.phases["phase1"] is False
    assert state.config == DashboardConfig()


def test_normalize_round_trips_to_dict():
    state = ViewState().select_phase("phase3").toggle_series("manifest")
    assert normalize_view_state(state.to_dict()) == state


def test_normalize_empty():
    assert normalize_view_state(None) == ViewState()
