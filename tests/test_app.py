from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest


APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")


@pytest.fixture
def app():
    at = AppTest.from_file(APP_PATH, default_timeout=60)
    at.run()
    assert not at.exception
    return at


def test_toggle_label_reflects_click_immediately(app):
    button = app.button(key="arrivals_diff_manifest_estimated")
    assert button.label.startswith("○")
    button.click().run()
    assert not app.exception
    assert app.button(key="arrivals_diff_manifest_estimated").label.startswith("✓")
    assert app.session_state["arrivals_state"].visibility.differences["manifest_estimated"] is True


def test_phase_and_transition_toggles_update_labels(app):
    app.button(key="arrivals_toggle_phase1").click().run()
    assert app.button(key="arrivals_toggle_phase1").label.startswith("○")
    app.button(key="arrivals_transition").click().run()
    assert app.button(key="arrivals_transition").label.startswith("✓")
    assert app.session_state["arrivals_state"].show_transition is True


def test_chart_handle_survives_reruns(app):
    handle = app.session_state["arrivals_host"].handle
    assert handle is not None
    app.button(key="arrivals_toggle_phase2").click().run()
    assert app.session_state["arrivals_host"].handle is handle
    assert handle.updates >= 2
    assert len(app.session_state["arrivals_host"].listeners) == 1


def test_dark_mode_remounts_chart(app):
    handle = app.session_state["arrivals_host"].handle
    app.sidebar.toggle[0].set_value(True).run()
    assert not app.exception
    new_handle = app.session_state["arrivals_host"].handle
    assert new_handle is not handle
    assert handle.disposed
    assert new_handle.theme == "dark"
