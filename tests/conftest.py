import pytest

from core.data import load_dashboard_data, prepare_context
from core.phases import Phase, PhaseDefinition
from core.series import Series
from core.state import ViewState


@pytest.fixture
def data_ctx():
    return load_dashboard_data()


@pytest.fixture
def make_ctx(data_ctx):
    def _make(state: ViewState):
        return prepare_context(state, data_ctx)

    return _make


@pytest.fixture
def small_master():
    months = ("m0", "m1", "m2", "m3", "m4", "m5")
    return Phase(
        key="all",
        name="All",
        period="p",
        start=0,
        end=len(months),
        months=months,
        series={
            "a": Series.from_raw("a", [1, 2, None, 4, 5, 6]),
            "b": Series.from_raw("b", [10, None, 30, 40, 50, 60]),
        },
    )


@pytest.fixture
def small_definitions():
    return [
        PhaseDefinition(key="p1", name="P1", start=0, end=2, period="first"),
        PhaseDefinition(key="p2", name="P2", start=2, end=5, period="second"),
        PhaseDefinition(key="p3", name="P3", start=5, end=6, period="third"),
    ]
