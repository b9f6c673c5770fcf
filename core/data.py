from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from core.phases import (
    ALL_PHASE,
    Phase,
    PhaseDefinition,
    PhaseTable,
    current_view,
    reverse_for_rtl,
    segment_phases,
)
from core.series import Series
from core.state import ViewState, normalize_view_state


DATA_DIR = Path(__file__).resolve().parents[1]

SERIES_LABELS = {
    "manifest": "Manifest",
    "estimated": "Estimated",
    "ul": "UL",
    "market_rate": "Market Rate",
    "sayrafa_rate": "Sayrafa Rate",
    "secondary_provider": "Oummal & Areeba",
}
SERIES_COLORS = {
    "manifest": "#6b7280",
    "estimated": "#000000",
    "ul": "#3b82f6",
    "market_rate": "#ef4444",
    "sayrafa_rate": "#22c55e",
    "secondary_provider": "#f59e0b",
}
ARRIVAL_SERIES = ["manifest", "estimated", "ul"]
RATE_SERIES = ["market_rate", "sayrafa_rate"]

# (overlay key, first series, second series)
DIFFERENCE_PAIRS = [
    ("manifest_estimated", "manifest", "estimated"),
    ("estimated_ul", "estimated", "ul"),
    ("market_sayrafa", "market_rate", "sayrafa_rate"),
]
DIFFERENCE_LABELS = {
    "manifest_estimated": "Δ Estimated vs Manifest",
    "estimated_ul": "Δ UL vs Estimated",
    "market_sayrafa": "Δ Market vs Sayrafa",
}

MONTHS = [
    "Jul-20", "Aug-20", "Sep-20", "Oct-20", "Nov-20", "Dec-20",
    "Jan-21", "Feb-21", "Mar-21", "Apr-21", "May-21", "Jun-21",
    "Jul-21", "Aug-21", "Sep-21", "Oct-21", "Nov-21", "Dec-21", "Jan-22",
    "Feb-22",
]

PHASE_DEFINITIONS = [
    PhaseDefinition(key="phase1", name="Phase 1", start=0, end=12, period="01-07-2020 to 30-06-2021"),
    PhaseDefinition(key="phase2", name="Phase 2", start=12, end=19, period="01-07-2021 to 09-01-2022"),
    PhaseDefinition(key="phase3", name="Phase 3", start=19, end=20, period="10-01-2022 to 28-02-2022"),
]
ALL_PHASES_NAME = "All Phases"
ALL_PHASES_PERIOD = "01-07-2020 to 28-02-2022"

# Jan-22: UL and Oummal & Areeba both reported tests that month.
PROVIDER_CUTOVER_MONTH = "Jan-22"

_NO_PHASE1 = [None] * 12

RAW_SERIES: Dict[str, List[Optional[float]]] = {
    "manifest": _NO_PHASE1 + [355979, 208033, 183225, 192837, 156665, 242955, 51077] + [None],
    "estimated": _NO_PHASE1 + [312622, 182695, 160909, 169350, 137584, 213364, 44856] + [None],
    "ul": _NO_PHASE1 + [255958, 149581, 131744, 138655, 112646, 174691, 36725] + [None],
    "market_rate": [
        8081, 7433, 7686, 7803, 7820, 8286,
        8762, 9138, 11708, 12201, 12713, 15274,
        19408, 19587, 16479, 19691, 22900, 25911, 26493,
        20938,
    ],
    "sayrafa_rate": _NO_PHASE1 + [15500, 16800, 14200, 17200, 19400, 22800, 23100] + [20300],
    "secondary_provider": [None] * 18 + [41620, 184428],
}

PAYERS = [
    {"name": "Airlines", "value": 192515},
    {"name": "American Express", "value": 96900},
    {"name": "Border PCR", "value": 5969},
]
EXPENSES = [
    {"name": "Treasury (MoF)", "value": 185609},
    {"name": "Human Resources (+MoF+NSSF)", "value": 78042},
    {"name": "Project operation supplies", "value": 19156},
    {"name": "Other (supplies, rent, tests..)", "value": 12577},
]

COMPARISON_ROWS = [
    {"section": "Outcome", "group": "Acclaimed number of tests vs. Estimated number of tests", "metric": "# UL", "phase_ii": "1,000,000", "phase_iii": ""},
    {"section": "Outcome", "group": "Acclaimed number of tests vs. Estimated number of tests", "metric": "# Est", "phase_ii": "1,306,455", "phase_iii": ""},
    {"section": "Outcome", "group": "Acclaimed number of tests vs. Estimated number of tests", "metric": "# Oummal&Areeba", "phase_ii": "", "phase_iii": "226,048"},
    {"section": "Outcome", "group": "Acclaimed number of tests vs. Estimated number of tests", "metric": "#Est", "phase_ii": "", "phase_iii": "243,665"},
    {"section": "Outcome", "group": "Acclaimed amount vs. Estimated amount", "metric": "Am UL", "phase_ii": "$50,000,000", "phase_iii": ""},
    {"section": "Outcome", "group": "Acclaimed amount vs. Estimated amount", "metric": "Am Est", "phase_ii": "$65,322,750", "phase_iii": ""},
    {"section": "Outcome", "group": "Acclaimed amount vs. Estimated amount", "metric": "Am O&Aree", "phase_ii": "", "phase_iii": "$6,394,730"},
    {"section": "Outcome", "group": "Acclaimed amount vs. Estimated amount", "metric": "Am Est", "phase_ii": "", "phase_iii": "$7,309,950"},
    {"section": "Impact", "group": "Epidemiological Surveillance", "metric": "Untested arrivals at the airport:", "phase_ii": "306,455", "phase_iii": "617"},
    {"section": "Impact", "group": "Epidemiological Surveillance", "metric": "Estimated infected arrivals (3%):", "phase_ii": "9,194", "phase_iii": "19"},
    {"section": "Impact", "group": "Epidemiological Surveillance", "metric": "Potential secondary infections (Re 2.5):", "phase_ii": "22,984", "phase_iii": "46"},
    {"section": "Impact", "group": "Epidemiological Surveillance", "metric": "Hospitalizations (1-5%):", "phase_ii": "92 - 460", "phase_iii": "0 - 1"},
    {"section": "Impact", "group": "Epidemiological Surveillance", "metric": "Deaths (0.3–0.6% IFR typical for Delta-era):", "phase_ii": "28 - 55", "phase_iii": "0 - 0"},
    {"section": "Impact", "group": "Financial", "metric": "Collected by the treasury", "phase_ii": "$ -", "phase_iii": "$6,394,730"},
    {"section": "Impact", "group": "Financial", "metric": "Not collected by the treasury", "phase_ii": "$50,000,000", "phase_iii": "$ 405,220"},
    {"section": "Impact", "group": "Financial", "metric": "Unaccounted / Squandered", "phase_ii": "$15,322,750", "phase_iii": "$ 510,000"},
]


def build_master_phase() -> Phase:
    return Phase(
        key=ALL_PHASE,
        name=ALL_PHASES_NAME,
        period=ALL_PHASES_PERIOD,
        start=0,
        end=len(MONTHS),
        months=tuple(MONTHS),
        series={name: Series.from_raw(name, raw) for name, raw in RAW_SERIES.items()},
    )


def phase_to_frame(phase: Phase, series_keys: Optional[List[str]] = None) -> pd.DataFrame:
    keys = series_keys or list(phase.series.keys())
    frame = pd.DataFrame({"month": list(phase.months)})
    for key in keys:
        frame[key] = phase.series[key].to_pandas().to_numpy()
    return frame


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=1)
def load_dashboard_data() -> Dict[str, object]:
    master = build_master_phase()
    table: PhaseTable = segment_phases(master, PHASE_DEFINITIONS)
    return {
        "months": list(MONTHS),
        "master": master,
        "phase_table": table,
        "boundaries": table.boundaries,
        "phase_definitions": list(PHASE_DEFINITIONS),
        "provider_cutover_index": MONTHS.index(PROVIDER_CUTOVER_MONTH),
        "payers": list(PAYERS),
        "expenses": list(EXPENSES),
        "comparison_rows": list(COMPARISON_ROWS),
    }


def prepare_context(state: dict | ViewState, data_ctx: Dict[str, object]) -> Dict[str, object]:
    table: PhaseTable = data_ctx["phase_table"]  # type: ignore[assignment]
    if not isinstance(state, ViewState):
        state = normalize_view_state(state, phase_keys=table.boundaries.keys)

    view = current_view(table, state.selected_phase, state.visibility.phases)
    display = reverse_for_rtl(view) if state.rtl else view

    selected_index = state.selected_index
    if selected_index is not None and not 0 <= selected_index < len(display.months):
        selected_index = None

    cutover_index: int = data_ctx["provider_cutover_index"]  # type: ignore[assignment]
    cutover_in_view: Optional[int] = None
    if view.start <= cutover_index < view.end:
        cutover_in_view = cutover_index - view.start

    return {
        "state": state,
        "view": view,
        "display": display,
        "selected_index": selected_index,
        "cutover_index": cutover_in_view,
        "total_cutover_index": cutover_index,
        "phase_table": table,
        "boundaries": table.boundaries,
        "payers": data_ctx.get("payers", []),
        "expenses": data_ctx.get("expenses", []),
        "comparison_rows": data_ctx.get("comparison_rows", []),
    }
