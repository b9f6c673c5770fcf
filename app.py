import pandas as pd
import streamlit as st
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, List, Optional

from core.data import (
    ARRIVAL_SERIES,
    DIFFERENCE_LABELS,
    DIFFERENCE_PAIRS,
    SERIES_LABELS,
    load_dashboard_data,
    phase_to_frame,
    prepare_context,
)
from core.export import export_chart_image, export_table_csv, export_table_image
from core.metrics_arrivals import compute_arrivals
from core.metrics_flow import compute_flow
from core.metrics_rates import compute_rates
from core.phases import ALL_PHASE
from core.render import ChartHost
from core.state import ViewState


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 8px 0 6px;border-bottom: 2px solid #CCFF00;margin-bottom: 12px;}
        .app-top-bar .breadcrumb {color: #64748b;font-size: 0.85rem;letter-spacing: 0.02em;}
        .app-top-bar .page-title {font-size: 1.5rem;font-weight: 700;color: #0f172a;}
        .card {border: 1px solid #e2e8f0;border-radius: 10px;padding: 14px 16px;background: #ffffff;margin-bottom: 12px;}
        .card-header {display: flex;align-items: center;gap: 8px;margin-bottom: 6px;}
        .card-title {font-weight: 600;font-size: 0.95rem;color: #0f172a;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin: 4px 0 10px;}
        .chip {background: #f8fafc;border: 1px solid #cbd5e1;border-radius: 12px;padding: 2px 10px;font-size: 0.8rem;color: #334155;}
        .chip.off {opacity: 0.5;text-decoration: line-through;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_state_summary(state: ViewState, phase_names: Dict[str, str]) -> str:
    chips = [f"<span class='chip'>{phase_names.get(state.selected_phase, state.selected_phase)}</span>"]
    if state.selected_phase == ALL_PHASE:
        for key, visible in state.visibility.phases.items():
            chips.append(f"<span class='chip{'' if visible else ' off'}'>{phase_names.get(key, key)}</span>")
    if state.rtl:
        chips.append("<span class='chip'>RTL</span>")
    return "".join(chips)


def render_page_header(title: str, breadcrumb: str, summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    top = st.container()
    c1, c2 = top.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button("Export CSV", data=export_table_csv(export_df), file_name=export_name, mime="text/csv")
    st.markdown(f"<div class='chip-row'>{summary_html}</div>", unsafe_allow_html=True)


def get_state(page: str) -> ViewState:
    key = f"{page}_state"
    if key not in st.session_state:
        st.session_state[key] = ViewState()
    state: ViewState = st.session_state[key]
    if state.dark != dark_mode:
        state = replace(state, dark=dark_mode)
        st.session_state[key] = state
    return state


def set_state(page: str, state: ViewState) -> None:
    st.session_state[f"{page}_state"] = state


def get_host(page: str) -> ChartHost:
    key = f"{page}_host"
    if key not in st.session_state:
        st.session_state[key] = ChartHost(page)
    return st.session_state[key]


def render_chart(page: str, spec: Dict[str, Any], *, select: bool = False) -> Optional[int]:
    """Draw a chart through the page's host; returns the clicked month index when pinning is enabled."""
    container = st.container()
    handle = get_host(page).mount(f"{page}_chart_slot", dark=dark_mode)
    if handle is None:
        return None
    handle.set_option(spec)
    with container:
        if not select:
            st.vega_lite_chart(spec, use_container_width=True, theme=None)
            return None
        event = st.vega_lite_chart(
            spec, use_container_width=True, theme=None, on_select="rerun", selection_mode=["pin"], key=f"{page}_chart"
        )
    points = (event.get("selection") or {}).get("pin") or []
    if points and "idx" in points[0]:
        return int(points[0]["idx"])
    return None


def render_image_export(page: str, spec: Dict[str, Any]):
    if st.button("Save as image", key=f"{page}_export_png"):
        result = export_chart_image(spec, page)
        if not result.ok:
            st.error(result.message or "Export failed.")
            return
        if result.message:
            st.info(result.message)
        st.download_button(
            "Download", data=result.data, file_name=result.filename, mime=result.mime, key=f"{page}_export_download"
        )


def render_phase_controls(page: str, state: ViewState, phase_names: Dict[str, str], phase_keys: List[str]) -> ViewState:
    options = [ALL_PHASE] + phase_keys
    choice = st.radio(
        "Phase",
        options,
        index=options.index(state.selected_phase) if state.selected_phase in options else 0,
        format_func=lambda k: phase_names.get(k, k),
        horizontal=True,
        key=f"{page}_phase_radio",
    )
    if choice != state.selected_phase:
        state = state.select_phase(choice)
    if state.selected_phase == ALL_PHASE:
        cols = st.columns(len(phase_keys) + 1)
        cols[0].caption("Toggle Phases:")
        for col, key in zip(cols[1:], phase_keys):
            visible = state.visibility.phases.get(key, True)
            if col.button(f"{'✓' if visible else '○'} {phase_names[key]}", key=f"{page}_toggle_{key}"):
                set_state(page, state.toggle_phase(key))
                st.rerun()
    return state


# ----- Page renderers -----

def render_arrivals_page():
    page = "arrivals"
    state = get_state(page)
    table = data_ctx["phase_table"]
    phase_keys = table.boundaries.keys
    phase_names = {k: table[k].name for k in table.keys()}

    with card("Controls"):
        state = render_phase_controls(page, state, phase_names, phase_keys)
        diff_cols = st.columns(len(DIFFERENCE_PAIRS) + 2)
        diff_cols[0].caption("Highlight Differences:")
        for col, (key, _, _) in zip(diff_cols[1:], DIFFERENCE_PAIRS):
            on = state.visibility.differences.get(key, False)
            if col.button(f"{'✓' if on else '○'} {DIFFERENCE_LABELS[key]}", key=f"{page}_diff_{key}"):
                set_state(page, state.toggle_difference(key))
                st.rerun()
        if diff_cols[-1].button(f"{'✓' if state.show_transition else '○'} UL → Oummal & Areeba", key=f"{page}_transition"):
            set_state(page, state.toggle_transition())
            st.rerun()
        rtl = st.toggle("RTL Layout", value=state.rtl, key=f"{page}_rtl")
        if rtl != state.rtl:
            state = replace(state, rtl=rtl, selected_index=None)
    set_state(page, state)

    ctx = prepare_context(state, data_ctx)
    payload = compute_arrivals(state, ctx)
    render_page_header(
        "Arrivals Analysis & Market Rates",
        "Home / Arrivals",
        format_state_summary(state, phase_names),
        export_df=phase_to_frame(ctx["display"]),
        export_name="arrivals.csv",
    )

    spec = payload["charts"]["arrivals"]
    clicked = render_chart(page, spec, select=True)
    if clicked is not None and clicked != state.selected_index:
        set_state(page, state.pin(clicked))
        st.rerun()
    render_image_export(page, spec)

    selected = payload["selected"]
    with card("Selected month"):
        if selected is None:
            st.caption("Click a point to lock the vertical line and see that month's values.")
        else:
            values = selected["values"]
            st.markdown(
                f"**{selected['month']}**: Manifest: {values['manifest']} · Estimated: {values['estimated']} · "
                f"UL: {values['ul']} · Oummal & Areeba: {values['secondary_provider']} · "
                f"USD/LBP: {values['market_rate']} · Sayrafa: {values['sayrafa_rate']}"
            )

    cards = payload["cards"]
    cols = st.columns(len(cards))
    for col, c in zip(cols, cards):
        col.metric(c["label"], c["display"])
        if col.button("Click to hide" if c["visible"] else "Click to show", key=f"{page}_series_{c['key']}"):
            set_state(page, state.toggle_series(c["key"]))
            st.rerun()


def render_rates_page():
    page = "rates"
    state = get_state(page)
    table = data_ctx["phase_table"]
    phase_keys = table.boundaries.keys
    phase_names = {k: table[k].name for k in table.keys()}

    with card("Controls"):
        state = render_phase_controls(page, state, phase_names, phase_keys)
    set_state(page, state)

    ctx = prepare_context(state, data_ctx)
    payload = compute_rates(state, ctx)
    render_page_header(
        "USD to LBP Exchange Rates",
        "Home / Rates",
        format_state_summary(state, phase_names),
        export_df=phase_to_frame(ctx["display"], ["market_rate"]),
        export_name="rates.csv",
    )
    spec = payload["charts"]["rates"]
    render_chart(page, spec)
    render_image_export(page, spec)
    cols = st.columns(len(payload["cards"]))
    for col, c in zip(cols, payload["cards"]):
        col.metric(c["label"], c["display"])


def render_flow_page():
    page = "flow"
    payload = compute_flow(data_ctx, dark=dark_mode)
    payers = pd.DataFrame(payload["payers"])
    expenses = pd.DataFrame(payload["expenses"])
    render_page_header("Financial Flow", "Home / In-Out", "", export_df=pd.concat([payers, expenses], ignore_index=True), export_name="flow.csv")

    cols = st.columns(2)
    with cols[0]:
        with card("Payer Sources (Debit)"):
            st.dataframe(payers[["name", "value", "percentage"]], hide_index=True, use_container_width=True)
    with cols[1]:
        with card("Payments and Expense Types (Credit)"):
            st.dataframe(expenses[["name", "value", "percentage"]], hide_index=True, use_container_width=True)
            st.caption(f"Total: ${payload['totals']['credit']:,.0f}")

    render_chart(page, payload["charts"]["flow"])
    render_image_export(page, payload["charts"]["flow"])

    comparison = pd.DataFrame(payload["comparison"])
    with card("Performance Evaluation"):
        st.dataframe(
            comparison.rename(columns={"phase_ii": "Phase II", "phase_iii": "Phase III"}),
            hide_index=True,
            use_container_width=True,
        )
        if st.button("Save table as image", key="flow_table_png"):
            result = export_table_image(comparison, "performance_evaluation", title="Performance Evaluation")
            if not result.ok:
                st.error(result.message or "Export failed.")
            else:
                if result.message:
                    st.info(result.message)
                st.download_button("Download", data=result.data, file_name=result.filename, mime=result.mime, key="flow_table_download")


# ---------- UI setup ----------
st.set_page_config(page_title="Arrivals & Rates Dashboard", layout="wide")
inject_base_styles()

data_ctx = load_dashboard_data()

with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Arrivals", "USD/LBP Rates", "Financial Flow"], index=0)
    st.markdown("---")
    dark_mode = st.toggle("Dark charts", value=False)
    st.caption(", ".join(SERIES_LABELS[k] for k in ARRIVAL_SERIES) + " monthly; rates are monthly averages.")

if nav_choice == "Arrivals":
    render_arrivals_page()
elif nav_choice == "USD/LBP Rates":
    render_rates_page()
else:
    render_flow_page()
