from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from core.charts import (
    difference_frame,
    difference_layer,
    hover_layer,
    line_layer,
    long_frame,
    peg_rule,
    pinned_rule,
    to_vega_spec,
    two_panel_chart,
)
from core.data import (
    ARRIVAL_SERIES,
    DIFFERENCE_LABELS,
    DIFFERENCE_PAIRS,
    RATE_SERIES,
    SERIES_COLORS,
    SERIES_LABELS,
)
from core.derived import ProviderTransition, absolute, compute_difference, compute_provider_transition, point_difference
from core.phases import Phase
from core.series import Series
from core.state import ViewState
from core.summary import (
    format_point,
    format_summary_value,
    series_average,
    series_sum,
    summary_payload,
)


TOTAL_CARDS = [("manifest", "Total Manifest"), ("estimated", "Total Estimated"), ("ul", "Total UL"), ("secondary_provider", "Total Oummal & Areeba")]
AVERAGE_CARDS = [("market_rate", "Average Exchange Rate"), ("sayrafa_rate", "Average Sayrafa Rate")]

TRANSITION_BEFORE_LABEL = "Provider (UL)"
TRANSITION_AFTER_LABEL = "Provider (Oummal & Areeba)"


def _summary_cards(view: Phase, state: ViewState) -> List[Dict[str, Any]]:
    cards: List[Dict[str, Any]] = []
    for key, label in TOTAL_CARDS:
        visible = state.visibility.series_visible(key)
        total = series_sum(view.get(key), visible)
        cards.append(
            {"key": key, "label": label, "kind": "total", "visible": visible, "value": float(total), "display": format_summary_value(total)}
        )
    for key, label in AVERAGE_CARDS:
        visible = state.visibility.series_visible(key)
        avg = series_average(absolute(view.get(key)), visible)
        cards.append(
            {"key": key, "label": label, "kind": "average", "visible": visible, "value": summary_payload(avg), "display": format_summary_value(avg, "LBP")}
        )
    return cards


def _transition(view: Phase, state: ViewState, cutover_index: Optional[int], total_cutover: int) -> Optional[ProviderTransition]:
    if not state.show_transition:
        return None
    if not (state.visibility.series_visible("ul") and state.visibility.series_visible("secondary_provider")):
        return None
    before, after = view.get("ul"), view.get("secondary_provider")
    if cutover_index is not None:
        result = compute_provider_transition(before, after, cutover_index)
    elif view.end <= total_cutover:
        # Whole view precedes the handover.
        result = ProviderTransition(before_segment=before, after_segment=Series.absent(after.name, len(after)), cutover_index=-1)
    else:
        result = ProviderTransition(before_segment=Series.absent(before.name, len(before)), after_segment=after, cutover_index=-1)
    if state.rtl:
        result = ProviderTransition(
            before_segment=result.before_segment.reversed(),
            after_segment=result.after_segment.reversed(),
            cutover_index=(len(view) - 1 - result.cutover_index) if result.cutover_index >= 0 else -1,
        )
    return result


def _difference_rows(display: Phase) -> List[Dict[str, Any]]:
    series = dict(display.series)
    series["market_rate"] = absolute(display.get("market_rate"))
    columns = {key: series[key].to_list() for key in ARRIVAL_SERIES + ["secondary_provider"] + RATE_SERIES}
    rows = []
    for i, month in enumerate(display.months):
        row: Dict[str, Any] = {"idx": i, "month": month}
        for key, values in columns.items():
            row[key] = values[i]
        for diff_key, a, b in DIFFERENCE_PAIRS:
            row[f"diff_{diff_key}"] = point_difference(series[a], series[b], i)
        rows.append(row)
    return rows


def _selected_detail(display: Phase, selected_index: Optional[int]) -> Optional[Dict[str, Any]]:
    if selected_index is None:
        return None
    values = {}
    for key in ARRIVAL_SERIES + ["secondary_provider"]:
        values[key] = format_point(display.get(key)[selected_index])
    values["market_rate"] = format_point(absolute(display.get("market_rate"))[selected_index], "LBP")
    values["sayrafa_rate"] = format_point(display.get("sayrafa_rate")[selected_index], "LBP")
    return {"index": selected_index, "month": display.months[selected_index], "values": values}


def compute_arrivals(state: ViewState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    view: Phase = ctx["view"]
    display: Phase = ctx["display"]
    selected_index: Optional[int] = ctx.get("selected_index")
    vis = state.visibility
    config = state.config
    months = list(display.months)

    overlays: Dict[str, Dict[str, List[Optional[float]]]] = {}
    for key, a, b in DIFFERENCE_PAIRS:
        if not (vis.differences.get(key) and vis.series_visible(a) and vis.series_visible(b)):
            continue
        sa, sb = display.get(a), display.get(b)
        if key == "market_sayrafa":
            sa = absolute(sa)
        overlay = compute_difference(sa, sb)
        overlays[key] = {"base": overlay.base.to_list(), "diff": overlay.diff.to_list()}

    transition = _transition(view, state, ctx.get("cutover_index"), ctx.get("total_cutover_index", 0))

    rows = _difference_rows(display)

    # Top panel: arrivals.
    top: List[alt.Chart] = []
    for key in ("manifest_estimated", "estimated_ul"):
        if key in overlays:
            top.append(difference_layer(difference_frame(months, overlays[key]["base"], overlays[key]["diff"]), months))
    arrival_cols = {SERIES_LABELS[k]: display.get(k).to_list() for k in ARRIVAL_SERIES + ["secondary_provider"] if vis.series_visible(k)}
    arrival_colors = {SERIES_LABELS[k]: SERIES_COLORS[k] for k in ARRIVAL_SERIES + ["secondary_provider"]}
    dashed: List[str] = []
    if transition is not None:
        arrival_cols[TRANSITION_BEFORE_LABEL] = transition.before_segment.to_list()
        arrival_cols[TRANSITION_AFTER_LABEL] = transition.after_segment.to_list()
        arrival_colors[TRANSITION_BEFORE_LABEL] = SERIES_COLORS["ul"]
        arrival_colors[TRANSITION_AFTER_LABEL] = SERIES_COLORS["secondary_provider"]
        dashed = [TRANSITION_BEFORE_LABEL, TRANSITION_AFTER_LABEL]
    top.append(
        line_layer(
            long_frame(months, arrival_cols),
            months,
            arrival_colors,
            y_title="Arrivals",
            y_domain=[0, config.arrivals_axis_max],
            rtl=state.rtl,
            show_x_labels=False,
            dashed=dashed,
        )
    )
    tooltip = [alt.Tooltip("month:N", title="Month")]
    for key in ARRIVAL_SERIES + ["secondary_provider"]:
        tooltip.append(alt.Tooltip(field=key, type="quantitative", title=SERIES_LABELS[key], format=",.0f"))
    for key in RATE_SERIES:
        tooltip.append(alt.Tooltip(field=key, type="quantitative", title=f"{SERIES_LABELS[key]} (LBP)", format=",.0f"))
    for key, _, _ in DIFFERENCE_PAIRS:
        tooltip.append(alt.Tooltip(field=f"diff_{key}", type="quantitative", title=DIFFERENCE_LABELS[key], format=",.0f"))
    top.append(hover_layer(pd.DataFrame(rows), months, tooltip))
    rule = pinned_rule(months, selected_index)
    if rule is not None:
        top.append(rule)

    # Bottom panel: exchange rates.
    bottom: List[alt.Chart] = []
    if "market_sayrafa" in overlays:
        bottom.append(difference_layer(difference_frame(months, overlays["market_sayrafa"]["base"], overlays["market_sayrafa"]["diff"]), months))
    rate_cols = {}
    if vis.series_visible("market_rate"):
        rate_cols[SERIES_LABELS["market_rate"]] = absolute(display.get("market_rate")).to_list()
    if vis.series_visible("sayrafa_rate"):
        rate_cols[SERIES_LABELS["sayrafa_rate"]] = display.get("sayrafa_rate").to_list()
    bottom.append(
        line_layer(
            long_frame(months, rate_cols),
            months,
            {SERIES_LABELS[k]: SERIES_COLORS[k] for k in RATE_SERIES},
            y_title="Market Rate",
            y_domain=[config.rate_axis_min, config.rate_axis_max],
            rtl=state.rtl,
        )
    )
    bottom.append(peg_rule(config.official_rate))
    if rule is not None:
        bottom.append(rule)

    chart = two_panel_chart(
        top,
        bottom,
        title=f"{view.name} - Arrivals Analysis & Market Rates",
        subtitle=f"{view.period} • Market Rate at bottom, Arrivals above with separate scales",
        config=config,
        dark=state.dark,
    )

    return {
        "state": state.to_dict(),
        "phase": {"key": view.key, "name": view.name, "period": view.period},
        "months": months,
        "series": {k: s.to_list() for k, s in display.series.items()},
        "cards": _summary_cards(view, state),
        "overlays": overlays,
        "transition": (
            {
                "before": transition.before_segment.to_list(),
                "after": transition.after_segment.to_list(),
                "cutover_index": transition.cutover_index if transition.cutover_index >= 0 else None,
            }
            if transition is not None
            else None
        ),
        "rows": rows,
        "selected": _selected_detail(display, selected_index),
        "charts": {"arrivals": to_vega_spec(chart)},
    }
