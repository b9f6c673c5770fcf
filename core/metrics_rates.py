from __future__ import annotations

from typing import Any, Dict

import altair as alt

from core.charts import apply_theme, line_layer, long_frame, peg_rule, pinned_rule, to_vega_spec
from core.data import SERIES_COLORS, SERIES_LABELS
from core.derived import absolute
from core.phases import Phase
from core.state import ViewState
from core.summary import (
    NOT_APPLICABLE,
    devaluation_pct,
    extrema,
    format_summary_value,
    has_data,
    summary_payload,
)


def compute_rates(state: ViewState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    view: Phase = ctx["view"]
    display: Phase = ctx["display"]
    rates = absolute(view.get("market_rate"))
    months = list(display.months)

    if has_data(rates):
        ext = extrema(rates)
        best, worst = ext.min, ext.max
    else:
        best = worst = NOT_APPLICABLE
    devaluation = devaluation_pct(rates)

    cards = [
        {"key": "best", "label": "Best Rate (Lowest)", "value": summary_payload(best), "display": format_summary_value(best, "LBP")},
        {"key": "worst", "label": "Worst Rate (Highest)", "value": summary_payload(worst), "display": format_summary_value(worst, "LBP")},
        {
            "key": "devaluation",
            "label": "Total Devaluation",
            "value": summary_payload(devaluation),
            "display": "N/A" if devaluation is NOT_APPLICABLE else f"{devaluation:.1f}%",
        },
    ]

    label = SERIES_LABELS["market_rate"]
    lines = line_layer(
        long_frame(months, {label: absolute(display.get("market_rate")).to_list()}),
        months,
        {label: SERIES_COLORS["market_rate"]},
        y_title="USD to LBP",
        y_domain=[state.config.rate_axis_min, state.config.rate_axis_max],
        rtl=state.rtl,
        value_format=",.0f",
    )
    zoom = alt.selection_interval(bind="scales", encodings=["x"], name="zoom")
    layers = [lines, peg_rule(state.config.official_rate)]
    rule = pinned_rule(months, ctx.get("selected_index"))
    if rule is not None:
        layers.append(rule)
    chart = (
        alt.layer(*layers)
        .add_params(zoom)
        .properties(
            height=state.config.chart_height * 2,
            title=alt.TitleParams(text=f"{view.name} - USD to LBP Exchange Rates", subtitle=view.period, anchor="middle", fontSize=20),
        )
    )
    chart = apply_theme(chart, state.dark)

    return {
        "state": state.to_dict(),
        "phase": {"key": view.key, "name": view.name, "period": view.period},
        "months": months,
        "rates": absolute(display.get("market_rate")).to_list(),
        "cards": cards,
        "charts": {"rates": to_vega_spec(chart)},
    }
