from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

from core.state import DashboardConfig

alt.data_transformers.disable_max_rows()

HIGHLIGHT = "#CCFF00"
OVERLAY_FILL = "rgba(204,255,0,0.45)"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def month_axis(months: Sequence[str], *, show_labels: bool = True, title: Optional[str] = None) -> alt.X:
    # Positions are quantitative so the x scale can be zoomed; labels map back to months.
    n = len(months)
    return alt.X(
        "idx:Q",
        title=title,
        scale=alt.Scale(domain=[0, max(n - 1, 0)], nice=False, zero=False),
        axis=alt.Axis(
            values=list(range(n)),
            labelExpr=f"{json.dumps(list(months), ensure_ascii=False)}[datum.value]",
            labelAngle=-45,
            labels=show_labels,
            ticks=show_labels,
            grid=False,
        ),
    )


def long_frame(months: Sequence[str], columns: Dict[str, List[Optional[float]]]) -> pd.DataFrame:
    rows = []
    for label, values in columns.items():
        for i, (month, value) in enumerate(zip(months, values)):
            rows.append({"idx": i, "month": month, "series": label, "value": value})
    frame = pd.DataFrame(rows, columns=["idx", "month", "series", "value"])
    frame["value"] = pd.to_numeric(frame["value"], errors="coerce")
    return frame


def line_layer(
    frame: pd.DataFrame,
    months: Sequence[str],
    colors: Dict[str, str],
    *,
    y_title: str,
    y_domain: Optional[List[float]] = None,
    rtl: bool = False,
    show_x_labels: bool = True,
    dashed: Optional[List[str]] = None,
    value_format: str = ",.0f",
) -> alt.Chart:
    domain = list(colors.keys())
    y_scale = alt.Scale(domain=y_domain) if y_domain else alt.Scale(zero=False)
    encoding: Dict[str, Any] = {
        "x": month_axis(months, show_labels=show_x_labels),
        "y": alt.Y(
            "value:Q",
            title=y_title,
            scale=y_scale,
            axis=alt.Axis(format=",.0f", gridDash=[4, 4], orient="right" if rtl else "left"),
        ),
        "color": alt.Color("series:N", scale=alt.Scale(domain=domain, range=[colors[k] for k in domain]), legend=None),
        "tooltip": ["month:N", "series:N", alt.Tooltip("value:Q", format=value_format)],
    }
    if dashed:
        encoding["strokeDash"] = alt.condition(
            alt.FieldOneOfPredicate(field="series", oneOf=dashed), alt.value([6, 4]), alt.value([1, 0])
        )
    return (
        alt.Chart(frame)
        .mark_line(point={"filled": True, "size": 40}, invalid=None, strokeWidth=3, interpolate="monotone")
        .encode(**encoding)
    )


def difference_layer(frame: pd.DataFrame, months: Sequence[str]) -> alt.Chart:
    """Stacked area: a transparent ``base`` component under the shaded ``diff`` component."""
    return (
        alt.Chart(frame)
        .mark_area(invalid=None, interpolate="monotone", color=OVERLAY_FILL)
        .encode(
            x=month_axis(months),
            y=alt.Y("value:Q", stack="zero"),
            detail="component:N",
            order=alt.Order("layer:Q"),
            opacity=alt.condition(alt.datum.component == "base", alt.value(0), alt.value(0.55)),
            tooltip=alt.value(None),
        )
    )


def difference_frame(months: Sequence[str], base: List[Optional[float]], diff: List[Optional[float]]) -> pd.DataFrame:
    rows = []
    for i, month in enumerate(months):
        rows.append({"idx": i, "month": month, "component": "base", "layer": 0, "value": base[i]})
        rows.append({"idx": i, "month": month, "component": "diff", "layer": 1, "value": diff[i]})
    frame = pd.DataFrame(rows)
    frame["value"] = pd.to_numeric(frame["value"], errors="coerce")
    return frame


def pinned_rule(months: Sequence[str], selected_index: Optional[int]) -> Optional[alt.Chart]:
    if selected_index is None:
        return None
    data = pd.DataFrame({"idx": [selected_index], "month": [months[selected_index]]})
    return alt.Chart(data).mark_rule(color=HIGHLIGHT, size=2).encode(x=month_axis(months))


def hover_layer(wide: pd.DataFrame, months: Sequence[str], tooltip_fields: List[alt.Tooltip]) -> alt.Chart:
    """Invisible full-height rules carrying the per-month tooltip, also the click target for pinning."""
    pin = alt.selection_point(name="pin", fields=["idx"], on="click", empty=False)
    return (
        alt.Chart(wide)
        .mark_rule(size=12, color=HIGHLIGHT)
        .encode(
            x=month_axis(months),
            opacity=alt.condition(pin, alt.value(0.35), alt.value(0)),
            tooltip=tooltip_fields,
        )
        .add_params(pin)
    )


def peg_rule(official_rate: float) -> alt.Chart:
    data = pd.DataFrame({"value": [official_rate], "label": [f"{official_rate:,.0f} LBP"]})
    rule = alt.Chart(data).mark_rule(color=HIGHLIGHT, size=2).encode(y="value:Q")
    text = alt.Chart(data).mark_text(align="right", dy=-6, color="#222").encode(
        y="value:Q", x=alt.value("width"), text="label:N"
    )
    return rule + text


def apply_theme(chart: alt.TopLevelMixin, dark: bool) -> alt.TopLevelMixin:
    if not dark:
        return chart.configure_view(strokeWidth=0)
    return (
        chart.configure(background="#111827")
        .configure_view(strokeWidth=0)
        .configure_axis(labelColor="#e5e7eb", titleColor="#e5e7eb", gridColor="#374151", domainColor="#6b7280")
        .configure_title(color="#f9fafb", subtitleColor="#9ca3af")
        .configure_legend(labelColor="#e5e7eb", titleColor="#e5e7eb")
    )


def two_panel_chart(
    top: List[alt.Chart],
    bottom: List[alt.Chart],
    *,
    title: str,
    subtitle: str,
    config: DashboardConfig,
    dark: bool = False,
) -> alt.TopLevelMixin:
    zoom = alt.selection_interval(bind="scales", encodings=["x"], name="zoom")
    upper = alt.layer(*top).properties(height=config.chart_height).add_params(zoom)
    lower = alt.layer(*bottom).properties(height=config.chart_height)
    chart = (
        alt.vconcat(upper, lower, spacing=8)
        .resolve_scale(x="shared")
        .properties(title=alt.TitleParams(text=title, subtitle=subtitle, anchor="middle", fontSize=20))
    )
    return apply_theme(chart, dark)


def nested_pie_chart(inner: pd.DataFrame, outer: pd.DataFrame, *, dark: bool = False) -> alt.TopLevelMixin:
    inner_chart = (
        alt.Chart(inner)
        .mark_arc(outerRadius=90, stroke="#fff", strokeWidth=2, cornerRadius=5)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color(
                "name:N",
                title="Payer (Debit)",
                scale=alt.Scale(range=["#FF6B6B", "#4ECDC4", "#45B7D1"]),
                legend=alt.Legend(orient="left"),
            ),
            tooltip=["name:N", alt.Tooltip("value:Q", format="$,.0f"), alt.Tooltip("share:Q", format=".0%")],
        )
    )
    outer_chart = (
        alt.Chart(outer)
        .mark_arc(innerRadius=120, outerRadius=200, stroke="#fff", strokeWidth=2, cornerRadius=5)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color(
                "name:N",
                title="Expense Type (Credit)",
                scale=alt.Scale(range=["#96CEB4", "#FFEAA7", "#DDA0DD", "#98D8C8"]),
                legend=alt.Legend(orient="right"),
            ),
            tooltip=["name:N", alt.Tooltip("value:Q", format="$,.0f"), alt.Tooltip("share:Q", format=".0%")],
        )
    )
    chart = alt.layer(inner_chart, outer_chart).resolve_scale(color="independent", theta="independent").properties(
        height=440, width=440
    )
    return apply_theme(chart, dark)
