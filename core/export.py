from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import altair as alt
import pandas as pd
import vl_convert as vlc
from altair.utils.html import spec_to_html

from core.charts import to_vega_spec


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    ok: bool
    data: Optional[bytes] = None
    mime: Optional[str] = None
    filename: Optional[str] = None
    message: Optional[str] = None


def _png(spec: Dict[str, Any]) -> bytes:
    return vlc.vegalite_to_png(vl_spec=spec, scale=2)


def _html(spec: Dict[str, Any]) -> bytes:
    html = spec_to_html(
        spec,
        mode="vega-lite",
        vega_version=alt.VEGA_VERSION,
        vegaembed_version=alt.VEGAEMBED_VERSION,
        vegalite_version=alt.VEGALITE_VERSION,
    )
    return html.encode("utf-8")


def export_chart_image(spec: Dict[str, Any], filename: str) -> ExportResult:
    """PNG snapshot of a chart spec; standalone HTML if PNG rendering is unavailable."""
    try:
        return ExportResult(ok=True, data=_png(spec), mime="image/png", filename=f"{filename}.png")
    except Exception:
        logger.exception("PNG export failed for %s; falling back to HTML", filename)
    try:
        return ExportResult(
            ok=True,
            data=_html(spec),
            mime="text/html",
            filename=f"{filename}.html",
            message="PNG export is unavailable here; downloaded an interactive HTML snapshot instead.",
        )
    except Exception as exc:
        logger.exception("HTML export failed for %s", filename)
        return ExportResult(ok=False, message=f"Could not export {filename}: {exc}")


def table_chart(df: pd.DataFrame, *, title: Optional[str] = None) -> alt.Chart:
    """Render a small table as an Altair text grid so it can be snapshotted like a chart."""
    columns = [str(c) for c in df.columns]
    records = []
    for row_idx, row in enumerate(df.astype(object).where(pd.notna(df), "").itertuples(index=False)):
        for col, value in zip(columns, row):
            records.append({"row": row_idx, "column": col, "text": "" if value is None else str(value)})
    long = pd.DataFrame(records, columns=["row", "column", "text"])
    chart = (
        alt.Chart(long)
        .mark_text(align="left", baseline="middle", dx=-40)
        .encode(
            x=alt.X("column:N", sort=columns, axis=alt.Axis(orient="top", labelAngle=0, title=None)),
            y=alt.Y("row:O", axis=None),
            text="text:N",
        )
        .properties(width=max(120 * len(columns), 240), height=max(22 * len(df), 22))
    )
    if title:
        chart = chart.properties(title=title)
    return chart


def export_table_image(df: pd.DataFrame, filename: str, *, title: Optional[str] = None) -> ExportResult:
    try:
        return ExportResult(
            ok=True, data=_png(to_vega_spec(table_chart(df, title=title))), mime="image/png", filename=f"{filename}.png"
        )
    except Exception:
        logger.exception("PNG table export failed for %s; falling back to HTML table", filename)
    try:
        html = df.to_html(index=False, na_rep="")
        return ExportResult(
            ok=True,
            data=html.encode("utf-8"),
            mime="text/html",
            filename=f"{filename}.html",
            message="PNG export is unavailable here; downloaded the table as HTML instead.",
        )
    except Exception as exc:
        logger.exception("HTML table export failed for %s", filename)
        return ExportResult(ok=False, message=f"Could not export {filename}: {exc}")


def export_table_csv(df: Optional[pd.DataFrame]) -> bytes:
    if df is None or not hasattr(df, "to_csv"):
        df = pd.DataFrame()
    return df.to_csv(index=False).encode("utf-8")
