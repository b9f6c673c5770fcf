from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.charts import nested_pie_chart, to_vega_spec
from core.summary import round_half_up


def flow_frame(items: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(items, columns=["name", "value"])
    if df.empty:
        return df.assign(share=pd.Series(dtype=float), percentage=pd.Series(dtype=str))
    df["value"] = pd.to_numeric(df["value"], errors="coerce").fillna(0)
    total = float(df["value"].sum())
    df["share"] = df["value"] / total if total else 0.0
    df["percentage"] = df["share"].apply(lambda s: f"{round_half_up(s * 100):.0f}%")
    return df


def compute_flow(ctx: Dict[str, Any], *, dark: bool = False) -> Dict[str, Any]:
    payers = flow_frame(ctx.get("payers", []))
    expenses = flow_frame(ctx.get("expenses", []))
    comparison = ctx.get("comparison_rows", []) or []

    chart = nested_pie_chart(payers, expenses, dark=dark)
    return {
        "payers": payers.to_dict(orient="records"),
        "expenses": expenses.to_dict(orient="records"),
        "totals": {
            "debit": float(payers["value"].sum()) if not payers.empty else 0.0,
            "credit": float(expenses["value"].sum()) if not expenses.empty else 0.0,
        },
        "comparison": list(comparison),
        "charts": {"flow": to_vega_spec(chart)},
    }
