from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from api.schemas import MetaPhasesResponse, MetaSeriesResponse, PhaseMetaModel, ViewStateModel
from core.data import SERIES_LABELS, load_dashboard_data, phase_to_frame, prepare_context
from core.export import export_table_csv
from core.metrics_arrivals import compute_arrivals
from core.metrics_flow import compute_flow, flow_frame
from core.metrics_rates import compute_rates
from core.state import ViewState, normalize_view_state


app = FastAPI(title="Arrivals Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _state_from_model(model: ViewStateModel, *, phase_keys: list[str]) -> ViewState:
    raw = model.model_dump()
    return normalize_view_state(raw, phase_keys=phase_keys)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/phases", response_model=MetaPhasesResponse)
def meta_phases():
    try:
        data_ctx = load_dashboard_data()
        table = data_ctx["phase_table"]
        phases = [
            PhaseMetaModel(key=p.key, name=p.name, period=p.period, start=p.start, end=p.end)
            for p in (table[k] for k in ["all"] + table.boundaries.keys)
        ]
        return MetaPhasesResponse(phases=phases, months=list(data_ctx["months"]))
    except Exception as exc:
        logger.exception("meta_phases failed")
        return _error(exc)


@app.get("/meta/series", response_model=MetaSeriesResponse)
def meta_series():
    return MetaSeriesResponse(series=dict(SERIES_LABELS))


@app.post("/arrivals")
def arrivals(state: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state, phase_keys=data_ctx["boundaries"].keys)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_arrivals(s, ctx))
    except Exception as exc:
        logger.exception("arrivals failed")
        return _error(exc)


@app.post("/rates")
def rates(state: ViewStateModel):
    try:
        data_ctx = load_dashboard_data()
        s = _state_from_model(state, phase_keys=data_ctx["boundaries"].keys)
        ctx = prepare_context(s, data_ctx)
        return _json(compute_rates(s, ctx))
    except Exception as exc:
        logger.exception("rates failed")
        return _error(exc)


@app.get("/flow")
def flow(dark: bool = False):
    try:
        data_ctx = load_dashboard_data()
        return _json(compute_flow(data_ctx, dark=dark))
    except Exception as exc:
        logger.exception("flow failed")
        return _error(exc)


@app.post("/export/{page}")
def export_page(page: str, state: ViewStateModel):
    data_ctx = load_dashboard_data()
    s = _state_from_model(state, phase_keys=data_ctx["boundaries"].keys)
    ctx = prepare_context(s, data_ctx)

    filename = f"{page}.csv"
    if page == "arrivals":
        export_df = phase_to_frame(ctx["display"])
    elif page == "rates":
        export_df = phase_to_frame(ctx["display"], ["market_rate"])
    elif page == "flow":
        export_df = pd.concat(
            [
                flow_frame(data_ctx["payers"]).assign(direction="debit"),
                flow_frame(data_ctx["expenses"]).assign(direction="credit"),
            ],
            ignore_index=True,
        )
    else:
        export_df = pd.DataFrame()

    return Response(
        content=export_table_csv(export_df),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
