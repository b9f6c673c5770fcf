from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from core.state import DIFFERENCE_KEYS, PHASE_KEYS, SERIES_KEYS


class DashboardConfigModel(BaseModel):
    arrivals_axis_max: float = 400000.0
    arrivals_axis_step: float = 50000.0
    rate_axis_min: float = 1515.0
    rate_axis_max: float = 30000.0
    rate_axis_step: float = 3500.0
    official_rate: float = 1515.0
    chart_height: int = 260


class VisibilityModel(BaseModel):
    series: Dict[str, bool] = Field(default_factory=lambda: {k: True for k in SERIES_KEYS})
    phases: Dict[str, bool] = Field(default_factory=lambda: {k: True for k in PHASE_KEYS})
    differences: Dict[str, bool] = Field(default_factory=lambda: {k: False for k in DIFFERENCE_KEYS})


class ViewStateModel(BaseModel):
    selected_phase: str = "all"
    visibility: VisibilityModel = Field(default_factory=VisibilityModel)
    show_transition: bool = False
    selected_index: Optional[int] = None
    dark: bool = False
    rtl: bool = False
    config: DashboardConfigModel = Field(default_factory=DashboardConfigModel)


class PhaseMetaModel(BaseModel):
    key: str
    name: str
    period: str
    start: int
    end: int


class MetaPhasesResponse(BaseModel):
    phases: List[PhaseMetaModel]
    months: List[str]


class MetaSeriesResponse(BaseModel):
    series: Dict[str, str]
