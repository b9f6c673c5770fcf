from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional

from core.phases import ALL_PHASE


SERIES_KEYS = ("manifest", "estimated", "ul", "market_rate", "sayrafa_rate", "secondary_provider")
PHASE_KEYS = ("phase1", "phase2", "phase3")
DIFFERENCE_KEYS = ("manifest_estimated", "estimated_ul", "market_sayrafa")


@dataclass(frozen=True)
class DashboardConfig:
    arrivals_axis_max: float = 400000.0
    arrivals_axis_step: float = 50000.0
    rate_axis_min: float = 1515.0
    rate_axis_max: float = 30000.0
    rate_axis_step: float = 3500.0
    official_rate: float = 1515.0
    chart_height: int = 260


def _flags(keys: Iterable[str], default: bool, raw: Optional[Mapping[str, Any]] = None) -> Dict[str, bool]:
    raw = raw or {}
    return {k: bool(raw.get(k, default)) for k in keys}


@dataclass(frozen=True)
class VisibilityState:
    series: Dict[str, bool] = field(default_factory=lambda: _flags(SERIES_KEYS, True))
    phases: Dict[str, bool] = field(default_factory=lambda: _flags(PHASE_KEYS, True))
    differences: Dict[str, bool] = field(default_factory=lambda: _flags(DIFFERENCE_KEYS, False))

    def series_visible(self, key: str) -> bool:
        return self.series.get(key, True)

    def toggle_series(self, key: str) -> "VisibilityState":
        return replace(self, series={**self.series, key: not self.series_visible(key)})

    def toggle_phase(self, key: str) -> "VisibilityState":
        return replace(self, phases={**self.phases, key: not self.phases.get(key, True)})

    def toggle_difference(self, key: str) -> "VisibilityState":
        return replace(self, differences={**self.differences, key: not self.differences.get(key, False)})


@dataclass(frozen=True)
class ViewState:
    selected_phase: str = ALL_PHASE
    visibility: VisibilityState = field(default_factory=VisibilityState)
    show_transition: bool = False
    selected_index: Optional[int] = None
    dark: bool = False
    rtl: bool = False
    config: DashboardConfig = field(default_factory=DashboardConfig)

    def select_phase(self, key: str) -> "ViewState":
        return replace(self, selected_phase=key, selected_index=None)

    def toggle_series(self, key: str) -> "ViewState":
        return replace(self, visibility=self.visibility.toggle_series(key))

    def toggle_phase(self, key: str) -> "ViewState":
        return replace(self, visibility=self.visibility.toggle_phase(key))

    def toggle_difference(self, key: str) -> "ViewState":
        return replace(self, visibility=self.visibility.toggle_difference(key))

    def toggle_transition(self) -> "ViewState":
        return replace(self, show_transition=not self.show_transition)

    def pin(self, index: Optional[int]) -> "ViewState":
        return replace(self, selected_index=index)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _as_optional_int(value: object) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except Exception:
        return None


def normalize_view_state(raw: Optional[dict], *, phase_keys: Optional[Iterable[str]] = None) -> ViewState:
    raw = raw or {}
    valid_phases = [ALL_PHASE] + list(phase_keys or PHASE_KEYS)

    selected_phase = str(raw.get("selected_phase") or ALL_PHASE)
    if selected_phase not in valid_phases:
        selected_phase = ALL_PHASE

    v = raw.get("visibility") or {}
    visibility = VisibilityState(
        series=_flags(SERIES_KEYS, True, v.get("series")),
        phases=_flags(phase_keys or PHASE_KEYS, True, v.get("phases")),
        differences=_flags(DIFFERENCE_KEYS, False, v.get("differences")),
    )

    selected_index = _as_optional_int(raw.get("selected_index"))
    if selected_index is not None and selected_index < 0:
        selected_index = None

    c = raw.get("config") or {}
    defaults = DashboardConfig()
    try:
        config = DashboardConfig(
            arrivals_axis_max=float(c.get("arrivals_axis_max", defaults.arrivals_axis_max)),
            arrivals_axis_step=float(c.get("arrivals_axis_step", defaults.arrivals_axis_step)),
            rate_axis_min=float(c.get("rate_axis_min", defaults.rate_axis_min)),
            rate_axis_max=float(c.get("rate_axis_max", defaults.rate_axis_max)),
            rate_axis_step=float(c.get("rate_axis_step", defaults.rate_axis_step)),
            official_rate=float(c.get("official_rate", defaults.official_rate)),
            chart_height=int(c.get("chart_height", defaults.chart_height)),
        )
    except Exception:
        config = defaults

    return ViewState(
        selected_phase=selected_phase,
        visibility=visibility,
        show_transition=bool(raw.get("show_transition", False)),
        selected_index=selected_index,
        dark=bool(raw.get("dark", False)),
        rtl=bool(raw.get("rtl", False)),
        config=config,
    )
