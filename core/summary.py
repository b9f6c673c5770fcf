from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from core.series import Present, Series, Value


class _NotApplicable:
    _instance: Optional["_NotApplicable"] = None

    def __new__(cls) -> "_NotApplicable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"

    def __str__(self) -> str:
        return "N/A"

    def __bool__(self) -> bool:
        return False


NOT_APPLICABLE = _NotApplicable()

SummaryValue = Union[float, _NotApplicable]


class EmptySeriesError(ValueError):
    pass


@dataclass(frozen=True)
class Extrema:
    min: float
    max: float


def has_data(series: Series) -> bool:
    return any(isinstance(v, Present) for v in series.values)


def series_sum(series: Series, visible: bool = True) -> float:
    if not visible:
        return 0
    return sum(series.present_values(), 0)


def series_average(series: Series, visible: bool = True) -> SummaryValue:
    if not visible:
        return NOT_APPLICABLE
    values = series.present_values()
    if not values:
        return NOT_APPLICABLE
    return sum(values) / len(values)


def extrema(series: Series) -> Extrema:
    values = series.present_values()
    if not values:
        raise EmptySeriesError(f"series {series.name!r} has no data points")
    return Extrema(min=min(values), max=max(values))


def devaluation_pct(series: Series) -> SummaryValue:
    if not has_data(series):
        return NOT_APPLICABLE
    ext = extrema(series)
    if ext.min == 0:
        return NOT_APPLICABLE
    return (ext.max - ext.min) / ext.min * 100


def round_half_up(value: float, ndigits: int = 0) -> float:
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_number(value: Union[float, int, None]) -> str:
    if value is None:
        return "—"
    return f"{round_half_up(value):,.0f}"


def format_rate(value: Union[float, int, None]) -> str:
    if value is None:
        return "—"
    return f"{format_number(value)} LBP"


def format_summary_value(value: SummaryValue, unit: str = "") -> str:
    if value is NOT_APPLICABLE:
        return "N/A"
    text = format_number(value)  # type: ignore[arg-type]
    return f"{text} {unit}" if unit else text


def format_point(value: Value, unit: str = "") -> str:
    if isinstance(value, Present):
        text = format_number(value.value)
        return f"{text} {unit}" if unit else text
    return "—"


def summary_payload(value: SummaryValue) -> Optional[float]:
    """JSON form of a summary value: ``NOT_APPLICABLE`` becomes ``None``."""
    if value is NOT_APPLICABLE:
        return None
    return float(value)  # type: ignore[arg-type]
