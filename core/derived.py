from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from core.series import ABSENT, Present, Series, Value


@dataclass(frozen=True)
class DifferenceOverlay:
    """Stack ``diff`` on an invisible ``base`` to shade the gap between two lines."""

    base: Series
    diff: Series


@dataclass(frozen=True)
class ProviderTransition:
    before_segment: Series
    after_segment: Series
    cutover_index: int


def _check_aligned(a: Series, b: Series) -> None:
    if len(a) != len(b):
        raise ValueError(f"series {a.name!r} and {b.name!r} differ in length: {len(a)} != {len(b)}")


def compute_difference(a: Series, b: Series) -> DifferenceOverlay:
    _check_aligned(a, b)
    base: List[Value] = []
    diff: List[Value] = []
    for va, vb in zip(a.values, b.values):
        if isinstance(va, Present) and isinstance(vb, Present):
            base.append(Present(min(va.value, vb.value)))
            diff.append(Present(abs(va.value - vb.value)))
        else:
            base.append(ABSENT)
            diff.append(ABSENT)
    return DifferenceOverlay(
        base=Series(name=f"{a.name}_{b.name}_base", values=tuple(base)),
        diff=Series(name=f"{a.name}_{b.name}_diff", values=tuple(diff)),
    )


def compute_provider_transition(before: Series, after: Series, cutover_index: int) -> ProviderTransition:
    """Hand a figure over from ``before`` to ``after`` at ``cutover_index``.

    Both providers reported in the cutover month, so that month carries the sum
    of the two (a missing side counts as 0 for the sum only) in both segments.
    """
    _check_aligned(before, after)
    if not 0 <= cutover_index < len(before):
        raise IndexError(f"cutover index {cutover_index} outside series of {len(before)} points")

    b_out: List[Value] = []
    a_out: List[Value] = []
    for i, (vb, va) in enumerate(zip(before.values, after.values)):
        if i < cutover_index:
            b_out.append(vb)
            a_out.append(ABSENT)
        elif i > cutover_index:
            b_out.append(ABSENT)
            a_out.append(va)
        else:
            total = Present(
                (vb.value if isinstance(vb, Present) else 0.0) + (va.value if isinstance(va, Present) else 0.0)
            )
            b_out.append(total)
            a_out.append(total)
    return ProviderTransition(
        before_segment=before.with_values(b_out),
        after_segment=after.with_values(a_out),
        cutover_index=cutover_index,
    )


def absolute(series: Series) -> Series:
    return series.with_values([Present(abs(v.value)) if isinstance(v, Present) else ABSENT for v in series.values])


def point_difference(a: Series, b: Series, index: int) -> Optional[float]:
    va, vb = a[index], b[index]
    if isinstance(va, Present) and isinstance(vb, Present):
        return abs(va.value - vb.value)
    return None
