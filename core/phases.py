from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from core.series import ABSENT, Series


ALL_PHASE = "all"


class PhaseBoundaryError(ValueError):
    pass


@dataclass(frozen=True)
class PhaseDefinition:
    key: str
    name: str
    start: int
    end: int
    period: str


@dataclass(frozen=True)
class Phase:
    key: str
    name: str
    period: str
    start: int
    end: int
    months: Tuple[str, ...]
    series: Dict[str, Series] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.months)

    def get(self, name: str) -> Series:
        return self.series[name]

    def to_dict(self) -> Dict[str, object]:
        return {
            "key": self.key,
            "name": self.name,
            "period": self.period,
            "start": self.start,
            "end": self.end,
            "months": list(self.months),
            "series": {k: s.to_list() for k, s in self.series.items()},
        }


@dataclass(frozen=True)
class PhaseBoundaryTable:
    """Phase cutoffs computed once and shared by slicing and masking."""

    length: int
    bounds: Tuple[Tuple[str, int, int], ...]

    @classmethod
    def from_definitions(cls, definitions: Iterable[PhaseDefinition], length: int) -> "PhaseBoundaryTable":
        ordered = sorted(definitions, key=lambda d: d.start)
        if not ordered:
            raise PhaseBoundaryError("at least one phase definition is required")
        expected_start = 0
        seen = set()
        for d in ordered:
            if d.key == ALL_PHASE or d.key in seen:
                raise PhaseBoundaryError(f"invalid or duplicate phase key: {d.key!r}")
            seen.add(d.key)
            if d.start >= d.end:
                raise PhaseBoundaryError(f"phase {d.key!r} is empty: [{d.start}, {d.end})")
            if d.start != expected_start:
                raise PhaseBoundaryError(
                    f"phase {d.key!r} starts at {d.start}, expected {expected_start} (gap or overlap)"
                )
            expected_start = d.end
        if expected_start != length:
            raise PhaseBoundaryError(f"phases cover [0, {expected_start}) but the timeline has {length} points")
        return cls(length=length, bounds=tuple((d.key, d.start, d.end) for d in ordered))

    @property
    def keys(self) -> List[str]:
        return [k for k, _, _ in self.bounds]

    def range_of(self, key: str) -> Tuple[int, int]:
        for k, start, end in self.bounds:
            if k == key:
                return start, end
        raise KeyError(key)

    def phase_at(self, index: int) -> str:
        for k, start, end in self.bounds:
            if start <= index < end:
                return k
        raise IndexError(f"index {index} outside timeline of {self.length} points")


@dataclass(frozen=True)
class PhaseTable:
    phases: Dict[str, Phase]
    boundaries: PhaseBoundaryTable

    def __getitem__(self, key: str) -> Phase:
        return self.phases[key]

    def __contains__(self, key: object) -> bool:
        return key in self.phases

    @property
    def all(self) -> Phase:
        return self.phases[ALL_PHASE]

    def keys(self) -> List[str]:
        return list(self.phases.keys())


def segment_phases(master: Phase, definitions: Iterable[PhaseDefinition]) -> PhaseTable:
    definitions = list(definitions)
    for name, s in master.series.items():
        if len(s) != len(master.months):
            raise PhaseBoundaryError(
                f"series {name!r} has {len(s)} points but the timeline has {len(master.months)}"
            )
    boundaries = PhaseBoundaryTable.from_definitions(definitions, len(master.months))
    by_key = {d.key: d for d in definitions}

    phases: Dict[str, Phase] = {
        ALL_PHASE: Phase(
            key=ALL_PHASE,
            name=master.name,
            period=master.period,
            start=0,
            end=len(master.months),
            months=tuple(master.months),
            series=dict(master.series),
        )
    }
    for key, start, end in boundaries.bounds:
        d = by_key[key]
        phases[key] = Phase(
            key=key,
            name=d.name,
            period=d.period,
            start=start,
            end=end,
            months=tuple(master.months[start:end]),
            series={name: s.slice(start, end) for name, s in master.series.items()},
        )
    return PhaseTable(phases=phases, boundaries=boundaries)


def filter_by_phase_visibility(
    all_phase: Phase, mask: Mapping[str, bool], boundaries: PhaseBoundaryTable
) -> Phase:
    """Blank out values of hidden phases; month labels stay so the axis keeps its size."""
    hidden = [(start, end) for key, start, end in boundaries.bounds if not mask.get(key, True)]
    if not hidden:
        return all_phase

    def _mask(s: Series) -> Series:
        out = list(s.values)
        for start, end in hidden:
            out[start:end] = [ABSENT] * (end - start)
        return s.with_values(out)

    return Phase(
        key=all_phase.key,
        name=all_phase.name,
        period=all_phase.period,
        start=all_phase.start,
        end=all_phase.end,
        months=all_phase.months,
        series={name: _mask(s) for name, s in all_phase.series.items()},
    )


def current_view(table: PhaseTable, selected_phase: str, phase_mask: Optional[Mapping[str, bool]] = None) -> Phase:
    if selected_phase != ALL_PHASE:
        return table[selected_phase]
    return filter_by_phase_visibility(table.all, phase_mask or {}, table.boundaries)


def reverse_for_rtl(phase: Phase) -> Phase:
    return Phase(
        key=phase.key,
        name=phase.name,
        period=phase.period,
        start=phase.start,
        end=phase.end,
        months=tuple(reversed(phase.months)),
        series={name: s.reversed() for name, s in phase.series.items()},
    )
