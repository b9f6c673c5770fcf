"""Tagged optional values and immutable series aligned to the month timeline.

A point is either ``Present(value)`` or the ``ABSENT`` marker. Only ``Present``
carries a number, so "no data" can never be summed, compared or plotted as 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import pandas as pd


@dataclass(frozen=True)
class Present:
    value: float


class _Absent:
    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Absent, ())


ABSENT = _Absent()

Value = Union[Present, _Absent]


def is_present(value: Value) -> bool:
    return isinstance(value, Present)


def to_value(raw: object) -> Value:
    """Wrap a raw literal: ``None``/NaN/pandas NA become ``ABSENT``."""
    if isinstance(raw, (Present, _Absent)):
        return raw
    if raw is None or pd.isna(raw):
        return ABSENT
    out = float(raw)
    if math.isinf(out):
        return ABSENT
    return Present(out)


def from_value(value: Value) -> Optional[float]:
    if isinstance(value, Present):
        return value.value
    return None


@dataclass(frozen=True)
class Series:
    name: str
    values: Tuple[Value, ...]

    @classmethod
    def from_raw(cls, name: str, raw: Iterable[object]) -> "Series":
        return cls(name=name, values=tuple(to_value(v) for v in raw))

    @classmethod
    def absent(cls, name: str, length: int) -> "Series":
        return cls(name=name, values=(ABSENT,) * length)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.values)

    def __getitem__(self, index: int) -> Value:
        return self.values[index]

    def slice(self, start: int, end: int) -> "Series":
        return Series(name=self.name, values=self.values[start:end])

    def with_values(self, values: Sequence[Value]) -> "Series":
        return Series(name=self.name, values=tuple(values))

    def renamed(self, name: str) -> "Series":
        return Series(name=name, values=self.values)

    def reversed(self) -> "Series":
        return Series(name=self.name, values=tuple(reversed(self.values)))

    def present_values(self) -> List[float]:
        return [v.value for v in self.values if isinstance(v, Present)]

    def to_list(self) -> List[Optional[float]]:
        """JSON-friendly list: absent points become ``None``."""
        return [from_value(v) for v in self.values]

    def to_pandas(self, index: Optional[Sequence[str]] = None) -> pd.Series:
        data = [from_value(v) for v in self.values]
        return pd.Series(data, index=index, name=self.name, dtype="float64")
