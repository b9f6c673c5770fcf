"""Monthly USD/LBP averages from the daily market and Sayrafa rate CSVs.

Run as ``python -m core.monthly_rates`` (or the ``compute-monthly-rates``
script). Reads the CSVs from the repository root and prints the monthly
averages used by the dashboard's rate series.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from core.data import DATA_DIR
from core.summary import round_half_up


logger = logging.getLogger(__name__)

MARKET_FILE = "usd-to-lbp-market-rate.csv"
SAYRAFA_FILE_OPTIONS = ["sayrafa-until-july-2022.csv", "sayrafa.csv"]

DATE_KEYWORDS = ("date", "time", "datetime", "تاريخ")
VALUE_KEYWORDS = ("usd", "lbp", "rate", "سعر", "صرف", "dollar")
# "مصرف" (bank) contains "صرف" but names the bank column, not a rate.
VALUE_EXCLUDE = ("مصرف",)

TARGET_MONTHS = ["2022-02", "2022-03", "2022-04", "2022-05", "2022-06", "2022-07"]
PHASE2_MONTHS = ["2021-07", "2021-08", "2021-09", "2021-10", "2021-11", "2021-12", "2022-01"]

_DMY = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})$")


class ColumnInferenceError(ValueError):
    pass


def _norm(header: object) -> str:
    return str(header).replace('"', "").strip().lower()


def infer_columns(headers: Sequence[object], source: object) -> Tuple[int, int]:
    normed = [_norm(h) for h in headers]
    date_idx = next((i for i, h in enumerate(normed) if any(k in h for k in DATE_KEYWORDS)), None)
    value_idx = next(
        (
            i
            for i, h in enumerate(normed)
            if any(k in h for k in VALUE_KEYWORDS) and not any(x in h for x in VALUE_EXCLUDE)
        ),
        None,
    )
    if date_idx is None or value_idx is None:
        raise ColumnInferenceError(
            f"Could not infer columns for {source} headers: {'|'.join(str(h) for h in headers)}"
        )
    return date_idx, value_idx


def normalize_date(value: object) -> Optional[str]:
    """``27-07-2021`` / ``1/2/22`` -> ISO ``YYYY-MM-DD``; anything else is passed through stripped."""
    if value is None or pd.isna(value):
        return None
    s = str(value).replace('"', "").strip()
    if not s:
        return None
    match = _DMY.match(s)
    if match:
        d, m, y = match.groups()
        yyyy = f"20{y}" if len(y) == 2 else y
        return f"{yyyy}-{m.zfill(2)}-{d.zfill(2)}"
    return s


def parse_rate(values: pd.Series) -> pd.Series:
    cleaned = values.astype("string").str.replace('"', "", regex=False).str.replace(",", "", regex=False).str.strip()
    leading = cleaned.str.extract(r"^(-?\d+(?:\.\d+)?)", expand=False)
    return pd.to_numeric(leading, errors="coerce")


def compute_monthly_averages(path: Path) -> Dict[str, int]:
    try:
        raw = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig", on_bad_lines="skip")
    except pd.errors.EmptyDataError:
        # No header row at all.
        infer_columns([], path)
        raise
    date_idx, value_idx = infer_columns(list(raw.columns), path)
    if raw.empty:
        return {}

    dates = raw.iloc[:, date_idx].apply(normalize_date)
    parsed = pd.to_datetime(dates.astype("string").str[:10], format="%Y-%m-%d", errors="coerce")
    values = parse_rate(raw.iloc[:, value_idx])

    frame = pd.DataFrame({"date": parsed, "value": values}).dropna(subset=["date", "value"])
    skipped = len(raw) - len(frame)
    if skipped:
        logger.info("%s: skipped %d unparseable rows", path.name, skipped)
    if frame.empty:
        return {}

    frame["month"] = frame["date"].dt.strftime("%Y-%m")
    means = frame.groupby("month")["value"].mean()
    return {month: int(round_half_up(mean)) for month, mean in means.items()}


def pick(averages: Dict[str, int], months: Iterable[str]) -> List[Optional[int]]:
    return [averages.get(m) for m in months]


def find_sayrafa_file(base: Path = DATA_DIR) -> Path:
    for name in SAYRAFA_FILE_OPTIONS:
        candidate = base / name
        if candidate.exists():
            return candidate
    raise FileNotFoundError("Sayrafa CSV not found")


def main(base: Path = DATA_DIR) -> None:
    logging.basicConfig(level=logging.INFO)
    sayrafa_file = find_sayrafa_file(base)
    market_avgs = compute_monthly_averages(base / MARKET_FILE)
    sayrafa_avgs = compute_monthly_averages(sayrafa_file)

    print("Market averages Feb-Jul 2022:", pick(market_avgs, TARGET_MONTHS))
    print("Sayrafa averages Feb-Jul 2022:", pick(sayrafa_avgs, TARGET_MONTHS))
    print("Existing Phase2 Market (Jul21-Jan22):", pick(market_avgs, PHASE2_MONTHS))
    print("Existing Phase2 Sayrafa (Jul21-Jan22):", pick(sayrafa_avgs, PHASE2_MONTHS))


if __name__ == "__main__":
    main()
