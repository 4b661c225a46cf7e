#!/usr/bin/env python3
"""indices.py

The 40 candidate climate indices the seasonal yield emulator can draw on.

Every index is one statistic of one daily series over one season window:
- mean          → average of the series over the window
- count_above   → number of days strictly above a threshold
- count_below   → number of days strictly below a threshold
- dry_spell     → longest run of days with pr < 0.01 mm

`tas` is the daily mean temperature, (tasmax + tasmin) / 2.

Each pixel only uses five of the forty, so extract() computes just the
requested ids.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

import numpy as np
import pandas as pd

from agemu.errors import InvalidInput
from agemu.features.run_length import is_dry_day, longest_run
from agemu.season.windows import DAYS_PER_YEAR, SeasonWindows


# -----------------------------------------------------------------------------
# Daily input series
# -----------------------------------------------------------------------------

SERIES_NAMES = ("tasmax", "tasmin", "pr")


def _as_daily(name: str, values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1 or arr.shape[0] != DAYS_PER_YEAR:
        raise InvalidInput(
            f"{name} must be a 1-D series of {DAYS_PER_YEAR} daily values, got shape {arr.shape}"
        )
    return arr


@dataclass(frozen=True)
class DailySeries:
    """One year of daily climate for a single pixel.

    tasmax, tasmin in °C, pr in mm/day. Index 0 is day-of-year 1.
    """

    tasmax: np.ndarray
    tasmin: np.ndarray
    pr: np.ndarray

    def __post_init__(self):
        for name in SERIES_NAMES:
            object.__setattr__(self, name, _as_daily(name, getattr(self, name)))

    @property
    def tas(self) -> np.ndarray:
        return (self.tasmax + self.tasmin) / 2

    def series(self, name: str) -> np.ndarray:
        if name == "tas":
            return self.tas
        if name not in SERIES_NAMES:
            raise KeyError(f"Unknown series: {name}")
        return getattr(self, name)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "DailySeries":
        """Build from a table with tasmax, tasmin and pr columns (one row per day)."""
        missing = [c for c in SERIES_NAMES if c not in df.columns]
        if missing:
            raise InvalidInput(f"Climate table missing columns: {missing}")
        return cls(
            tasmax=df["tasmax"].to_numpy(dtype=float),
            tasmin=df["tasmin"].to_numpy(dtype=float),
            pr=df["pr"].to_numpy(dtype=float),
        )


# -----------------------------------------------------------------------------
# Indicator table
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class IndicatorDef:
    id: int
    window: str
    series: str
    statistic: str
    threshold: Optional[float]
    description: str


_SUB_WINDOWS = ("planting", "before", "during", "after")

_SUB_LABELS = {
    "planting": "planting window",
    "before": "before anthesis",
    "during": "during anthesis",
    "after": "after anthesis",
}


def _season_rows():
    return [
        IndicatorDef(1, "season", "tas", "mean", None, "mean growing season temperature"),
        IndicatorDef(2, "season", "pr", "mean", None, "mean growing season precipitation"),
        IndicatorDef(3, "season", "tasmax", "count_above", 30.0, "growing season days with tasmax > 30C"),
        IndicatorDef(4, "season", "tasmax", "count_above", 35.0, "growing season days with tasmax > 35C"),
        IndicatorDef(5, "season", "tasmin", "count_below", 0.0, "growing season days with tasmin < 0C"),
        IndicatorDef(6, "season", "tasmin", "count_below", 5.0, "growing season days with tasmin < 5C"),
        IndicatorDef(7, "season", "pr", "count_above", 1.0, "growing season days with pr > 1mm"),
        IndicatorDef(8, "season", "pr", "dry_spell", None, "longest growing season dry spell"),
    ]


# (first id, series, statistic, threshold, description template)
# Each group covers planting/before/during/after in that order.
_WINDOW_GROUPS = [
    (9, "tas", "mean", None, "mean temperature {}"),
    (13, "pr", "mean", None, "mean precipitation {}"),
    (17, "tasmax", "count_above", 30.0, "days {} with tasmax > 30C"),
    (21, "tasmax", "count_above", 35.0, "days {} with tasmax > 35C"),
    (25, "tasmin", "count_below", 0.0, "days {} with tasmin < 0C"),
    (29, "tasmin", "count_below", 5.0, "days {} with tasmin < 5C"),
    (33, "pr", "count_above", 1.0, "days {} with pr > 1mm"),
    (37, "pr", "dry_spell", None, "longest dry spell {}"),
]


def _build_table() -> Dict[int, IndicatorDef]:
    rows = _season_rows()
    for first, series, statistic, threshold, template in _WINDOW_GROUPS:
        for offset, window in enumerate(_SUB_WINDOWS):
            rows.append(
                IndicatorDef(
                    first + offset, window, series, statistic, threshold,
                    template.format(_SUB_LABELS[window]),
                )
            )
    return {r.id: r for r in rows}


INDICATORS: Dict[int, IndicatorDef] = _build_table()

N_INDICATORS = len(INDICATORS)


# -----------------------------------------------------------------------------
# Statistics
# -----------------------------------------------------------------------------

def _mean(values: np.ndarray, threshold: Optional[float]) -> float:
    return float(np.mean(values))


def _count_above(values: np.ndarray, threshold: Optional[float]) -> float:
    return float(np.count_nonzero(values > threshold))


def _count_below(values: np.ndarray, threshold: Optional[float]) -> float:
    return float(np.count_nonzero(values < threshold))


def _dry_spell(values: np.ndarray, threshold: Optional[float]) -> float:
    return float(longest_run(values, is_dry_day))


STATISTICS: Dict[str, Callable[[np.ndarray, Optional[float]], float]] = {
    "mean": _mean,
    "count_above": _count_above,
    "count_below": _count_below,
    "dry_spell": _dry_spell,
}


def _window_values(series: np.ndarray, days: np.ndarray, ind: IndicatorDef) -> np.ndarray:
    if days.size == 0:
        raise InvalidInput(f"Indicator {ind.id}: {ind.window} window is empty")
    bad = days[(days < 1) | (days > DAYS_PER_YEAR)]
    if bad.size:
        raise InvalidInput(
            f"Indicator {ind.id}: {ind.window} window references days outside "
            f"[1, {DAYS_PER_YEAR}]: {sorted(set(bad.tolist()))}"
        )
    return series[days - 1]


def compute_indicator(daily: DailySeries, windows: SeasonWindows, indicator_id: int) -> float:
    ind = INDICATORS.get(int(indicator_id))
    if ind is None:
        raise InvalidInput(f"Unknown indicator id {indicator_id}; expected 1..{N_INDICATORS}")
    values = _window_values(daily.series(ind.series), windows.get(ind.window), ind)
    return STATISTICS[ind.statistic](values, ind.threshold)


def extract(
    daily: DailySeries,
    windows: SeasonWindows,
    active: Optional[Iterable[int]] = None,
) -> Dict[int, float]:
    """Compute the requested climate indices.

    Args:
        daily: One year of daily climate for the pixel.
        windows: Season windows from compute_windows().
        active: Indicator ids to compute. None computes all 40.

    Returns:
        Mapping of indicator id to value.
    """
    ids = INDICATORS.keys() if active is None else [int(i) for i in active]
    return {i: compute_indicator(daily, windows, i) for i in ids}
