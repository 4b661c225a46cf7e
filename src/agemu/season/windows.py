#!/usr/bin/env python3
"""windows.py

Growing-season calendar and the day-of-year windows the climate indices are
computed over.

Five windows are derived from a pixel's planting day and season length:
- season   → planting day through harvest day (wraps across Dec 31 if needed)
- planting → 11 days centred on the planting day
- before   → planting day up to the start of anthesis
- during   → 11 days centred on the season midpoint (anthesis)
- after    → end of anthesis through harvest

Days are 1-based (day 1 = Jan 1) on a fixed 365-day year.

Notes:
- Ranges are inclusive. A range whose start is past its end runs backwards
  (e.g. a very short season gives a descending `before` window).
- Wrapping is one-sided: days above 365 have 365 subtracted, days below 1 are
  left alone. Planting days below 6 therefore yield a `planting` window with
  non-positive days; the index extractor rejects those.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from agemu.errors import InvalidInput


DAYS_PER_YEAR = 365

# Half-width of the planting and anthesis windows (11 days total)
HALF_WINDOW = 5

WINDOW_NAMES = ("season", "planting", "before", "during", "after")


@dataclass(frozen=True)
class SeasonCalendar:
    planting_day: int
    season_length: int

    def __post_init__(self):
        if not 1 <= self.planting_day <= DAYS_PER_YEAR:
            raise InvalidInput(
                f"planting_day must be in [1, {DAYS_PER_YEAR}], got {self.planting_day}"
            )
        if self.season_length <= 0:
            raise InvalidInput(f"season_length must be positive, got {self.season_length}")

    @classmethod
    def from_raw(cls, planting_day: float, season_length: float) -> "SeasonCalendar":
        """Build a calendar from the gridded (float) planting day and season length.

        Both values are rounded half-to-even before use.
        """
        if math.isnan(planting_day) or math.isnan(season_length):
            raise InvalidInput("planting_day and season_length must not be NaN")
        return cls(int(round(planting_day)), int(round(season_length)))

    @property
    def harvest_day(self) -> int:
        hday = self.planting_day + self.season_length
        if hday > DAYS_PER_YEAR:
            hday -= DAYS_PER_YEAR
        return hday

    @property
    def wraps(self) -> bool:
        """True when the season crosses the year boundary."""
        return self.harvest_day < self.planting_day

    @property
    def anthesis_day(self) -> int:
        """Unwrapped season midpoint (may exceed 365)."""
        return int(round(self.planting_day + self.season_length / 2))


@dataclass(frozen=True)
class SeasonWindows:
    season: np.ndarray
    planting: np.ndarray
    before: np.ndarray
    during: np.ndarray
    after: np.ndarray

    def get(self, name: str) -> np.ndarray:
        if name not in WINDOW_NAMES:
            raise KeyError(f"Unknown window: {name}")
        return getattr(self, name)


def _span(start: int, end: int) -> np.ndarray:
    """Inclusive integer range; descending when start > end."""
    step = 1 if end >= start else -1
    return np.arange(start, end + step, step, dtype=int)


def _wrap_high(days: np.ndarray) -> np.ndarray:
    days = days.copy()
    days[days > DAYS_PER_YEAR] -= DAYS_PER_YEAR
    return days


def season_days(calendar: SeasonCalendar) -> np.ndarray:
    pday = calendar.planting_day
    hday = calendar.harvest_day
    if hday < pday:
        return np.concatenate([_span(pday, DAYS_PER_YEAR), _span(1, hday)])
    return _span(pday, hday)


def compute_windows(calendar: SeasonCalendar) -> SeasonWindows:
    """Derive the five day-of-year windows for a growing season."""
    pday = calendar.planting_day
    mid = calendar.anthesis_day
    end = pday + calendar.season_length

    return SeasonWindows(
        season=season_days(calendar),
        planting=_wrap_high(_span(pday - HALF_WINDOW, pday + HALF_WINDOW)),
        before=_wrap_high(_span(pday, mid - HALF_WINDOW)),
        during=_wrap_high(_span(mid - HALF_WINDOW, mid + HALF_WINDOW)),
        after=_wrap_high(_span(mid + HALF_WINDOW, end)),
    )
