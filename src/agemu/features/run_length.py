#!/usr/bin/env python3
"""run_length.py

Longest run of consecutive days satisfying a predicate (dry spells).

The streak array keeps a positive count only on the last day of each run:
when a run continues, the previous day's count is moved forward and zeroed.
The maximum of the array is the longest run.
"""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from agemu.errors import InvalidInput


# Precipitation below this (mm/day) counts as a dry day
DRY_DAY_THRESHOLD = 0.01


def is_dry_day(pr: float) -> bool:
    return pr < DRY_DAY_THRESHOLD


def streaks(values: Sequence[float], predicate: Callable[[float], bool]) -> np.ndarray:
    """Per-day streak counts, nonzero only on the final day of each run."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        raise InvalidInput("Cannot count runs over an empty sequence")

    streak = np.zeros(values.size, dtype=int)
    streak[0] = 1 if predicate(values[0]) else 0
    for dd in range(1, values.size):
        if predicate(values[dd]):
            streak[dd] = streak[dd - 1] + 1
            streak[dd - 1] = 0
        else:
            streak[dd] = 0
    return streak


def longest_run(values: Sequence[float], predicate: Callable[[float], bool]) -> int:
    return int(streaks(values, predicate).max())
