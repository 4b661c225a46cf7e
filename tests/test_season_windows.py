#!/usr/bin/env python3

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure we can import from src/ without installing the package
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from agemu.errors import InvalidInput
from agemu.season.windows import SeasonCalendar, compute_windows


def test_season_without_wraparound_is_contiguous():
    for pday, length in [(6, 1), (100, 120), (200, 150), (360, 3)]:
        cal = SeasonCalendar(pday, length)
        w = compute_windows(cal)
        assert not cal.wraps
        assert len(w.season) == length + 1
        assert w.season[0] == pday
        assert w.season[-1] == cal.harvest_day
        assert np.all(np.diff(w.season) == 1)


def test_season_wraps_year_boundary():
    cal = SeasonCalendar(360, 10)
    assert cal.harvest_day == 5
    assert cal.wraps
    w = compute_windows(cal)
    assert w.season.tolist() == [360, 361, 362, 363, 364, 365, 1, 2, 3, 4, 5]
    assert len(w.season) == 11


def test_planting_window_wraps_high_days():
    w = compute_windows(SeasonCalendar(363, 100))
    assert w.planting.tolist() == [358, 359, 360, 361, 362, 363, 364, 365, 1, 2, 3]


def test_anthesis_windows():
    # midpoint = round(100 + 121/2) = round(160.5) = 160 (half to even)
    cal = SeasonCalendar(100, 121)
    assert cal.anthesis_day == 160
    w = compute_windows(cal)
    assert w.before.tolist() == list(range(100, 156))
    assert w.during.tolist() == list(range(155, 166))
    assert w.after.tolist() == list(range(165, 222))


def test_anthesis_windows_wrap_after_new_year():
    # midpoint = 300 + 60 = 360, season ends at day 420 -> 55
    w = compute_windows(SeasonCalendar(300, 120))
    assert w.during.tolist() == list(range(355, 366))
    assert w.after[0] == 365
    assert w.after[1] == 1
    assert w.after[-1] == 55


def test_short_season_gives_descending_before_window():
    # midpoint = 102, before runs 100 down to 97
    w = compute_windows(SeasonCalendar(100, 4))
    assert w.before.tolist() == [100, 99, 98, 97]


def test_low_planting_day_is_not_wrapped_upwards():
    w = compute_windows(SeasonCalendar(3, 100))
    assert w.planting.tolist() == list(range(-2, 9))


def test_from_raw_rounds_half_to_even():
    cal = SeasonCalendar.from_raw(120.5, 130.4)
    assert cal.planting_day == 120
    assert cal.season_length == 130


@pytest.mark.parametrize("pday,length", [(0, 100), (366, 100), (100, 0), (100, -5)])
def test_invalid_calendar(pday, length):
    with pytest.raises(InvalidInput):
        SeasonCalendar(pday, length)
