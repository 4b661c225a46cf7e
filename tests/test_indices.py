#!/usr/bin/env python3

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from agemu.errors import InvalidInput
from agemu.features.indices import INDICATORS, DailySeries, compute_indicator, extract
from agemu.season.windows import SeasonCalendar, SeasonWindows, compute_windows


def _daily(tasmax=20.0, tasmin=10.0, pr=2.0):
    return DailySeries(
        tasmax=np.full(365, tasmax),
        tasmin=np.full(365, tasmin),
        pr=np.full(365, pr),
    )


def _windows(season, planting=None, before=None, during=None, after=None):
    arr = lambda d: np.asarray(d if d is not None else season, dtype=int)
    return SeasonWindows(arr(season), arr(planting), arr(before), arr(during), arr(after))


def test_table_has_forty_unique_rows():
    assert sorted(INDICATORS) == list(range(1, 41))
    windows = [INDICATORS[i].window for i in range(9, 41)]
    assert windows[:4] == ["planting", "before", "during", "after"]
    assert set(windows) == {"planting", "before", "during", "after"}


@pytest.mark.parametrize(
    "ind_id,window,series,statistic,threshold",
    [
        (1, "season", "tas", "mean", None),
        (8, "season", "pr", "dry_spell", None),
        (10, "before", "tas", "mean", None),
        (15, "during", "pr", "mean", None),
        (20, "after", "tasmax", "count_above", 30.0),
        (21, "planting", "tasmax", "count_above", 35.0),
        (27, "during", "tasmin", "count_below", 0.0),
        (32, "after", "tasmin", "count_below", 5.0),
        (34, "before", "pr", "count_above", 1.0),
        (40, "after", "pr", "dry_spell", None),
    ],
)
def test_table_rows(ind_id, window, series, statistic, threshold):
    ind = INDICATORS[ind_id]
    assert (ind.window, ind.series, ind.statistic, ind.threshold) == (window, series, statistic, threshold)


def test_hot_days_in_season():
    tasmax = np.full(365, 20.0)
    tasmax[:3] = [31, 29, 31]
    daily = DailySeries(tasmax=tasmax, tasmin=np.zeros(365), pr=np.zeros(365))
    assert extract(daily, _windows([1, 2, 3]), [3]) == {3: 2.0}


def test_thresholds_are_strict():
    tasmax = np.full(365, 30.0)
    tasmin = np.full(365, 0.0)
    pr = np.full(365, 1.0)
    daily = DailySeries(tasmax, tasmin, pr)
    out = extract(daily, _windows(list(range(1, 11))), [3, 5, 7])
    assert out == {3: 0.0, 5: 0.0, 7: 0.0}


def test_mean_temperature_uses_daily_midpoint():
    daily = _daily(tasmax=30.0, tasmin=10.0)
    out = extract(daily, _windows(list(range(1, 50))), [1, 9])
    assert out[1] == pytest.approx(20.0)
    assert out[9] == pytest.approx(20.0)


def test_windowed_indices_use_their_own_window():
    pr = np.zeros(365)
    pr[99:110] = 5.0  # days 100..110 wet
    daily = _daily(pr=0.0)
    daily = DailySeries(daily.tasmax, daily.tasmin, pr)
    w = _windows(
        season=list(range(90, 131)),
        planting=list(range(95, 106)),
        before=list(range(90, 100)),
        during=list(range(100, 111)),
        after=list(range(111, 131)),
    )
    out = extract(daily, w, [13, 14, 15, 35, 38, 39, 40, 8])
    assert out[13] == pytest.approx(5.0 * 6 / 11)
    assert out[14] == 0.0
    assert out[15] == pytest.approx(5.0)
    assert out[35] == 11.0
    assert out[38] == 10.0
    assert out[39] == 0.0
    assert out[40] == 20.0
    assert out[8] == 20.0


def test_extract_all_on_real_calendar():
    rng = np.random.default_rng(0)
    daily = DailySeries(
        tasmax=rng.uniform(-3, 45, 365),
        tasmin=rng.uniform(-15, 30, 365),
        pr=rng.choice([0.0, 0.0, 3.0, 12.0], 365),
    )
    out = extract(daily, compute_windows(SeasonCalendar(300, 150)))
    assert sorted(out) == list(range(1, 41))
    assert all(np.isfinite(v) for v in out.values())


def test_only_requested_indices_are_computed():
    out = extract(_daily(), compute_windows(SeasonCalendar(120, 100)), [2, 6])
    assert set(out) == {2, 6}


def test_unknown_indicator():
    with pytest.raises(InvalidInput):
        compute_indicator(_daily(), _windows([1, 2]), 41)


def test_window_with_non_positive_days_rejected():
    w = compute_windows(SeasonCalendar(3, 100))
    with pytest.raises(InvalidInput, match="planting"):
        extract(_daily(), w, [9])
    # other windows are fine
    assert extract(_daily(), w, [1])[1] == pytest.approx(15.0)


def test_daily_series_length_checked():
    with pytest.raises(InvalidInput):
        DailySeries(np.zeros(364), np.zeros(365), np.zeros(365))
    with pytest.raises(InvalidInput):
        DailySeries(np.zeros(365), np.zeros((365, 1)), np.zeros(365))


def test_daily_series_from_frame():
    df = pd.DataFrame({"tasmax": np.full(365, 25.0), "tasmin": np.full(365, 15.0), "pr": np.zeros(365)})
    daily = DailySeries.from_frame(df)
    assert daily.tas[0] == 20.0
    with pytest.raises(InvalidInput):
        DailySeries.from_frame(df.drop(columns="pr"))
