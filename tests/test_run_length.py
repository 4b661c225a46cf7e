#!/usr/bin/env python3

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from agemu.errors import InvalidInput
from agemu.features.run_length import is_dry_day, longest_run, streaks


def _is_one(x):
    return x == 1


def test_longest_run_picks_longest_streak():
    assert longest_run([1, 1, 0, 1, 1, 1, 0], _is_one) == 3


def test_all_true_returns_length():
    assert longest_run([1] * 17, _is_one) == 17


def test_all_false_returns_zero():
    assert longest_run([0, 0, 0], _is_one) == 0


def test_single_value():
    assert longest_run([1], _is_one) == 1
    assert longest_run([0], _is_one) == 0


def test_only_last_day_of_a_streak_keeps_its_count():
    assert streaks([1, 1, 0, 1, 1, 1, 0], _is_one).tolist() == [0, 2, 0, 0, 0, 3, 0]


def test_dry_day_threshold_is_strict():
    assert is_dry_day(0.0)
    assert is_dry_day(0.009)
    assert not is_dry_day(0.01)
    assert longest_run([0.0, 0.005, 0.01, 0.0, 2.0], is_dry_day) == 2


def test_empty_input_rejected():
    with pytest.raises(InvalidInput):
        longest_run([], _is_one)
