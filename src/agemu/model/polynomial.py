#!/usr/bin/env python3
"""polynomial.py

Per-pixel quadratic yield emulator.

With v1..v5 the five selected indices (in the pixel's indicator order),
the yield anomaly is

    c1
    + c2 v1 + ... + c6 v5
    + c7 v1v2 + c8 v1v3 + c9 v1v4 + c10 v1v5
    + c11 v2v3 + c12 v2v4 + c13 v2v5
    + c14 v3v4 + c15 v3v5 + c16 v4v5
    + c17 v1² + ... + c21 v5²

Coefficients are fitted elsewhere; this module only evaluates.
"""

from __future__ import annotations

from itertools import combinations
from typing import List, Mapping, Sequence

import numpy as np

from agemu.errors import InvalidInput


N_ACTIVE = 5
N_COEFFICIENTS = 21

_PAIRS = list(combinations(range(N_ACTIVE), 2))


def _term_labels() -> List[str]:
    labels = ["intercept"]
    labels += [f"v{i + 1}" for i in range(N_ACTIVE)]
    labels += [f"v{i + 1}v{j + 1}" for i, j in _PAIRS]
    labels += [f"v{i + 1}^2" for i in range(N_ACTIVE)]
    return labels


TERM_LABELS = _term_labels()


def design_vector(values: Sequence[float]) -> np.ndarray:
    """Expand five index values into the 21 polynomial terms."""
    v = np.asarray(values, dtype=float)
    if v.shape != (N_ACTIVE,):
        raise InvalidInput(f"Expected {N_ACTIVE} index values, got {v.shape[0] if v.ndim else 0}")
    cross = [v[i] * v[j] for i, j in _PAIRS]
    return np.concatenate([[1.0], v, cross, v * v])


def _check_active(active: Sequence[int]) -> List[int]:
    ids = [int(i) for i in active]
    if len(ids) != N_ACTIVE:
        raise InvalidInput(f"Expected {N_ACTIVE} active indicators, got {len(ids)}")
    if len(set(ids)) != N_ACTIVE:
        raise InvalidInput(f"Active indicators must be distinct, got {ids}")
    return ids


def evaluate(
    index_table: Mapping[int, float],
    active: Sequence[int],
    coefficients: Sequence[float],
) -> float:
    """Evaluate the emulator polynomial for one pixel.

    Order of `active` decides which coefficient multiplies which term.
    """
    ids = _check_active(active)
    coeffs = np.asarray(coefficients, dtype=float).ravel()
    if coeffs.size != N_COEFFICIENTS:
        raise InvalidInput(f"Expected {N_COEFFICIENTS} coefficients, got {coeffs.size}")

    missing = [i for i in ids if i not in index_table]
    if missing:
        raise InvalidInput(f"Index table has no value for indicators {missing}")

    terms = design_vector([index_table[i] for i in ids])
    return float(np.dot(coeffs, terms))
