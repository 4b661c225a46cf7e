#!/usr/bin/env python3
"""sources.py

Data-access interfaces the emulator pulls from.

The emulator never reaches for global tables; it is handed two sources:
- ParameterSource        → per-pixel coefficients, indicator ids, grid axes,
                           planting day and season length for a crop
- ReferenceClimateSource → gridded daily tasmax/tasmin/pr for a given year

Gridded arrays are indexed [row (lat), col (lon), ...] with 0-based indices.
Array* classes hold everything in memory; agemu.ingest.fetch_mat provides
the remote/cached .mat implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Protocol, Tuple

import numpy as np

from agemu.errors import FetchError


REFERENCE_VARIABLES = ("tasmax", "tasmin", "pr")


class ParameterSource(Protocol):
    def coefficients(self, crop: str) -> np.ndarray: ...

    def indicators(self, crop: str) -> np.ndarray: ...

    def grid_latitudes(self) -> np.ndarray: ...

    def grid_longitudes(self) -> np.ndarray: ...

    def planting_day(self, crop: str) -> np.ndarray: ...

    def season_length(self, crop: str) -> np.ndarray: ...


class ReferenceClimateSource(Protocol):
    def daily_series(self, variable: str, year: int) -> np.ndarray: ...


# -----------------------------------------------------------------------------
# In-memory implementations
# -----------------------------------------------------------------------------

@dataclass
class CropTables:
    coefficients: np.ndarray  # (n_lat, n_lon, 21)
    indicators: np.ndarray  # (n_lat, n_lon, 5)
    planting_day: np.ndarray  # (n_lat, n_lon), NaN over ocean
    season_length: np.ndarray  # (n_lat, n_lon)


@dataclass
class ArrayParameterSource:
    lats: np.ndarray
    lons: np.ndarray
    crops: Dict[str, CropTables] = field(default_factory=dict)

    def _crop(self, crop: str) -> CropTables:
        try:
            return self.crops[crop]
        except KeyError:
            raise FetchError(f"No parameter tables for crop '{crop}'") from None

    def coefficients(self, crop: str) -> np.ndarray:
        return self._crop(crop).coefficients

    def indicators(self, crop: str) -> np.ndarray:
        return self._crop(crop).indicators

    def grid_latitudes(self) -> np.ndarray:
        return np.asarray(self.lats, dtype=float)

    def grid_longitudes(self) -> np.ndarray:
        return np.asarray(self.lons, dtype=float)

    def planting_day(self, crop: str) -> np.ndarray:
        return self._crop(crop).planting_day

    def season_length(self, crop: str) -> np.ndarray:
        return self._crop(crop).season_length


@dataclass
class ArrayReferenceSource:
    """Daily grids keyed by (variable, year), each shaped (n_lat, n_lon, 365)."""

    grids: Dict[Tuple[str, int], np.ndarray] = field(default_factory=dict)

    def daily_series(self, variable: str, year: int) -> np.ndarray:
        try:
            return self.grids[(variable, int(year))]
        except KeyError:
            raise FetchError(f"No reference data for {variable} {year}") from None
