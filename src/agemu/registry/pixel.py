#!/usr/bin/env python3
"""pixel.py

Locate the 0.5-degree grid cell for a site and pull that cell's emulator
parameters.

Notes:
- Longitudes above 180 have 180 subtracted (not 360); see DESIGN.md.
- Nearest-neighbour lookup is done per axis, independently for latitude and
  longitude. Ties resolve to the first grid value.
- A cell with no planting day (NaN) is ocean or outside the crop mask.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from agemu.errors import DomainError, InvalidInput
from agemu.ingest.sources import ParameterSource
from agemu.model.polynomial import N_ACTIVE, N_COEFFICIENTS
from agemu.season.windows import SeasonCalendar


@dataclass(frozen=True)
class GridCell:
    row: int  # latitude index
    col: int  # longitude index


@dataclass(frozen=True)
class PixelParameters:
    indicators: Tuple[int, ...]
    coefficients: Tuple[float, ...]
    calendar: SeasonCalendar


def normalize_longitude(lon: float) -> float:
    if lon > 180:
        lon = lon - 180
    return lon


def nearest_grid_index(target: float, grid_values: Sequence[float]) -> int:
    if not math.isfinite(target):
        raise InvalidInput(f"Coordinate must be finite, got {target}")
    grid = np.asarray(grid_values, dtype=float).ravel()
    if grid.size == 0:
        raise InvalidInput("Grid axis is empty")
    return int(np.argmin(np.abs(grid - target)))


def resolve_pixel(
    lat: float,
    lon: float,
    grid_lats: Sequence[float],
    grid_lons: Sequence[float],
) -> GridCell:
    """Map a site to its nearest grid cell. `lon` is normalized first."""
    return GridCell(
        row=nearest_grid_index(lat, grid_lats),
        col=nearest_grid_index(normalize_longitude(lon), grid_lons),
    )


def load_pixel_parameters(source: ParameterSource, crop: str, cell: GridCell) -> PixelParameters:
    """Read the emulator parameters for one cell.

    Raises:
        DomainError: cell has no planting day / season length (ocean, no data).
        InvalidInput: coefficient or indicator vectors have the wrong length.
    """
    pday = float(source.planting_day(crop)[cell.row, cell.col])
    gslength = float(source.season_length(crop)[cell.row, cell.col])
    if math.isnan(pday) or math.isnan(gslength):
        raise DomainError(
            "Pixel is not a valid land growing-season location "
            f"(row={cell.row}, col={cell.col}); please choose a land-based site."
        )

    coeffs = np.asarray(source.coefficients(crop)[cell.row, cell.col], dtype=float).ravel()
    if coeffs.size != N_COEFFICIENTS:
        raise InvalidInput(f"Expected {N_COEFFICIENTS} coefficients for pixel, got {coeffs.size}")

    raw_vars = np.asarray(source.indicators(crop)[cell.row, cell.col], dtype=float).ravel()
    if raw_vars.size != N_ACTIVE or np.isnan(raw_vars).any():
        raise InvalidInput(f"Expected {N_ACTIVE} indicator ids for pixel, got {raw_vars.tolist()}")

    return PixelParameters(
        indicators=tuple(int(v) for v in raw_vars),
        coefficients=tuple(float(c) for c in coeffs),
        calendar=SeasonCalendar.from_raw(pday, gslength),
    )
