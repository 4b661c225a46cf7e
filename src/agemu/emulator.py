#!/usr/bin/env python3
"""agemu.emulator

Turn one pixel-year of daily climate into an emulated crop-yield anomaly.

Pipeline:
1. Validate the climate source: explicit daily series XOR a reference year
2. Resolve (lat, lon) to a grid cell and load its parameters
3. Build season windows from the cell's planting day and season length
4. Compute the cell's five active climate indices
5. Evaluate the quadratic emulator

The emulator holds no per-call state. Sources are injected; anything they
cache is their own business. Evaluations for different pixels or years are
independent.

Example:
    from agemu.config import load_sources
    from agemu.ingest.fetch_mat import MatParameterSource, MatReferenceSource

    sources = load_sources(Path("config/sources.yaml"))
    emu = YieldEmulator(MatParameterSource(sources), MatReferenceSource(sources))
    emu.run(5.7693, 34.3989, year=1983)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from agemu.config import DEFAULT_CROP, DEFAULT_YEAR_RANGE, format_year_range
from agemu.errors import ConfigurationError, InvalidInput
from agemu.features.indices import DailySeries, extract
from agemu.ingest.sources import REFERENCE_VARIABLES, ParameterSource, ReferenceClimateSource
from agemu.model.polynomial import evaluate
from agemu.registry.pixel import GridCell, PixelParameters, load_pixel_parameters, resolve_pixel
from agemu.season.windows import SeasonWindows, compute_windows


@dataclass(frozen=True)
class EmulationResult:
    lat: float
    lon: float
    year: Optional[int]
    cell: GridCell
    parameters: PixelParameters
    windows: SeasonWindows
    indices: Dict[int, float]
    yield_anomaly: float


class YieldEmulator:
    """Seasonal yield emulator for one crop.

    Args:
        parameters: Source of per-pixel coefficients, indicators and calendar.
        reference: Optional gridded daily climate, used when run() gets a year.
        crop: Crop key understood by the parameter source (e.g. "rfMaize").
        year_range: Closed interval of years the reference dataset covers.
    """

    def __init__(
        self,
        parameters: ParameterSource,
        reference: Optional[ReferenceClimateSource] = None,
        crop: str = DEFAULT_CROP,
        year_range: Tuple[int, int] = DEFAULT_YEAR_RANGE,
    ):
        self.parameters = parameters
        self.reference = reference
        self.crop = crop
        self.year_range = (int(year_range[0]), int(year_range[1]))

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def check_source(self, tasmax, tasmin, pr, year: Optional[int]) -> bool:
        """Return True for the reference-dataset path, False for explicit series."""
        given = [x is not None for x in (tasmax, tasmin, pr)]

        if not any(given) and year is None:
            raise ConfigurationError(
                "No climate input data. Provide tasmax, tasmin and pr, "
                "or a year to use the reference dataset."
            )
        if any(given) and year is not None:
            raise ConfigurationError(
                "Both climate variables and a reference year were provided. "
                "Provide tasmax, tasmin and pr OR a year, not both."
            )
        if year is None:
            if not all(given):
                missing = [n for n, g in zip(REFERENCE_VARIABLES, given) if not g]
                raise ConfigurationError(f"Explicit climate input is missing: {missing}")
            return False

        try:
            integral = float(year) == int(year)
        except (TypeError, ValueError, OverflowError):
            integral = False
        if not integral:
            raise ConfigurationError(f"Year must be a whole number, got {year!r}")

        first, last = self.year_range
        if not first <= int(year) <= last:
            raise ConfigurationError(
                f"Year {year} is outside the available {format_year_range(self.year_range)} "
                "range for the reference dataset."
            )
        if self.reference is None:
            raise ConfigurationError("A year was given but no reference dataset is configured.")
        return True

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def _reference_series(self, cell: GridCell, year: int) -> DailySeries:
        pixel = {
            v: np.asarray(self.reference.daily_series(v, year)[cell.row, cell.col], dtype=float)
            for v in REFERENCE_VARIABLES
        }
        return DailySeries(**pixel)

    def explain(
        self,
        lat: float,
        lon: float,
        tasmax: Optional[Sequence[float]] = None,
        tasmin: Optional[Sequence[float]] = None,
        pr: Optional[Sequence[float]] = None,
        year: Optional[int] = None,
    ) -> EmulationResult:
        """Run the full pipeline and keep every intermediate."""
        use_reference = self.check_source(tasmax, tasmin, pr, year)

        # explicit series are shape-checked before any fetch happens
        daily = None if use_reference else DailySeries(tasmax, tasmin, pr)

        cell = resolve_pixel(
            lat, lon,
            self.parameters.grid_latitudes(),
            self.parameters.grid_longitudes(),
        )
        params = load_pixel_parameters(self.parameters, self.crop, cell)

        if use_reference:
            daily = self._reference_series(cell, int(year))

        windows = compute_windows(params.calendar)
        indices = extract(daily, windows, params.indicators)
        value = evaluate(indices, params.indicators, params.coefficients)
        if not math.isfinite(value):
            raise InvalidInput(
                f"Emulated yield is not finite ({value}); check the climate input for gaps."
            )

        return EmulationResult(
            lat=lat,
            lon=lon,
            year=None if year is None else int(year),
            cell=cell,
            parameters=params,
            windows=windows,
            indices=indices,
            yield_anomaly=value,
        )

    def run(
        self,
        lat: float,
        lon: float,
        tasmax: Optional[Sequence[float]] = None,
        tasmin: Optional[Sequence[float]] = None,
        pr: Optional[Sequence[float]] = None,
        year: Optional[int] = None,
    ) -> float:
        """Emulated yield anomaly for one site and season."""
        return self.explain(lat, lon, tasmax=tasmax, tasmin=tasmin, pr=pr, year=year).yield_anomaly

    def run_years(self, lat: float, lon: float, years: Iterable[int]) -> pd.DataFrame:
        """Evaluate one site against the reference dataset for several years."""
        rows = []
        for year in years:
            rows.append({
                "year": int(year),
                "lat": lat,
                "lon": lon,
                "yield_anomaly": self.run(lat, lon, year=int(year)),
            })
        return pd.DataFrame(rows, columns=["year", "lat", "lon", "yield_anomaly"])
