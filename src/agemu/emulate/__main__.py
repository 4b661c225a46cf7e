#!/usr/bin/env python3
"""agemu.emulate

Run the AgMIP-GGCMI seasonal yield emulator for one site.

Climate comes from exactly one of:
- --climate-csv  → a table with tasmax, tasmin, pr columns (365 rows, °C and mm/day)
- --year         → one year of the CHIRTS/CHIRPS reference dataset
- --start-year/--end-year → several reference years, one row each

Examples:
  # Reference dataset, single year
  python -m agemu.emulate --lat 5.7693 --lon 34.3989 --year 1983

  # Reference dataset, year range written to CSV
  python -m agemu.emulate --lat 5.7693 --lon 34.3989 --start-year 1983 --end-year 2016 \
    --out-csv data/processed/emulated_yield.csv

  # Your own daily series
  python -m agemu.emulate --lat 5.7693 --lon 34.3989 --climate-csv site_2020.csv

Exit codes: 0 on success; errors exit with a message.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List, Optional

from agemu.config import (
    load_sources,
    reference_year_range,
    DEFAULT_SOURCES_YAML,
    DEFAULT_CROP,
)
from agemu.errors import EmulatorError


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="agemu.emulate",
        description="Emulated crop-yield anomaly for a site and season",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument("--lat", type=float, required=True, help="Latitude in degrees N")
    ap.add_argument("--lon", type=float, required=True, help="Longitude in degrees E")
    ap.add_argument("--crop", default=DEFAULT_CROP, help=f"Crop parameter set (default: {DEFAULT_CROP})")

    climate = ap.add_argument_group("climate input (choose one)")
    climate.add_argument("--climate-csv", type=Path, default=None, help="CSV with tasmax, tasmin, pr columns")
    climate.add_argument("--year", type=int, default=None, help="Reference dataset year")
    climate.add_argument("--start-year", type=int, default=None)
    climate.add_argument("--end-year", type=int, default=None)

    ap.add_argument("--sources-yaml", type=Path, default=DEFAULT_SOURCES_YAML, help=f"Path to sources.yaml (default: {DEFAULT_SOURCES_YAML})")
    ap.add_argument("--cache-dir", type=Path, default=None, help="Override cache directories from sources.yaml")
    ap.add_argument("--overwrite", action="store_true", help="Re-download cached tables")
    ap.add_argument("--out-csv", type=Path, default=None, help="Write year-range results to CSV")
    ap.add_argument("--explain", action="store_true", help="Also print the grid cell, calendar and indices")
    ap.add_argument("--json", action="store_true", help="Emit JSON to stdout")
    return ap


def _build_emulator(args: argparse.Namespace, need_reference: bool):
    sources = load_sources(args.sources_yaml)

    # Lazy import: scipy only loads when the emulator actually runs
    from agemu.emulator import YieldEmulator
    from agemu.ingest.fetch_mat import MatParameterSource, MatReferenceSource

    params_dir = args.cache_dir / "parameters" if args.cache_dir else None
    ref_dir = args.cache_dir / "reference" if args.cache_dir else None

    # progress lines stay off stdout when it carries JSON
    reference = None
    if need_reference:
        reference = MatReferenceSource(sources, cache_dir=ref_dir, overwrite=args.overwrite, quiet=args.json)

    return YieldEmulator(
        MatParameterSource(sources, cache_dir=params_dir, overwrite=args.overwrite, quiet=args.json),
        reference,
        crop=args.crop,
        year_range=reference_year_range(sources),
    )


def _print_result(args: argparse.Namespace, res) -> None:
    if args.json:
        payload = {"lat": res.lat, "lon": res.lon, "year": res.year, "crop": args.crop, "yield_anomaly": res.yield_anomaly}
        if args.explain:
            cal = res.parameters.calendar
            payload.update({
                "cell": {"row": res.cell.row, "col": res.cell.col},
                "planting_day": cal.planting_day,
                "season_length": cal.season_length,
                "indicators": list(res.parameters.indicators),
                "indices": {str(k): v for k, v in res.indices.items()},
            })
        print(json.dumps(payload, indent=2))
        return

    if args.explain:
        cal = res.parameters.calendar
        print(f"Grid cell: row={res.cell.row} col={res.cell.col}")
        print(f"Season: planting day {cal.planting_day}, length {cal.season_length}, harvest day {cal.harvest_day}")
        for i in res.parameters.indicators:
            print(f"  - v{i}: {res.indices[i]:.4f}")
    print(f"{res.yield_anomaly:.6f}")


def _run(args: argparse.Namespace) -> int:
    has_range = args.start_year is not None or args.end_year is not None

    if has_range:
        if args.start_year is None or args.end_year is None:
            raise SystemExit("--start-year and --end-year must be given together")
        if args.year is not None or args.climate_csv is not None:
            raise SystemExit("--start-year/--end-year can't be combined with --year or --climate-csv")
        emu = _build_emulator(args, need_reference=True)
        # validate the whole range before fetching anything
        for y in (args.start_year, args.end_year):
            emu.check_source(None, None, None, y)
        df = emu.run_years(args.lat, args.lon, range(args.start_year, args.end_year + 1))
        if args.out_csv:
            args.out_csv.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(args.out_csv, index=False)
            if not args.json:
                print(f"Wrote {len(df)} rows -> {args.out_csv}")
        if args.json:
            print(df.to_json(orient="records", indent=2))
        else:
            print(df.to_string(index=False))
        return 0

    tasmax = tasmin = pr = None
    if args.climate_csv is not None:
        if not args.climate_csv.exists():
            raise SystemExit(f"Climate CSV not found: {args.climate_csv}")
        import pandas as pd
        from agemu.features.indices import DailySeries

        daily = DailySeries.from_frame(pd.read_csv(args.climate_csv))
        tasmax, tasmin, pr = daily.tasmax, daily.tasmin, daily.pr

    emu = _build_emulator(args, need_reference=args.year is not None)
    res = emu.explain(args.lat, args.lon, tasmax=tasmax, tasmin=tasmin, pr=pr, year=args.year)
    _print_result(args, res)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        return _run(args)
    except EmulatorError as e:
        raise SystemExit(f"ERROR: {e}") from e


if __name__ == "__main__":
    raise SystemExit(main())
