#!/usr/bin/env python3
"""agemu.ingest

Data ingestion CLI for agemu.

Subsystem CLIs:
- agemu.ingest  → download / verify emulator tables (this file)
- agemu.emulate → run the yield emulator for a site

Design goals:
- One entrypoint for ingestion only
- One level of subcommands
- Config-driven defaults via sources.yaml
- Verify mode that checks the local cache without touching the network

Examples:
  # Parameter tables for rainfed maize
  python -m agemu.ingest params --crop rfMaize

  # CHIRTS/CHIRPS daily files for one year
  python -m agemu.ingest reference --year 1983

  # Check what is already cached
  python -m agemu.ingest verify --crop rfMaize --year 1983
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from agemu.config import (
    load_sources,
    reference_year_range,
    format_year_range,
    DEFAULT_SOURCES_YAML,
    DEFAULT_CROP,
)
from agemu.errors import EmulatorError


# -----------------------------
# Verify helpers (lightweight)
# -----------------------------

def _verify_paths(label: str, paths: List[Path]) -> Dict[str, Any]:
    """Presence check only; it won't claim the files are valid."""
    missing = [str(p) for p in paths if not p.exists()]
    return {
        "source": label,
        "ok": not missing,
        "count": len(paths) - len(missing),
        "missing": missing,
    }


# -----------------------------
# CLI
# -----------------------------

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="agemu.ingest", description="Data ingestion for agemu")

    # Global args (available for all subcommands)
    ap.add_argument("--sources-yaml", type=Path, default=DEFAULT_SOURCES_YAML, help=f"Path to sources.yaml (default: {DEFAULT_SOURCES_YAML})")
    ap.add_argument("--cache-dir", type=Path, default=None, help="Override the cache_dir from sources.yaml")
    ap.add_argument("--overwrite", action="store_true", help="Ignore cache and re-download")
    ap.add_argument("--dry-run", action="store_true", help="Print planned actions without downloading")

    sub = ap.add_subparsers(dest="command", required=True)

    # --- params ---
    params = sub.add_parser("params", help="Fetch emulator parameter tables")
    params.add_argument("--crop", nargs="+", default=None, help="Crops to fetch (default: crops from sources.yaml)")

    # --- reference ---
    ref = sub.add_parser("reference", help="Fetch reference daily climate for a year range")
    ref.add_argument("--year", type=int, default=None)
    ref.add_argument("--start-year", type=int, default=None)
    ref.add_argument("--end-year", type=int, default=None)

    # --- verify ---
    ver = sub.add_parser("verify", help="Verify that cached tables exist")
    ver.add_argument("--crop", default=DEFAULT_CROP)
    ver.add_argument("--year", type=int, default=None, help="Also check reference files for this year")
    ver.add_argument("--json", action="store_true", help="Emit JSON to stdout")

    return ap


def _reference_years(args: argparse.Namespace, sources: Dict[str, Any]) -> List[int]:
    if args.year is not None:
        first = last = args.year
    else:
        if args.start_year is None or args.end_year is None:
            raise SystemExit("reference needs --year or both --start-year and --end-year")
        first, last = args.start_year, args.end_year
    if first > last:
        raise SystemExit(f"start year ({first}) must be <= end year ({last})")

    lo, hi = reference_year_range(sources)
    if first < lo or last > hi:
        raise SystemExit(f"Years must lie within {format_year_range((lo, hi))}")
    return list(range(first, last + 1))


def _cache_dir(args: argparse.Namespace, block: str) -> Optional[Path]:
    return args.cache_dir / block if args.cache_dir else None


def _run(args: argparse.Namespace) -> int:
    sources = load_sources(args.sources_yaml)

    # Lazy import (keeps CLI import fast; scipy only loads when needed)
    from agemu.ingest.fetch_mat import MatParameterSource, MatReferenceSource

    if args.command == "params":
        param_src = MatParameterSource(sources, cache_dir=_cache_dir(args, "parameters"), overwrite=args.overwrite)
        crops = args.crop or sources["parameters"].get("crops") or [DEFAULT_CROP]
        for crop in crops:
            param_src.fetch_all(str(crop), dry_run=args.dry_run)
        print("[PARAMS] Done")
        return 0

    if args.command == "reference":
        ref_src = MatReferenceSource(sources, cache_dir=_cache_dir(args, "reference"), overwrite=args.overwrite)
        for year in _reference_years(args, sources):
            ref_src.fetch_year(year, dry_run=args.dry_run)
        print("[REFERENCE] Done")
        return 0

    if args.command == "verify":
        param_src = MatParameterSource(sources, cache_dir=_cache_dir(args, "parameters"))
        results = [_verify_paths(f"parameters:{args.crop}", param_src.cached_paths(args.crop))]
        if args.year is not None:
            ref_src = MatReferenceSource(sources, cache_dir=_cache_dir(args, "reference"))
            results.append(_verify_paths(f"reference:{args.year}", ref_src.cached_paths(args.year)))

        ok = all(r["ok"] for r in results)
        if args.json:
            print(json.dumps({"ok": ok, "results": results}, indent=2))
        else:
            for r in results:
                status = "OK" if r["ok"] else "MISSING"
                print(f"[{status}] {r['source']} ({r['count']} cached)")
                for m in r["missing"]:
                    print(f"    - {m}")
            print(f"Overall: {'OK' if ok else 'NOT OK'}")
        return 0 if ok else 2

    raise SystemExit(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        return _run(args)
    except EmulatorError as e:
        raise SystemExit(f"ERROR: {e}") from e


if __name__ == "__main__":
    raise SystemExit(main())
