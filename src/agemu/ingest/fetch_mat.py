#!/usr/bin/env python3
"""fetch_mat.py

Fetch the emulator's MATLAB tables and expose them as data sources.

Two families of .mat files are published next to the emulator:
- parameters → per-crop coefficients, indicator ids, planting day, season
               length, plus the shared 0.5-degree lat/lon grids
- reference  → CHIRTS/CHIRPS daily tasmax, tasmin and pr, one file per
               variable and year

This module:
- Renders URLs from sources.yaml templates ({base_url}, {crop}, {year})
- Downloads into a local cache dir, reusing files unless overwrite=True
- Reads them with scipy.io.loadmat
- Keeps loaded tables on the source instance

No retries. A failed download or unreadable file raises FetchError.

Called by:
  python -m agemu.ingest params
  python -m agemu.ingest reference --year 1983
  python -m agemu.emulate ...
"""

from __future__ import annotations

import urllib.request
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from scipy.io import loadmat

from agemu.config import DEFAULT_CACHE_DIR
from agemu.errors import ConfigurationError, FetchError


PARAMETER_TABLES = ("coefficients", "indicators", "lat", "lon", "planting_day", "season_length")


def _render_url(template: str, context: Dict[str, Any]) -> str:
    try:
        return template.format(**context)
    except KeyError as e:
        raise ConfigurationError(f"Missing key for url_template: {e.args[0]}") from e


def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def download(
    url: str,
    dest: Path,
    *,
    overwrite: bool = False,
    dry_run: bool = False,
    quiet: bool = False,
) -> Path:
    """Download url to dest unless it is already cached.

    quiet=True suppresses the progress lines (e.g. when stdout carries JSON).
    """
    if dest.exists() and not overwrite:
        if not quiet:
            print(f"[SKIP] {dest.name}")
        return dest

    if not quiet:
        print(f"[FETCH] {url}")
        print(f"  - out: {dest}")
    if dry_run:
        if not quiet:
            print("[dry-run] No download performed")
        return dest

    _ensure_dir(dest.parent)
    part = dest.with_name(dest.name + ".part")
    try:
        urllib.request.urlretrieve(url, part)
    except Exception as e:
        if part.exists():
            part.unlink()
        raise FetchError(f"Failed to download {url}: {e}") from e
    part.replace(dest)
    return dest


def read_mat_var(path: Path, mat_var: str) -> np.ndarray:
    """Read one variable from a .mat file as a numpy array."""
    try:
        data = loadmat(str(path))
    except Exception as e:
        raise FetchError(f"Could not read MATLAB file {path}: {e}") from e
    if mat_var not in data:
        found = sorted(k for k in data if not k.startswith("__"))
        raise FetchError(f"{path.name} has no variable '{mat_var}' (found: {found})")
    return np.asarray(data[mat_var])


def _grid_axis(arr: np.ndarray, axis: str) -> np.ndarray:
    """Pull a 1-D axis out of a lat/lon table.

    Vectors are returned as-is; meshgrid matrices give the first column (lat)
    or first row (lon).
    """
    arr = np.atleast_2d(np.asarray(arr, dtype=float))
    if 1 in arr.shape:
        return arr.ravel()
    return arr[:, 0] if axis == "lat" else arr[0, :]


class _MatTables:
    """Shared cache + download plumbing for a sources.yaml block."""

    block_name = ""

    def __init__(
        self,
        sources: Dict[str, Any],
        cache_dir: Optional[Path] = None,
        overwrite: bool = False,
        quiet: bool = False,
    ):
        cfg = sources.get(self.block_name)
        if not isinstance(cfg, dict):
            raise ConfigurationError(f"sources.yaml missing sources: -> {self.block_name}")
        self.cfg = cfg
        default_dir = DEFAULT_CACHE_DIR / self.block_name
        self.cache_dir = Path(cache_dir) if cache_dir else Path(cfg.get("cache_dir", default_dir))
        self.overwrite = overwrite
        self.quiet = quiet
        self._loaded: Dict[Tuple, np.ndarray] = {}

    def _entry(self, group: str, name: str) -> Dict[str, Any]:
        entries = self.cfg.get(group)
        entry = entries.get(name) if isinstance(entries, dict) else None
        if not isinstance(entry, dict) or not entry.get("url_template") or not entry.get("mat_var"):
            raise ConfigurationError(
                f"sources.yaml {self.block_name}.{group}.{name} needs url_template and mat_var"
            )
        return entry

    def _url(self, entry: Dict[str, Any], **context: Any) -> str:
        ctx = {"base_url": self.cfg.get("base_url")}
        ctx.update(context)
        return _render_url(str(entry["url_template"]), ctx)

    def local_path(self, url: str) -> Path:
        return self.cache_dir / Path(url).name

    def _fetch(self, entry: Dict[str, Any], *, dry_run: bool = False, **context: Any) -> Path:
        url = self._url(entry, **context)
        return download(url, self.local_path(url), overwrite=self.overwrite, dry_run=dry_run, quiet=self.quiet)


class MatParameterSource(_MatTables):
    """ParameterSource backed by the published emulator parameter .mat files."""

    block_name = "parameters"

    def table_url(self, table: str, crop: Optional[str] = None) -> str:
        return self._url(self._entry("tables", table), crop=crop)

    def fetch_all(self, crop: str, *, dry_run: bool = False) -> List[Path]:
        """Download every parameter table for a crop."""
        if not self.quiet:
            print(f"[PARAMS] {crop}")
        return [
            self._fetch(self._entry("tables", t), dry_run=dry_run, crop=crop)
            for t in PARAMETER_TABLES
        ]

    def cached_paths(self, crop: str) -> List[Path]:
        return [self.local_path(self.table_url(t, crop)) for t in PARAMETER_TABLES]

    def _table(self, table: str, crop: Optional[str] = None) -> np.ndarray:
        key = (table, crop)
        if key not in self._loaded:
            entry = self._entry("tables", table)
            path = self._fetch(entry, crop=crop)
            self._loaded[key] = read_mat_var(path, str(entry["mat_var"]))
        return self._loaded[key]

    def coefficients(self, crop: str) -> np.ndarray:
        return self._table("coefficients", crop)

    def indicators(self, crop: str) -> np.ndarray:
        return self._table("indicators", crop)

    def grid_latitudes(self) -> np.ndarray:
        return _grid_axis(self._table("lat"), "lat")

    def grid_longitudes(self) -> np.ndarray:
        return _grid_axis(self._table("lon"), "lon")

    def planting_day(self, crop: str) -> np.ndarray:
        return self._table("planting_day", crop)

    def season_length(self, crop: str) -> np.ndarray:
        return self._table("season_length", crop)


class MatReferenceSource(_MatTables):
    """ReferenceClimateSource backed by the CHIRTS/CHIRPS daily .mat files.

    A single year is held in memory at a time; the files are global
    (lat × lon × 365) and large.
    """

    block_name = "reference"

    def file_url(self, variable: str, year: int) -> str:
        return self._url(self._entry("variables", variable), year=int(year))

    def fetch_year(self, year: int, *, dry_run: bool = False) -> List[Path]:
        if not self.quiet:
            print(f"[REFERENCE] {self.cfg.get('name', 'reference')} {year}")
        variables = self.cfg.get("variables") or {}
        return [
            self._fetch(self._entry("variables", v), dry_run=dry_run, year=int(year))
            for v in variables
        ]

    def cached_paths(self, year: int) -> List[Path]:
        variables = self.cfg.get("variables") or {}
        return [self.local_path(self.file_url(v, year)) for v in variables]

    def daily_series(self, variable: str, year: int) -> np.ndarray:
        key = (variable, int(year))
        if key not in self._loaded:
            # drop other years before loading a new one
            self._loaded = {k: v for k, v in self._loaded.items() if k[1] == int(year)}
            entry = self._entry("variables", variable)
            path = self._fetch(entry, year=int(year))
            self._loaded[key] = read_mat_var(path, str(entry["mat_var"]))
        return self._loaded[key]


if __name__ == "__main__":
    raise SystemExit(
        "This module is not meant to be run directly. "
        "Use: python -m agemu.ingest params"
    )
