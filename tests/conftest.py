#!/usr/bin/env python3
"""Shared fixtures: a miniature copy of the published .mat tables, served
from a local directory through file:// URLs."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest
from scipy.io import savemat

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from agemu.config import load_sources


GRID_LATS = [6.25, 5.75, 5.25]
GRID_LONS = [33.75, 34.25, 34.75]


def _write_remote(remote: Path) -> None:
    """3x3 grid, land only at (1, 1); reference climate for 1983 only."""
    remote.mkdir(parents=True, exist_ok=True)
    lon_grid, lat_grid = np.meshgrid(GRID_LONS, GRID_LATS)
    shape = lat_grid.shape

    pday = np.full(shape, np.nan)
    gslength = np.full(shape, np.nan)
    pday[1, 1], gslength[1, 1] = 100.0, 121.0
    coeffs = np.zeros(shape + (21,))
    coeffs[1, 1, :2] = [1.0, 0.5]
    variables = np.zeros(shape + (5,))
    variables[1, 1] = [3, 1, 8, 14, 40]

    savemat(remote / "AgGRIDlat.mat", {"lat": lat_grid})
    savemat(remote / "AgGRIDlon.mat", {"lon": lon_grid})
    savemat(remote / "rfMaize_pday.mat", {"pday": pday})
    savemat(remote / "rfMaize_gslength.mat", {"gslength": gslength})
    savemat(remote / "rfMaize_global_coefficients.mat", {"coefficients": coeffs})
    savemat(remote / "rfMaize_global_variables.mat", {"variables": variables})

    tasmax = np.full(shape + (365,), 20.0)
    tasmax[:, :, 149:157] = 35.0
    savemat(remote / "chirts_05deg_daily_tasmax_1983.mat", {"chirtstmax": tasmax})
    savemat(remote / "chirts_05deg_daily_tasmin_1983.mat", {"chirtstmin": np.full(shape + (365,), 10.0)})
    savemat(remote / "chirps_05deg_daily_pr_1983.mat", {"chirpspr": np.full(shape + (365,), 2.0)})


@pytest.fixture
def remote(tmp_path) -> Path:
    path = tmp_path / "remote"
    _write_remote(path)
    return path


@pytest.fixture
def sources(remote, tmp_path):
    # Start from the shipped config, point it at the local "remote"
    cfg = load_sources(ROOT / "config" / "sources.yaml")
    cfg["parameters"]["base_url"] = remote.as_uri()
    cfg["parameters"]["cache_dir"] = str(tmp_path / "cache" / "parameters")
    cfg["reference"]["base_url"] = remote.as_uri()
    cfg["reference"]["cache_dir"] = str(tmp_path / "cache" / "reference")
    return cfg
