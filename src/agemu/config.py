#!/usr/bin/env python3
"""agemu.config

Shared configuration utilities for the agemu CLIs and fetchers.

Design notes:
- YAML loading is strict: files must exist and be valid mappings.
- sources.yaml must carry both a `parameters` and a `reference` block.
- All functions are pure (no side effects on import).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from agemu.errors import ConfigurationError


# -----------------------------------------------------------------------------
# YAML loading
# -----------------------------------------------------------------------------

def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return as dict.

    Raises SystemExit on missing file or invalid format (non-mapping).
    """
    if not path.exists():
        raise SystemExit(f"Config not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise SystemExit(f"Expected YAML mapping at {path}")
    return data


def load_sources(path: Path) -> Dict[str, Any]:
    """Load sources.yaml and return its `sources:` mapping.

    Expects structure like:
        sources:
          parameters:
            base_url: ...
            tables: {...}
          reference:
            years: [1983, 2016]
            variables: {...}
    """
    return sources_from_yaml(load_yaml(path), origin=str(path))


def sources_from_yaml(data: Dict[str, Any], origin: str = "sources.yaml") -> Dict[str, Any]:
    sources = data.get("sources")
    if not isinstance(sources, dict):
        raise ConfigurationError(f"{origin} must have a top-level 'sources:' mapping.")
    for block in ("parameters", "reference"):
        if not isinstance(sources.get(block), dict):
            raise ConfigurationError(f"{origin} missing sources: -> {block}")
    return sources


# -----------------------------------------------------------------------------
# Reference dataset helpers
# -----------------------------------------------------------------------------

def coerce_year_range(x: Any) -> Optional[Tuple[int, int]]:
    """Try to coerce [first, last] into an inclusive year range.

    Returns None if input is invalid or missing.
    """
    if isinstance(x, (list, tuple)) and len(x) == 2:
        try:
            first, last = (int(v) for v in x)
        except (TypeError, ValueError):
            return None
        if first <= last:
            return (first, last)
    return None


def reference_year_range(sources: Dict[str, Any]) -> Tuple[int, int]:
    """Closed year interval covered by the reference dataset."""
    years = coerce_year_range(sources.get("reference", {}).get("years"))
    return years or DEFAULT_YEAR_RANGE


def format_year_range(years: Tuple[int, int]) -> str:
    return f"{years[0]}-{years[1]}"


# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------
# Centralized so all CLIs use the same defaults.

DEFAULT_SOURCES_YAML = Path("config/sources.yaml")
DEFAULT_CACHE_DIR = Path("data/raw/agmip")
DEFAULT_CROP = "rfMaize"

# CHIRTS/CHIRPS daily coverage
DEFAULT_YEAR_RANGE = (1983, 2016)
