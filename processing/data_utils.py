#!/usr/bin/env python3
"""
data_utils.py - Shared Data Processing Utilities

Helpers for getting survey data into the shape the density layers expect:
feature collections built from API rows, per-feature metric extraction and
cleaning of numeric properties.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import geopandas as gpd
import pandas as pd
from loguru import logger

from analysis.natural_breaks import finite_values

Accessor = Union[str, Callable[[Dict[str, Any]], Any]]

DETAIL_LEVELS = ("state", "lga")

# Properties carried over from the regional summary API rows
SUMMARY_PROPERTIES = ["name", "farmer_count", "farms_count", "crop_area"]


def clean_numeric(series: pd.Series) -> pd.Series:
    """
    Cleans a pandas Series to numeric type, handling thousands separators.

    Args:
        series: The pandas Series to clean.

    Returns:
        A pandas Series with numeric data (NaN where conversion failed).
    """
    if pd.api.types.is_numeric_dtype(series):
        return series
    s = series.astype(str).str.replace(",", "", regex=False).str.strip()
    return pd.to_numeric(s, errors="coerce")


def extract_observations(
    features: Iterable[Dict[str, Any]], accessor: Accessor
) -> List[Any]:
    """Read one value per feature, either by property name or through a callable."""
    values = []
    for feature in features:
        if callable(accessor):
            values.append(accessor(feature))
        else:
            properties = feature.get("properties") or {}
            values.append(properties.get(accessor))
    return values


def positive_sample(values: Iterable[Any]) -> List[Any]:
    """Finite numeric values greater than zero; everything else is dropped."""
    return [v for v in finite_values(values) if v > 0]


def _parse_geometry(geom: Any) -> Optional[Dict[str, Any]]:
    if geom is None or geom == "":
        return None
    if isinstance(geom, dict):
        return geom
    try:
        return json.loads(geom)
    except (TypeError, ValueError) as e:
        logger.warning(f"  ⚠️ Skipping unparseable geometry: {e}")
        return None


def format_geojson_from_response(rows: Any) -> Optional[Dict[str, Any]]:
    """
    Build a FeatureCollection from regional summary rows.

    Each row carries ``name``, ``farmer_count``, ``farms_count``, ``crop_area``
    and a ``geom`` GeoJSON string. Rows without a usable geometry are dropped.

    Returns:
        FeatureCollection dict, or None for an empty or non-list response
    """
    if not rows or not isinstance(rows, list):
        return None

    features = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        geometry = _parse_geometry(row.get("geom"))
        if geometry is None:
            continue
        features.append(
            {
                "type": "Feature",
                "properties": {key: row.get(key) for key in SUMMARY_PROPERTIES},
                "geometry": geometry,
            }
        )

    dropped = len(rows) - len(features)
    if dropped:
        logger.debug(f"  🗑️ Dropped {dropped} rows without geometry")

    return {"type": "FeatureCollection", "features": features}


def select_detail_level(
    state_data: Optional[Dict[str, Any]],
    lga_data: Optional[Dict[str, Any]],
    level: str = "state",
) -> Optional[Dict[str, Any]]:
    """
    Pick the collection for the requested detail level.

    Returns:
        The state or LGA collection, or None if it has no features
    """
    if level not in DETAIL_LEVELS:
        raise ValueError(f"Unknown detail level: {level} (expected one of {DETAIL_LEVELS})")

    data = state_data if level == "state" else lga_data
    if not data or not data.get("features"):
        return None
    return data


def ensure_wgs84(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Make sure a GeoDataFrame is in WGS84 (web standard)."""
    if gdf.crs is None:
        logger.info("  🌍 Set CRS to WGS84 (was None)")
        return gdf.set_crs("EPSG:4326")
    if gdf.crs.to_epsg() != 4326:
        logger.info(f"  🔄 Reprojecting from {gdf.crs} to WGS84")
        return gdf.to_crs("EPSG:4326")
    return gdf


def load_feature_collection(path: Union[str, Path]) -> gpd.GeoDataFrame:
    """
    Load regional features from a GeoJSON file or a JSON dump of API rows.

    Args:
        path: File to read

    Returns:
        GeoDataFrame in WGS84
    """
    path = Path(path)
    logger.info(f"📂 Loading features from {path}")

    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    with open(path) as f:
        raw = json.load(f)

    if isinstance(raw, list):
        logger.debug("  🔧 Input is a list of API rows, formatting as GeoJSON")
        collection = format_geojson_from_response(raw)
        if not collection or not collection["features"]:
            raise ValueError(f"No features with geometry in {path}")
        gdf = gpd.GeoDataFrame.from_features(collection["features"], crs="EPSG:4326")
    else:
        gdf = gpd.read_file(path)

    gdf = ensure_wgs84(gdf)
    logger.success(f"  ✅ Loaded {len(gdf):,} features")
    return gdf
