"""
Processing package for the density maps

This package contains the data preparation utilities shared by the
density layers.
"""

__version__ = "0.1.0"

# Import key utilities for easy access
from .data_utils import (
    clean_numeric,
    extract_observations,
    format_geojson_from_response,
    load_feature_collection,
    positive_sample,
    select_detail_level,
)

__all__ = [
    "clean_numeric",
    "extract_observations",
    "positive_sample",
    "format_geojson_from_response",
    "select_detail_level",
    "load_feature_collection",
]
