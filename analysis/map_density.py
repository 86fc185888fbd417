#!/usr/bin/env python3
"""
Density Layer Classification with Styled GeoJSON Export

Classifies a layer of regional features (states or LGAs) for one density
metric and writes a GeoJSON whose features carry their choropleth style, with
the legend and break sequence stored alongside as metadata.

The rendering layer can then draw the file directly: each feature's
``fillColor``/``color``/``dashArray``/``fillOpacity`` are ready to use and
``metadata.legend`` lists the legend rows in display order.
"""

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional

import geopandas as gpd
from loguru import logger

from analysis.classification import Classification, MetricProfile, classify_values
from analysis.styles import build_legend, legend_to_dict, make_feature_style
from ops import Config
from processing.data_utils import clean_numeric

STYLE_FIELDS = ["fillColor", "weight", "opacity", "color", "dashArray", "fillOpacity"]


def classify_layer(
    gdf: gpd.GeoDataFrame,
    profile: MetricProfile,
    config: Config,
    num_classes: Optional[int] = None,
) -> Classification:
    """
    Classify a layer's features for one metric.

    The metric column is read through clean_numeric; the frame itself is left
    untouched.

    Args:
        gdf: Regional features
        profile: Metric to classify
        config: Configuration instance
        num_classes: Override for the configured class count

    Returns:
        Classification of the layer
    """
    logger.info(f"📊 Classifying {len(gdf):,} features by {profile.property_key}")

    if profile.property_key in gdf.columns:
        values = clean_numeric(gdf[profile.property_key]).tolist()
    else:
        logger.warning(f"  ⚠️ Column '{profile.property_key}' not found, treating layer as empty")
        values = []

    classification = classify_values(
        values,
        profile,
        num_classes=num_classes or config.get_num_classes(),
        label_precision=config.get_label_precision(),
    )

    if classification.used_fallback:
        logger.warning(f"  ⚠️ No positive {profile.property_key} values, using default breaks")
    else:
        logger.success(
            f"  ✅ {classification.sample_size:,} observations in {len(classification.labels)} classes"
        )
    logger.debug(f"     Breaks: {list(classification.breaks)}")

    return classification


def apply_styles(
    gdf: gpd.GeoDataFrame, classification: Classification, config: Config
) -> gpd.GeoDataFrame:
    """Return a copy of the layer with every feature's choropleth style as properties."""
    styled = gdf.copy()
    key = classification.profile.property_key
    if key in styled.columns:
        styled[key] = clean_numeric(styled[key])

    style = make_feature_style(classification, config.get_zero_style())
    styles = [style(feature) for feature in styled.__geo_interface__["features"]]

    for field in STYLE_FIELDS:
        styled[field] = [s[field] for s in styles]

    hollow = sum(1 for s in styles if s["dashArray"])
    logger.debug(f"  🎨 Styled {len(styles):,} features ({hollow:,} hollow zero-value regions)")
    return styled


def build_metadata(classification: Classification, config: Config) -> Dict[str, Any]:
    legend = build_legend(classification, zero_label=config.get("classification.zero_label"))
    return {
        "title": f"{config.get('project_name')} - {classification.profile.title}",
        "metric": classification.profile.name,
        "property": classification.profile.property_key,
        "created": time.strftime("%Y-%m-%d"),
        "crs": config.get("system.output_crs"),
        "breaks": [float(b) for b in classification.breaks],
        "labels": list(classification.labels),
        "legend": legend_to_dict(legend),
        "sample_size": classification.sample_size,
        "used_fallback_breaks": classification.used_fallback,
        "goodness_of_variance_fit": (
            round(classification.gvf, 4) if classification.gvf is not None else None
        ),
    }


def export_styled_geojson(
    gdf: gpd.GeoDataFrame,
    classification: Classification,
    output_path: Path,
    config: Config,
) -> bool:
    """
    Export a classified layer as styled GeoJSON with legend metadata.

    Args:
        gdf: Features of the layer
        classification: Classification of the layer
        output_path: Output file path
        config: Configuration instance

    Returns:
        Success status
    """
    logger.info(f"💾 Exporting styled GeoJSON: {output_path}")

    try:
        styled = apply_styles(gdf, classification, config)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        styled.to_file(output_path, driver="GeoJSON")

        with open(output_path, "r") as f:
            geojson_data = json.load(f)

        geojson_data["metadata"] = build_metadata(classification, config)

        # Save with compact formatting
        with open(output_path, "w") as f:
            json.dump(geojson_data, f, separators=(",", ":"))

        file_size = output_path.stat().st_size / 1024
        logger.success(f"  ✅ Exported {len(styled):,} features ({file_size:.1f} KB)")
        return True

    except Exception as e:
        logger.critical(f"❌ GeoJSON export failed: {e}")
        logger.trace("Detailed export error:")
        import traceback

        logger.trace(traceback.format_exc())
        return False
