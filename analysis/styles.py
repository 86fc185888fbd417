"""
Feature styles and legends for density choropleths.

Everything here is plain data derived from a Classification; binding styles
and legends to an actual map widget is left to the rendering layer.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from analysis.classification import Classification, MetricProfile, class_colors, is_no_data

BASE_STYLE: Dict[str, Any] = {"weight": 1, "opacity": 1}

FILLED_STYLE: Dict[str, Any] = {"color": "white", "dashArray": "", "fillOpacity": 0.7}

# Zero-value regions are drawn hollow with a dashed gray outline
ZERO_STYLE: Dict[str, Any] = {"color": "#CCCCCC", "dashArray": "3", "fillOpacity": 0.1}

HIGHLIGHT_STYLE: Dict[str, Any] = {
    "weight": 3,
    "color": "#666",
    "dashArray": "",
    "fillOpacity": 0.8,
}

ZERO_SWATCH: Dict[str, str] = {"fill": "white", "border": "1px dashed #CCCCCC"}


def make_feature_style(
    classification: Classification, zero_style: Optional[Dict[str, Any]] = None
) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    """
    Build a per-feature style function for a classified layer.

    Args:
        classification: Classification of the layer's data
        zero_style: Overrides for the hollow zero-value style

    Returns:
        Function mapping a GeoJSON feature to path style options
    """
    hollow = {**ZERO_STYLE, **(zero_style or {})}
    profile = classification.profile

    def style(feature: Dict[str, Any]) -> Dict[str, Any]:
        value = profile.value_of(feature)
        extra = hollow if is_no_data(value) else FILLED_STYLE
        return {
            "fillColor": classification.color_for(value),
            **BASE_STYLE,
            **extra,
        }

    return style


@dataclass(frozen=True)
class LegendRow:
    label: str
    color: str
    hollow: bool = False


@dataclass(frozen=True)
class Legend:
    title: str
    rows: Tuple[LegendRow, ...]


def build_legend(classification: Classification, zero_label: str = "0") -> Legend:
    """
    Legend rows for a classification: the hollow zero class first, then one
    row per label colored like the values it covers.
    """
    colors = class_colors(classification.profile.ramp)
    rows: List[LegendRow] = [LegendRow(label=zero_label, color=ZERO_SWATCH["fill"], hollow=True)]
    for i, label in enumerate(classification.labels):
        rows.append(LegendRow(label=label, color=colors[min(i, len(colors) - 1)]))
    return Legend(title=classification.profile.title, rows=tuple(rows))


def legend_to_dict(legend: Legend) -> Dict[str, Any]:
    return {
        "title": legend.title,
        "rows": [
            {"label": row.label, "color": row.color, "hollow": row.hollow} for row in legend.rows
        ],
    }


def feature_summary(feature: Dict[str, Any], profile: MetricProfile) -> Dict[str, Any]:
    """What a popup for this feature shows: the region name and its metric value."""
    properties = feature.get("properties") or {}
    value = profile.value_of(feature)
    return {
        "name": properties.get("name"),
        "title": profile.title,
        "value": 0 if is_no_data(value) else value,
        "unit": profile.unit,
    }
