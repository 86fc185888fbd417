"""
Choropleth Classification for Density Layers

Turns a layer's raw observations into a break sequence, a color function and
legend labels. One generic pipeline serves every density metric; the metric
specifics (which property to read, which ramp, which fallback breaks) live in
a MetricProfile.

Pipeline:
    observations -> positive sample -> compute_breaks -> [0] + breaks
    -> make_color_scale(breaks, ramp[1:]) / make_labels

Usage:
    from analysis.classification import FARMER_DENSITY, classify_features

    classification = classify_features(feature_collection["features"], FARMER_DENSITY)
    fill = classification.color_for(12)
    labels = classification.labels
"""

import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from loguru import logger

from analysis.natural_breaks import compute_breaks, goodness_of_variance_fit
from analysis.palettes import (
    COMMODITY_COLORS,
    COMMODITY_FALLBACK_BREAKS,
    DEFAULT_NUM_CLASSES,
    FARMER_COLORS,
    FARMER_FALLBACK_BREAKS,
    TRANSPARENT,
)
from processing.data_utils import extract_observations, positive_sample

ColorScale = Callable[[Any], str]


@dataclass(frozen=True)
class MetricProfile:
    """Everything that distinguishes one density metric from another."""

    name: str
    title: str
    property_key: str
    ramp: Tuple[str, ...]
    fallback_breaks: Tuple[float, ...]
    unit: str = ""
    accessor: Optional[Callable[[Dict[str, Any]], Any]] = field(default=None, compare=False)

    def value_of(self, feature: Dict[str, Any]) -> Any:
        """Read this metric from a GeoJSON feature."""
        return extract_observations([feature], self.accessor or self.property_key)[0]


FARMER_DENSITY = MetricProfile(
    name="farmer_density",
    title="Farmers Count",
    property_key="farmer_count",
    ramp=tuple(FARMER_COLORS),
    fallback_breaks=tuple(FARMER_FALLBACK_BREAKS),
)

COMMODITY_DENSITY = MetricProfile(
    name="commodity_density",
    title="Crop Area (acres)",
    property_key="crop_area",
    ramp=tuple(COMMODITY_COLORS),
    fallback_breaks=tuple(COMMODITY_FALLBACK_BREAKS),
    unit="acres",
)

BUILTIN_PROFILES: Dict[str, MetricProfile] = {
    FARMER_DENSITY.name: FARMER_DENSITY,
    COMMODITY_DENSITY.name: COMMODITY_DENSITY,
}


def is_no_data(value: Any) -> bool:
    """Zero, missing, NaN and non-numeric values all belong to the no-data class."""
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return True
    return value == 0 or math.isnan(value)


def make_color_scale(
    breaks: Sequence[float], ramp: Sequence[str], zero_color: str = TRANSPARENT
) -> ColorScale:
    """
    Build a color function from a break sequence and a color ramp.

    Intervals are ``[breaks[i], breaks[i + 1]]``, inclusive on both ends and
    scanned from the lowest upward, so a value sitting on a shared boundary
    takes the lower interval's color ``ramp[i]``.

    Args:
        breaks: Ascending, de-duplicated boundaries starting with 0.
        ramp: Ordered colors, lightest first.
        zero_color: Representation for zero and missing values.

    Returns:
        Function mapping a value to a color.
    """
    if not ramp:
        raise ValueError("Color ramp must contain at least one color")

    bounds = tuple(breaks)
    colors = tuple(ramp)
    last_index = len(colors) - 1

    def color_for(value: Any) -> str:
        if is_no_data(value):
            return zero_color

        for i in range(len(bounds) - 1):
            if bounds[i] <= value <= bounds[i + 1]:
                return colors[min(i, last_index)]

        if bounds and value < bounds[0]:
            return colors[0]
        return colors[last_index]

    return color_for


def format_break_value(value: float, precision: int = 2) -> str:
    """Render a boundary for display: integral values without a decimal part."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return str(value)
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    text = f"{float(value):.{precision}f}".rstrip("0").rstrip(".")
    return text or "0"


def make_labels(breaks: Sequence[float], precision: int = 2) -> List[str]:
    """
    Legend labels, one per pair of adjacent breaks.

    The first label collapses to a single value when its two bounds are equal
    and the last becomes open ended (``"lo+"``) when its bounds differ.
    """
    if len(breaks) < 2:
        return ["No data"]

    fmt = [format_break_value(b, precision) for b in breaks]

    labels = []
    if breaks[0] == breaks[1]:
        labels.append(fmt[0])
    else:
        labels.append(f"{fmt[0]} - {fmt[1]}")

    for i in range(1, len(breaks) - 1):
        labels.append(f"{fmt[i]} - {fmt[i + 1]}")

    if breaks[-2] != breaks[-1]:
        labels[-1] = f"{fmt[-2]}+"

    return labels


def with_zero_class(breaks: Iterable[float]) -> List[float]:
    """Prepend the no-data boundary, drop duplicates and sort."""
    return sorted(set([0, *breaks]))


def class_colors(ramp: Sequence[str]) -> Tuple[str, ...]:
    """Colors for the non-zero classes; ``ramp[0]`` belongs to the zero class."""
    return tuple(ramp[1:]) or tuple(ramp)


def required_ramp_length(num_classes: int) -> int:
    # zero slot, the [0, min] interval, then one color per class
    return num_classes + 2


@dataclass(frozen=True)
class Classification:
    """Result of classifying one layer's data for one metric."""

    profile: MetricProfile
    breaks: Tuple[float, ...]
    labels: Tuple[str, ...]
    color_scale: ColorScale = field(compare=False, repr=False)
    sample_size: int = 0
    used_fallback: bool = False
    gvf: Optional[float] = None

    def color_for(self, value: Any) -> str:
        return self.color_scale(value)


def classify_values(
    values: Iterable[Any],
    profile: MetricProfile,
    num_classes: int = DEFAULT_NUM_CLASSES,
    label_precision: int = 2,
) -> Classification:
    """
    Classify raw observations for a metric.

    Zero, negative and malformed values never reach the breaks computation;
    when nothing is left the profile's fallback breaks are used so a legend
    can always be drawn.

    Args:
        values: One observation per feature, in any order.
        profile: Metric being classified.
        num_classes: Number of non-zero classes.
        label_precision: Decimals kept for non-integral labels.

    Returns:
        Classification with breaks, labels and color function
    """
    sample = positive_sample(values)
    computed = compute_breaks(sample, num_classes) if sample else []

    used_fallback = not computed
    if used_fallback:
        logger.debug(f"  📉 No positive {profile.property_key} values, using fallback breaks")
        breaks = with_zero_class(profile.fallback_breaks)
        gvf = None
    else:
        breaks = with_zero_class(computed)
        gvf = goodness_of_variance_fit(sample, computed)
        logger.debug(
            f"  📊 {profile.name}: {len(sample)} observations -> breaks {breaks} (GVF {gvf:.3f})"
        )

    return Classification(
        profile=profile,
        breaks=tuple(breaks),
        labels=tuple(make_labels(breaks, label_precision)),
        color_scale=make_color_scale(breaks, class_colors(profile.ramp)),
        sample_size=len(sample),
        used_fallback=used_fallback,
        gvf=gvf,
    )


def classify_features(
    features: Optional[Iterable[Dict[str, Any]]],
    profile: MetricProfile,
    num_classes: int = DEFAULT_NUM_CLASSES,
    label_precision: int = 2,
) -> Classification:
    """Classify GeoJSON features by reading the profile's metric from each one."""
    accessor: Union[str, Callable[[Dict[str, Any]], Any]] = (
        profile.accessor or profile.property_key
    )
    values = extract_observations(features or [], accessor)
    return classify_values(values, profile, num_classes, label_precision)
