"""
Jenks Natural Breaks (Fisher-Jenks optimal partitioning)

Partitions a skewed sample of regional observations (farmer counts, crop
area) into a small number of classes so that the total within-class sum of
squared deviations is minimal.

The sample sizes seen here are bounded by the number of administrative
regions (tens to low hundreds), so the exact O(n^2 * k) dynamic program is
used rather than an approximation.

Usage:
    from analysis.natural_breaks import compute_breaks

    breaks = compute_breaks([1, 2, 3, 4, 5, 6, 100], 5)
    # -> six ascending values from 1 to 100, with 100 alone in the top class
"""

import math
from numbers import Real
from typing import Any, Iterable, List, Sequence, Tuple

import numpy as np


def finite_values(sample: Iterable[Any]) -> List[Any]:
    """Keep only finite real numbers, in their original order and type."""
    values = []
    for value in sample:
        if isinstance(value, bool) or not isinstance(value, Real):
            continue
        if math.isfinite(value):
            values.append(value)
    return values


def _segment_cost(
    prefix_sum: np.ndarray, prefix_sq: np.ndarray, start: Any, end: int
) -> Any:
    """Sum of squared deviations of sorted elements (start, end] from their mean."""
    count = end - start
    seg_sum = prefix_sum[end] - prefix_sum[start]
    seg_sq = prefix_sq[end] - prefix_sq[start]
    return seg_sq - seg_sum * seg_sum / count


def _build_matrices(data: np.ndarray, num_classes: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Fill the variance and lower-class-limit matrices.

    ``variance[i, j]`` is the minimal cost of splitting the first ``i`` sorted
    elements into ``j`` classes and ``lower_limits[i, j]`` the number of
    elements that precede the last of those classes.
    """
    n_data = data.shape[0]
    prefix_sum = np.concatenate(([0.0], np.cumsum(data)))
    prefix_sq = np.concatenate(([0.0], np.cumsum(data * data)))

    variance = np.full((n_data + 1, num_classes + 1), np.inf)
    lower_limits = np.zeros((n_data + 1, num_classes + 1), dtype=np.int64)
    variance[0, 0] = 0.0

    for i in range(1, n_data + 1):
        variance[i, 1] = _segment_cost(prefix_sum, prefix_sq, 0, i)

    for j in range(2, num_classes + 1):
        for i in range(j, n_data + 1):
            splits = np.arange(j - 1, i)
            costs = variance[splits, j - 1] + _segment_cost(prefix_sum, prefix_sq, splits, i)
            # argmin keeps the first (lowest) split on ties
            best = int(np.argmin(costs))
            variance[i, j] = costs[best]
            lower_limits[i, j] = splits[best]

    return variance, lower_limits


def compute_breaks(sample: Iterable[Any], k: int) -> List[Any]:
    """
    Compute Jenks natural breaks for a sample.

    Non-numeric and non-finite entries are dropped before classification.
    Callers are expected to have removed zero and negative values already.

    Args:
        sample: Observations to classify. Not modified.
        k: Number of classes.

    Returns:
        Ascending boundaries ``[min, cut_1, ..., cut_{k-1}, max]`` (``k + 1``
        values). When there are no valid observations the result is empty,
        and when there are ``k`` or fewer it is the sorted sample itself.
    """
    if k < 1:
        raise ValueError(f"Number of classes must be positive, got {k}")

    values = sorted(finite_values(sample))
    if not values:
        return []
    if len(values) <= k:
        return values

    data = np.asarray(values, dtype=np.float64)
    _, lower_limits = _build_matrices(data, k)

    # Walk back from the full sample, one boundary per class transition
    breaks = [values[-1]]
    end = len(values)
    for j in range(k, 1, -1):
        end = int(lower_limits[end, j])
        breaks.append(values[end - 1])
    breaks.append(values[0])
    breaks.reverse()

    return breaks


def goodness_of_variance_fit(sample: Iterable[Any], breaks: Sequence[float]) -> float:
    """
    Goodness of variance fit (GVF) of the partition described by ``breaks``.

    Ranges from 0 (no better than a single class) to 1 (perfect fit).
    Samples without spread score 1.0.
    """
    values = finite_values(sample)
    if not values or len(breaks) < 2:
        return 1.0

    data = np.asarray(values, dtype=np.float64)
    sdam = float(np.sum((data - data.mean()) ** 2))
    if sdam == 0:
        return 1.0

    # Boundaries are class upper limits; the first class also takes values below min
    inner = np.asarray(breaks[1:-1], dtype=np.float64)
    labels = np.searchsorted(inner, data, side="left")
    counts = np.bincount(labels)
    sums = np.bincount(labels, weights=data)
    squares = np.bincount(labels, weights=data * data)

    occupied = counts > 0
    sdcm = float(np.sum(squares[occupied] - sums[occupied] ** 2 / counts[occupied]))
    return max(0.0, 1.0 - sdcm / sdam)
