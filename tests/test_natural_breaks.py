"""
Tests for the Jenks natural breaks computation.
"""

import math

import numpy as np
import pytest

from analysis.natural_breaks import compute_breaks, finite_values, goodness_of_variance_fit


def brute_force_ssd(values, num_classes):
    """Minimal within-class SSD over all contiguous partitions (small inputs only)."""
    from itertools import combinations

    values = sorted(values)
    n = len(values)
    best = math.inf
    for cuts in combinations(range(1, n), num_classes - 1):
        bounds = (0,) + cuts + (n,)
        total = 0.0
        for start, end in zip(bounds, bounds[1:]):
            segment = values[start:end]
            mean = sum(segment) / len(segment)
            total += sum((v - mean) ** 2 for v in segment)
        best = min(best, total)
    return best


def partition_ssd(values, breaks):
    """SSD of the partition where each break is the upper limit of a class."""
    values = sorted(values)
    classes = [[] for _ in range(len(breaks) - 1)]
    for v in values:
        for i in range(len(breaks) - 1):
            if v <= breaks[i + 1] or i == len(breaks) - 2:
                classes[i].append(v)
                break
    total = 0.0
    for segment in classes:
        if segment:
            mean = sum(segment) / len(segment)
            total += sum((v - mean) ** 2 for v in segment)
    return total


class TestDegenerateInput:
    def test_empty_sample(self):
        assert compute_breaks([], 5) == []

    def test_all_non_finite(self):
        assert compute_breaks([float("nan"), float("inf"), None, "12"], 5) == []

    def test_identical_values_not_more_than_k(self):
        assert compute_breaks([5, 5, 5, 5, 5], 5) == [5, 5, 5, 5, 5]

    def test_small_sample_is_sorted(self):
        assert compute_breaks([9, 2, 7], 5) == [2, 7, 9]

    def test_filtering_happens_before_size_check(self):
        # Seven entries but only three usable ones
        sample = [3, float("nan"), 1, None, "x", float("-inf"), 2]
        assert compute_breaks(sample, 5) == [1, 2, 3]

    def test_invalid_class_count(self):
        with pytest.raises(ValueError):
            compute_breaks([1, 2, 3], 0)


class TestBreaks:
    def test_outlier_gets_its_own_class(self):
        breaks = compute_breaks([1, 2, 3, 4, 5, 6, 100], 5)

        assert len(breaks) == 6
        assert breaks[0] == 1
        assert breaks[-1] == 100
        assert breaks == sorted(breaks)
        # 100 alone in the top class: the previous boundary is 6
        assert breaks[-2] == 6

    def test_clear_clusters(self):
        sample = [1, 2, 3, 20, 21, 22, 50, 51, 52]
        assert compute_breaks(sample, 3) == [1, 3, 22, 52]

    def test_unsorted_input_is_not_mutated(self):
        sample = [40, 1, 33, 2, 95, 12, 3, 14]
        original = list(sample)
        breaks = compute_breaks(sample, 5)

        assert sample == original
        assert breaks[0] == 1
        assert breaks[-1] == 95

    def test_deterministic(self):
        rng = np.random.default_rng(7)
        sample = rng.lognormal(mean=2.0, sigma=1.0, size=60).tolist()
        assert compute_breaks(sample, 5) == compute_breaks(sample, 5)

    def test_single_class(self):
        assert compute_breaks([4, 1, 9, 2, 7, 3], 1) == [1, 9]

    def test_duplicates_yield_non_decreasing_breaks(self):
        sample = [2, 2, 2, 2, 2, 2, 8, 8, 8]
        breaks = compute_breaks(sample, 5)

        assert len(breaks) == 6
        assert all(a <= b for a, b in zip(breaks, breaks[1:]))
        assert breaks[0] == 2
        assert breaks[-1] == 8

    def test_keeps_integer_values(self):
        breaks = compute_breaks([1, 2, 3, 4, 5, 6, 100], 5)
        assert all(isinstance(b, int) for b in breaks)

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_partition_is_optimal(self, seed):
        rng = np.random.default_rng(seed)
        sample = rng.choice(np.arange(1, 200), size=11, replace=False).tolist()

        breaks = compute_breaks(sample, 4)

        assert len(breaks) == 5
        assert partition_ssd(sample, breaks) == pytest.approx(brute_force_ssd(sample, 4))


class TestFiniteValues:
    def test_drops_bools_and_strings(self):
        assert finite_values([1, True, "2", 3.5, None, np.float64(4.0)]) == [1, 3.5, 4.0]


class TestGoodnessOfVarianceFit:
    def test_perfect_fit_for_separated_clusters(self):
        sample = [1, 1, 1, 50, 50, 50]
        assert goodness_of_variance_fit(sample, [1, 1, 50]) == pytest.approx(1.0)

    def test_single_class_scores_zero(self):
        sample = [1, 2, 3, 4]
        assert goodness_of_variance_fit(sample, [1, 4]) == pytest.approx(0.0)

    def test_constant_sample(self):
        assert goodness_of_variance_fit([3, 3, 3], [3, 3]) == 1.0

    def test_jenks_beats_naive_split(self):
        sample = [1, 2, 3, 4, 5, 6, 100]
        jenks = goodness_of_variance_fit(sample, compute_breaks(sample, 2))
        naive = goodness_of_variance_fit(sample, [1, 3, 100])
        assert jenks > naive
