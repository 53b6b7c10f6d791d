"""Unit tests for benchmark percentile interpolation."""

import math

import pytest

from wrvucomp.sdk.benchmarks import (
    find_benchmark,
    fte_adjust,
    nearest_benchmark,
    percentile_of,
)
from wrvucomp.sdk.errors import InvalidInput
from wrvucomp.sdk.schemas import BenchmarkSet, MarketBenchmark


WRVU = BenchmarkSet(p25=4000, p50=4500, p75=5000, p90=5500)


class TestPercentileOf:
    """Interpolation, extrapolation and edge cases."""

    def test_interpolates_between_p25_and_p50(self):
        """4250 sits halfway between 4000 and 4500 -> 37.5."""
        assert percentile_of(4250, WRVU) == 37.5

    @pytest.mark.parametrize("benchmarks", [
        WRVU,
        BenchmarkSet(p25=180000, p50=240000, p75=310000, p90=400000),
        BenchmarkSet(p25=38.5, p50=47.9, p75=55.0, p90=61.25),
    ])
    def test_p50_value_is_50th_percentile(self, benchmarks):
        assert percentile_of(benchmarks.p50, benchmarks) == 50

    @pytest.mark.parametrize("value,expected", [
        (4000, 25),
        (5000, 75),
        (5500, 90),
    ])
    def test_benchmark_points_map_to_their_percentile(self, value, expected):
        assert percentile_of(value, WRVU) == pytest.approx(expected)

    def test_below_p25_scales_from_zero(self):
        assert percentile_of(2000, WRVU) == pytest.approx(12.5)
        assert percentile_of(0, WRVU) == 0

    def test_above_p90_uses_p90_denominator(self):
        """(6050 - 5500) / 5500 * 10 = 1 point above 90."""
        assert percentile_of(6050, WRVU) == pytest.approx(91.0)

    def test_above_p90_is_capped_at_100(self):
        assert percentile_of(50000, WRVU) == 100

    def test_above_unpopulated_p90_returns_90(self):
        partial = BenchmarkSet(p25=10, p50=20, p75=30, p90=0)
        assert percentile_of(40, partial) == 90

    def test_value_between_points_stays_within_their_range(self):
        points = WRVU.points()
        for (lower_pct, lower), (upper_pct, upper) in zip(points, points[1:]):
            value = lower + (upper - lower) * 0.3
            result = percentile_of(value, WRVU)
            assert lower_pct < result < upper_pct

    def test_monotonically_non_decreasing(self):
        values = [v * 25.0 for v in range(0, 400)]
        results = [percentile_of(v, WRVU) for v in values]
        assert all(a <= b for a, b in zip(results, results[1:]))

    def test_flat_bracket_returns_lower_percentile(self):
        flat = BenchmarkSet(p25=4000, p50=4000, p75=5000, p90=5500)
        assert percentile_of(4000, flat) == 25

    def test_missing_benchmarks_return_zero(self):
        assert percentile_of(4500, None) == 0
        assert percentile_of(4500, BenchmarkSet()) == 0

    @pytest.mark.parametrize("bad", [-1, -0.01, math.nan, math.inf, -math.inf])
    def test_negative_or_non_finite_input_fails(self, bad):
        with pytest.raises(InvalidInput):
            percentile_of(bad, WRVU)

    def test_non_numeric_input_fails(self):
        with pytest.raises(InvalidInput):
            percentile_of("4500", WRVU)
        with pytest.raises(InvalidInput):
            percentile_of(True, WRVU)


class TestNearestBenchmark:

    @pytest.mark.parametrize("value,label", [
        (1000, "Below 25th"),
        (4250, "25th-50th"),
        (4750, "50th-75th"),
        (5200, "75th-90th"),
        (6000, "Above 90th"),
    ])
    def test_labels(self, value, label):
        assert nearest_benchmark(value, WRVU) == label

    def test_missing_benchmarks(self):
        assert nearest_benchmark(4500, None) == "N/A"


class TestFindBenchmark:

    def test_matches_ignoring_case_and_whitespace(self):
        rows = [
            MarketBenchmark(specialty="Cardiology"),
            MarketBenchmark(specialty="Family  Medicine"),
        ]
        assert find_benchmark(rows, " family medicine ").specialty == "Family  Medicine"

    def test_unmatched_returns_none(self):
        assert find_benchmark([MarketBenchmark(specialty="Cardiology")], "Dermatology") is None


class TestFteAdjust:

    def test_part_time_is_grossed_up(self):
        assert fte_adjust(2500, 0.5) == 5000

    @pytest.mark.parametrize("fte", [1.0, 1.2, 0, None])
    def test_full_time_or_unset_is_unchanged(self, fte):
        assert fte_adjust(2500, fte) == 2500
