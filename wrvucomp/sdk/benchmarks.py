"""Benchmark percentile interpolation.

SDK layer - pure logic, no I/O.

Maps a value (annualized wRVUs, total compensation) onto a 4-point
market curve (25th/50th/75th/90th):

- Below p25: scaled linearly from zero, (value / p25) * 25
- Between points: linear interpolation within the bracketing pair
- Above p90: extrapolated against a fixed p90 base, capped at 100

The above-p90 denominator is always p90 itself (not the p75-p90 range).
"""

import logging
import math
from typing import Iterable, Optional

from .errors import InvalidInput
from .schemas import BenchmarkSet, MarketBenchmark

logger = logging.getLogger(__name__)

MAX_PERCENTILE = 100.0


def _validate_value(value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"Percentile input must be a number, got: {value!r}")
    if not math.isfinite(value):
        raise InvalidInput(f"Percentile input must be finite, got: {value}")
    if value < 0:
        raise InvalidInput(f"Percentile input must be non-negative, got: {value}")
    return float(value)


def percentile_of(value: float, benchmarks: Optional[BenchmarkSet]) -> float:
    """Calculate the market percentile of a value.

    Args:
        value: Value to rank (already annualized and FTE-adjusted)
        benchmarks: Benchmark curve, or None if the specialty has no data

    Returns:
        Percentile between 0 and 100 (0 when benchmarks are missing)

    Raises:
        InvalidInput: If value is negative or not finite
    """
    value = _validate_value(value)

    if benchmarks is None or benchmarks.is_empty:
        return 0.0

    points = benchmarks.points()
    low_pct, low_value = points[0]
    high_pct, high_value = points[-1]

    if value < low_value:
        return (value / low_value) * low_pct if low_value > 0 else 0.0

    if value > high_value:
        if high_value <= 0:
            return float(high_pct)
        extra = ((value - high_value) / high_value) * 10
        return min(MAX_PERCENTILE, high_pct + extra)

    for (lower_pct, lower), (upper_pct, upper) in zip(points, points[1:]):
        if lower <= value <= upper:
            spread = upper - lower
            if spread <= 0:
                return float(lower_pct)
            return lower_pct + ((value - lower) / spread) * (upper_pct - lower_pct)

    # Only reachable when the curve is not ascending
    logger.warning(f"Benchmark curve is not ascending, cannot place {value}: {points}")
    return 0.0


def nearest_benchmark(value: float, benchmarks: Optional[BenchmarkSet]) -> str:
    """Label the benchmark bracket a value falls into (e.g., '50th-75th')."""
    value = _validate_value(value)

    if benchmarks is None or benchmarks.is_empty:
        return "N/A"

    points = benchmarks.points()
    if value < points[0][1]:
        return "Below 25th"
    if value > points[-1][1]:
        return "Above 90th"

    for (lower_pct, lower), (upper_pct, upper) in zip(points, points[1:]):
        if lower <= value <= upper:
            return f"{lower_pct}th-{upper_pct}th"
    return "N/A"


def normalize_specialty(specialty: str) -> str:
    """Casefold a specialty name and collapse its whitespace."""
    return " ".join((specialty or "").split()).casefold()


def find_benchmark(
    benchmarks: Iterable[MarketBenchmark],
    specialty: str,
) -> Optional[MarketBenchmark]:
    """Find the market row for a specialty.

    Matching ignores case and surrounding/repeated whitespace.

    Returns:
        The first matching MarketBenchmark, or None if unmatched
    """
    wanted = normalize_specialty(specialty)
    for row in benchmarks:
        if normalize_specialty(row.specialty) == wanted:
            return row
    return None


def fte_adjust(value: float, fte: Optional[float]) -> float:
    """Gross a value up to 1.0 FTE when the provider is part-time."""
    if fte and 0 < fte < 1.0:
        return value / fte
    return value
