"""Time-scoped adjustment aggregation.

SDK layer - pure logic, returns sums and new adjustment lists. No storage.

Three independent adjustment kinds are supported:
- productivity: added to the month's raw wRVUs
- target: added to the month's wRVU target
- additional_pay: added to the month's total compensation

Adjustments that share (kind, name, provider, year) form one 12-month
series. Updating a series replaces it wholesale: every prior slot for
that series is dropped and a full 12-slot series is recreated, so
changing a single month means resubmitting all twelve values.
"""

import logging
import math
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import InvalidInput
from .schemas import ADJUSTMENT_KINDS, Adjustment

logger = logging.getLogger(__name__)

MONTH_KEYS = ("jan", "feb", "mar", "apr", "may", "jun",
              "jul", "aug", "sep", "oct", "nov", "dec")


class Period(str, Enum):
    """Month filter for period sums."""

    EXACT = "exact"  # month == m
    YTD = "ytd"      # month <= m


def validate_month(month: int) -> int:
    """Ensure month is an integer in 1..12."""
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidInput(f"Month must be an integer 1-12, got: {month!r}")
    return month


def _in_period(adj_month: int, month: int, period: Period) -> bool:
    if period == Period.YTD:
        return adj_month <= month
    return adj_month == month


def sum_for_period(
    adjustments: Iterable[Adjustment],
    year: int,
    month: int,
    period: Period = Period.EXACT,
    kind: Optional[str] = None,
    provider_id: Optional[str] = None,
) -> float:
    """Sum adjustment values for a month or year-to-date window.

    Args:
        adjustments: Adjustments to aggregate
        year: Calendar year
        month: Month (1-12)
        period: Period.EXACT for the month only, Period.YTD for months 1..month
        kind: Optional kind filter ('productivity', 'target', 'additional_pay')
        provider_id: Optional provider filter

    Returns:
        Sum of matching values (0.0 if none match)
    """
    validate_month(month)
    if kind is not None and kind not in ADJUSTMENT_KINDS:
        raise InvalidInput(f"Unknown adjustment kind: {kind}. Must be one of {ADJUSTMENT_KINDS}")

    total = 0.0
    for adj in adjustments:
        if adj.year != year:
            continue
        if kind is not None and adj.kind != kind:
            continue
        if provider_id is not None and adj.provider_id != provider_id:
            continue
        if _in_period(adj.month, month, period):
            total += adj.value
    return total


def sum_by_kind(
    adjustments: Iterable[Adjustment],
    year: int,
    month: int,
    period: Period = Period.EXACT,
    provider_id: Optional[str] = None,
) -> Dict[str, float]:
    """Sum each adjustment kind independently for one window."""
    adjustments = list(adjustments)
    return {
        kind: sum_for_period(adjustments, year, month, period, kind=kind, provider_id=provider_id)
        for kind in ADJUSTMENT_KINDS
    }


def _coerce_value(value) -> float:
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"Adjustment value must be numeric, got: {value!r}")
    if not math.isfinite(number):
        raise InvalidInput(f"Adjustment value must be finite, got: {value!r}")
    return number


def _month_from_key(key) -> int:
    if isinstance(key, str):
        lowered = key.strip().lower()
        if lowered in MONTH_KEYS:
            return MONTH_KEYS.index(lowered) + 1
        if lowered.isdigit():
            key = int(lowered)
    if isinstance(key, int):
        return validate_month(key)
    raise InvalidInput(f"Invalid month key: {key!r}")


def normalize_monthly_values(
    monthly_values: Union[Sequence, Mapping],
) -> List[float]:
    """Normalize monthly values into a 12-slot list.

    Accepts either a 12-item sequence (January first) or a mapping keyed
    by month number (1-12, int or str) or abbreviation ('jan'..'dec').
    Months missing from a mapping are zero.
    """
    if isinstance(monthly_values, Mapping):
        slots = [0.0] * 12
        for key, value in monthly_values.items():
            slots[_month_from_key(key) - 1] = _coerce_value(value)
        return slots

    values = list(monthly_values)
    if len(values) != 12:
        raise InvalidInput(f"A series needs exactly 12 monthly values, got {len(values)}")
    return [_coerce_value(v) for v in values]


def replace_series(
    adjustments: Iterable[Adjustment],
    kind: str,
    provider_id: str,
    year: int,
    name: str,
    monthly_values: Union[Sequence, Mapping],
) -> List[Adjustment]:
    """Replace a named adjustment series with a full 12-month series.

    All existing entries for (kind, name, provider_id, year) are removed
    and twelve new entries are created. Other series are left untouched
    and keep their relative order; the new series is appended.

    Returns:
        New list of adjustments (the input is not modified)
    """
    if kind not in ADJUSTMENT_KINDS:
        raise InvalidInput(f"Unknown adjustment kind: {kind}. Must be one of {ADJUSTMENT_KINDS}")
    if not name:
        raise InvalidInput("Adjustment series name is required")

    slots = normalize_monthly_values(monthly_values)

    kept = []
    removed = 0
    for adj in adjustments:
        if (adj.kind, adj.name, adj.provider_id, adj.year) == (kind, name, provider_id, year):
            removed += 1
            continue
        kept.append(adj)

    logger.debug(
        f"replace_series: {kind}/{name} for {provider_id} {year}: "
        f"removed {removed} entries, creating 12"
    )

    kept.extend(
        Adjustment(
            kind=kind,
            provider_id=provider_id,
            year=year,
            month=month,
            name=name,
            value=value,
        )
        for month, value in enumerate(slots, start=1)
    )
    return kept


def series_names(
    adjustments: Iterable[Adjustment],
    kind: str,
    provider_id: str,
    year: int,
) -> List[str]:
    """Distinct series names for a provider-year, in first-seen order."""
    names = []
    for adj in adjustments:
        if (adj.kind, adj.provider_id, adj.year) == (kind, provider_id, year) and adj.name not in names:
            names.append(adj.name)
    return names
