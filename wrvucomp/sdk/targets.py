"""wRVU target calculation.

SDK layer - pure logic over provider records and market data.

Monthly target:
    (annual_salary / conversion_factor / 12) * clinical_fte

Adjusted target for month m adds that month's target adjustments.
Cumulative target through month m is the sum of base targets for
months 1..m plus year-to-date target adjustments.

Mid-year compensation changes prorate the month they land in by days:
a change effective on the 1st applies to the whole month, otherwise
the old salary covers the days before the effective date.
"""

import calendar
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .adjustments import Period, sum_for_period, validate_month
from .errors import InvalidInput
from .schemas import Adjustment, MarketBenchmark, Provider

logger = logging.getLogger(__name__)


def monthly_target(base_salary: float, conversion_factor: float, clinical_fte: float) -> float:
    """Calculate the monthly wRVU target.

    Raises:
        InvalidInput: If any input is not strictly positive
    """
    for label, value in (
        ("base_salary", base_salary),
        ("conversion_factor", conversion_factor),
        ("clinical_fte", clinical_fte),
    ):
        if value is None or not value > 0:
            raise InvalidInput(f"{label} must be positive, got: {value}")

    return (base_salary / conversion_factor / 12) * clinical_fte


def resolve_conversion_factor(
    market: Optional[MarketBenchmark],
    fallback_rate: float,
) -> Dict[str, Any]:
    """Resolve the conversion factor used for targets and incentives.

    Resolution order:
    1. Market p50 conversion factor for the specialty
    2. Configured fallback rate

    Returns:
        Dict with:
            - rate: Conversion factor ($/wRVU)
            - source: Source metadata for provenance tracking
    """
    if market is not None and market.conversion_factor.p50 > 0:
        return {
            "rate": market.conversion_factor.p50,
            "source": {"type": "market", "specialty": market.specialty},
        }

    note = (
        f"No p50 conversion factor for '{market.specialty}'"
        if market is not None else "No market data for specialty"
    )
    return {
        "rate": fallback_rate,
        "source": {"type": "fallback", "note": note},
    }


@dataclass
class MonthSchedule:
    """Salary and clinical FTE in effect for one month."""

    month: int
    salary: float  # amount paid for the month (already /12 and prorated)
    clinical_fte: float


def _year_changes(provider: Provider, year: int) -> list:
    changes = [c for c in provider.compensation_changes if c.effective_date.year == year]
    return sorted(changes, key=lambda c: c.effective_date)


def monthly_schedule(provider: Provider, year: int) -> List[MonthSchedule]:
    """Build the 12-month salary/FTE schedule for a provider-year.

    Only changes effective within `year` are applied. The starting salary
    is the first change's previous salary.
    An FTE change takes effect with the month it lands in when effective
    on the 1st, otherwise with the following month.
    """
    changes = _year_changes(provider, year)

    annual = provider.base_salary
    fte = provider.effective_clinical_fte
    if changes:
        annual = changes[0].previous_salary
        if changes[0].previous_fte is not None:
            fte = changes[0].previous_fte

    schedule = []
    for month in range(1, 13):
        days_in_month = calendar.monthrange(year, month)[1]
        month_changes = [c for c in changes if c.effective_date.month == month]

        if not month_changes:
            schedule.append(MonthSchedule(month=month, salary=annual / 12, clinical_fte=fte))
            continue

        amount = 0.0
        segment_start = 1
        pending_fte = None
        month_fte = fte
        for change in month_changes:
            day = change.effective_date.day
            amount += (annual / 12) * ((day - segment_start) / days_in_month)
            annual = change.new_salary
            segment_start = day
            if change.new_fte is not None:
                if day == 1:
                    month_fte = change.new_fte
                else:
                    pending_fte = change.new_fte
        amount += (annual / 12) * ((days_in_month - segment_start + 1) / days_in_month)

        logger.debug(
            f"{provider.id} {year}-{month:02d}: prorated salary {amount:.2f} "
            f"across {len(month_changes)} change(s)"
        )
        schedule.append(MonthSchedule(month=month, salary=amount, clinical_fte=month_fte))
        fte = pending_fte if pending_fte is not None else month_fte

    return schedule


@dataclass
class TargetSchedule:
    """Per-month targets for one provider-year."""

    provider_id: str
    year: int
    conversion_factor: float
    conversion_factor_source: Dict[str, Any]
    months: List[MonthSchedule]
    base_targets: List[float]
    target_adjustments: List[Adjustment] = field(default_factory=list)

    def base_target(self, month: int) -> float:
        return self.base_targets[validate_month(month) - 1]

    def salary(self, month: int) -> float:
        return self.months[validate_month(month) - 1].salary

    def clinical_fte(self, month: int) -> float:
        return self.months[validate_month(month) - 1].clinical_fte

    def adjustment(self, month: int, period: Period = Period.EXACT) -> float:
        return sum_for_period(
            self.target_adjustments, self.year, month, period,
            kind="target", provider_id=self.provider_id,
        )

    def monthly_target_adjusted(self, month: int) -> float:
        """Base target for the month plus that month's target adjustments."""
        return self.base_target(month) + self.adjustment(month)

    def cumulative_target(self, month: int) -> float:
        """Base targets for months 1..month plus YTD target adjustments."""
        validate_month(month)
        total = 0.0
        for value in self.base_targets[:month]:
            total += value
        return total + self.adjustment(month, Period.YTD)

    @property
    def annual_target(self) -> float:
        return self.cumulative_target(12)


def build_target_schedule(
    provider: Provider,
    year: int,
    market: Optional[MarketBenchmark],
    adjustments: List[Adjustment],
    fallback_rate: float,
) -> TargetSchedule:
    """Build the target schedule for a provider-year.

    Args:
        provider: Provider record
        year: Calendar year
        market: Market row for the provider's specialty (None if unmatched)
        adjustments: Adjustments (only this provider's 'target' kind is used)
        fallback_rate: Conversion factor when the market row has none

    Raises:
        InvalidInput: If base salary, conversion factor or clinical FTE
            is not strictly positive, including in any month after
            a compensation change
    """
    cf = resolve_conversion_factor(market, fallback_rate)
    # Guard on the provider's base values before any proration
    monthly_target(provider.base_salary, cf["rate"], provider.effective_clinical_fte)

    months = monthly_schedule(provider, year)
    for m in months:
        if not m.salary > 0 or not m.clinical_fte > 0:
            raise InvalidInput(
                f"Month {m.month}: salary and clinical_fte must be positive after "
                f"compensation changes, got: salary={m.salary}, clinical_fte={m.clinical_fte}"
            )
    base_targets = [(m.salary / cf["rate"]) * m.clinical_fte for m in months]

    target_adjustments = [
        a for a in adjustments
        if a.kind == "target" and a.provider_id == provider.id and a.year == year
    ]

    return TargetSchedule(
        provider_id=provider.id,
        year=year,
        conversion_factor=cf["rate"],
        conversion_factor_source=cf["source"],
        months=months,
        base_targets=base_targets,
        target_adjustments=target_adjustments,
    )
