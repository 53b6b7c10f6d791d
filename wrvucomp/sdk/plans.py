"""Compensation plan rules (incentive and holdback).

SDK layer - pure logic. Plans are a closed set dispatched by PlanType:

- base_pay: salary only, no incentive, no holdback
- standard: (actual - target) * conversion factor when above target
- tiered_rate: same variance rule, but the conversion factor is picked
  from the market CF curve by the provider's own wRVU percentile for
  the period (>=90 p90, >=75 p75, >=50 p50, >=25 p25, else p50)

Holdback is a positive amount withheld from the incentive, never more
than the incentive itself.

Usage:
    from wrvucomp.sdk.plans import PlanContext, compute, parse_plan_type

    ctx = PlanContext(conversion_factor=45.0)
    result = compute(parse_plan_type("Standard"), 450, 416, ctx, 20)
    result.incentive       # 1530.0
    result.net_incentive   # 1224.0
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .benchmarks import fte_adjust, percentile_of
from .config import DEFAULT_HOLDBACK_PERCENT
from .errors import InvalidInput
from .schemas import BenchmarkSet

logger = logging.getLogger(__name__)


class PlanType(str, Enum):
    BASE_PAY = "base_pay"
    STANDARD = "standard"
    TIERED_RATE = "tiered_rate"


# Labels used by the admin system, normalized to lowercase/underscores
PLAN_ALIASES = {
    "base_pay": PlanType.BASE_PAY,
    "basepay": PlanType.BASE_PAY,
    "standard": PlanType.STANDARD,
    "tiered_rate": PlanType.TIERED_RATE,
    "tiered_cf": PlanType.TIERED_RATE,
    "tiered": PlanType.TIERED_RATE,
}


def parse_plan_type(tag) -> PlanType:
    """Parse a plan tag such as 'Base Pay', 'standard' or 'Tiered CF'.

    Raises:
        InvalidInput: If the tag is not a known plan
    """
    if isinstance(tag, PlanType):
        return tag
    key = "_".join(str(tag or "").strip().lower().replace("-", " ").split())
    try:
        return PLAN_ALIASES[key]
    except KeyError:
        raise InvalidInput(f"Unknown compensation model: {tag!r}")


@dataclass(frozen=True)
class PlanContext:
    """Market inputs a plan may need beyond actual and target."""

    conversion_factor: float
    wrvu_benchmarks: Optional[BenchmarkSet] = None
    cf_benchmarks: Optional[BenchmarkSet] = None
    clinical_fte: float = 1.0


@dataclass(frozen=True)
class CompensationResult:
    plan: PlanType
    incentive: float
    holdback: float
    holdback_percent: float
    conversion_factor: Optional[float]
    tier_percentile: Optional[float] = None

    @property
    def net_incentive(self) -> float:
        return self.incentive - self.holdback


def resolve_holdback_percent(
    provider_override: Optional[float] = None,
    organization_default: Optional[float] = None,
) -> float:
    """Resolve the holdback percent.

    Resolution order:
    1. Provider-specific override
    2. Organization-wide default setting
    3. Hard default (20%)

    Raises:
        InvalidInput: If the resolved percent is outside 0-100
    """
    for candidate in (provider_override, organization_default):
        if candidate is not None:
            percent = float(candidate)
            break
    else:
        percent = DEFAULT_HOLDBACK_PERCENT

    if not 0 <= percent <= 100:
        raise InvalidInput(f"Holdback percent must be between 0 and 100, got: {percent}")
    return percent


def holdback(incentive: float, holdback_percent: float) -> float:
    """Amount withheld from an incentive (0 <= holdback <= incentive)."""
    if incentive <= 0:
        return 0.0
    if not 0 <= holdback_percent <= 100:
        raise InvalidInput(f"Holdback percent must be between 0 and 100, got: {holdback_percent}")
    return min(incentive, incentive * (holdback_percent / 100))


def tier_conversion_factor(percentile: float, cf_benchmarks: Optional[BenchmarkSet], default: float) -> float:
    """Pick the market CF for a percentile tier.

    Falls back to `default` when the market CF curve is missing or the
    selected tier is unpopulated.
    """
    if cf_benchmarks is None or cf_benchmarks.is_empty:
        return default

    if percentile >= 90:
        rate = cf_benchmarks.p90
    elif percentile >= 75:
        rate = cf_benchmarks.p75
    elif percentile >= 50:
        rate = cf_benchmarks.p50
    elif percentile >= 25:
        rate = cf_benchmarks.p25
    else:
        rate = cf_benchmarks.p50
    return rate if rate > 0 else default


IncentiveRule = Callable[[float, float, PlanContext], Tuple[float, Optional[float], Optional[float]]]


def _base_pay_incentive(actual: float, target: float, ctx: PlanContext):
    return 0.0, None, None


def _standard_incentive(actual: float, target: float, ctx: PlanContext):
    variance = actual - target
    if variance <= 0:
        return 0.0, ctx.conversion_factor, None
    return variance * ctx.conversion_factor, ctx.conversion_factor, None


def _tiered_rate_incentive(actual: float, target: float, ctx: PlanContext):
    # Provider's own percentile for the period: one month annualized
    annualized = fte_adjust(max(actual, 0.0) * 12, ctx.clinical_fte)
    percentile = percentile_of(annualized, ctx.wrvu_benchmarks)
    rate = tier_conversion_factor(percentile, ctx.cf_benchmarks, ctx.conversion_factor)

    variance = actual - target
    if variance <= 0:
        return 0.0, rate, percentile
    return variance * rate, rate, percentile


INCENTIVE_RULES: Dict[PlanType, IncentiveRule] = {
    PlanType.BASE_PAY: _base_pay_incentive,
    PlanType.STANDARD: _standard_incentive,
    PlanType.TIERED_RATE: _tiered_rate_incentive,
}


def incentive(plan: PlanType, actual: float, target: float, ctx: PlanContext) -> float:
    """Incentive earned for the period under a plan."""
    amount, _, _ = INCENTIVE_RULES[parse_plan_type(plan)](actual, target, ctx)
    return amount


def compute(
    plan: PlanType,
    actual: float,
    target: float,
    ctx: PlanContext,
    holdback_percent: float = DEFAULT_HOLDBACK_PERCENT,
) -> CompensationResult:
    """Compute incentive and holdback for one period.

    Args:
        plan: Plan type (or alias tag)
        actual: Period wRVUs (including productivity adjustments)
        target: Period target (including target adjustments)
        ctx: Market context (conversion factor and benchmark curves)
        holdback_percent: Resolved holdback percent (0-100)

    Returns:
        CompensationResult; base_pay always yields zero holdback
    """
    plan = parse_plan_type(plan)
    amount, rate, tier_percentile = INCENTIVE_RULES[plan](actual, target, ctx)

    if plan == PlanType.BASE_PAY:
        withheld = 0.0
    else:
        withheld = holdback(amount, holdback_percent)

    if tier_percentile is not None:
        logger.debug(f"tiered rate: percentile {tier_percentile:.1f} -> CF {rate}")

    return CompensationResult(
        plan=plan,
        incentive=amount,
        holdback=withheld,
        holdback_percent=holdback_percent,
        conversion_factor=rate,
        tier_percentile=tier_percentile,
    )
