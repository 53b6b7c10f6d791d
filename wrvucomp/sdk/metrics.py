"""Provider-year metrics accumulation and batch runs.

SDK layer - pure logic over an in-memory CompensationSnapshot. No I/O
except MetricStore.save/load, which the caller invokes explicitly.

For each provider-year, months are processed strictly in order since
every month's cumulative values depend on the prior month:

    actual            = raw wRVUs + productivity adjustments
    target            = base target + target adjustments
    annualized_actual = cumulative_actual / month * 12 (FTE-adjusted)
    total_comp        = salary + incentive - holdback + additional pay
    annualized_comp   = cumulative_comp / month * 12 (FTE-adjusted)
    plan_progress     = cumulative_actual / cumulative_target * 100

Compensation percentiles are based on year-to-date compensation, not
the latest month times twelve.

Failures are isolated: a bad provider is skipped and reported, a bad
month is skipped and reported, and the rest of the batch continues.
Providers are independent and may run in a thread pool; output order
always follows snapshot order.
"""

import json
import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .adjustments import Period, sum_for_period, validate_month
from .benchmarks import find_benchmark, fte_adjust, nearest_benchmark, percentile_of
from .config import EngineSettings
from .errors import ComputationSkipped, EngineError, InvalidInput, MissingBenchmark
from .plans import PlanContext, compute, parse_plan_type, resolve_holdback_percent
from .schemas import (
    Adjustment,
    BatchReport,
    CompensationSnapshot,
    MarketBenchmark,
    MonthlyActual,
    Provider,
    ProviderMetric,
    SkippedComputation,
)
from .targets import build_target_schedule

logger = logging.getLogger(__name__)


@dataclass
class ProviderYearResult:
    """Metrics and diagnostics for one provider-year."""

    provider_id: str
    metrics: List[ProviderMetric] = field(default_factory=list)
    skipped: List[SkippedComputation] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _skip_record(skip: ComputationSkipped) -> SkippedComputation:
    error = type(skip.cause).__name__ if skip.cause is not None else type(skip).__name__
    return SkippedComputation(
        provider_id=skip.provider_id,
        month=skip.month,
        error=error,
        reason=skip.reason,
    )


def _raw_actuals_by_month(actuals: Iterable[MonthlyActual], provider_id: str, year: int) -> Dict[int, float]:
    by_month: Dict[int, float] = defaultdict(float)
    for entry in actuals:
        if entry.provider_id == provider_id and entry.year == year:
            by_month[entry.month] += entry.value
    return by_month


def _month_over_month(actual: float, previous: Optional[float]) -> float:
    if previous is None or previous <= 0:
        return 0.0
    return (actual - previous) / previous * 100


def compute_provider_year(
    provider: Provider,
    year: int,
    benchmarks: List[MarketBenchmark],
    actuals: List[MonthlyActual],
    adjustments: List[Adjustment],
    settings: Optional[EngineSettings] = None,
    through_month: int = 12,
) -> ProviderYearResult:
    """Compute monthly metrics for one provider-year.

    Args:
        provider: Provider record
        year: Calendar year (explicit, never inferred from the clock)
        benchmarks: All market rows (matched by specialty)
        actuals: Monthly actuals (filtered to this provider-year)
        adjustments: Adjustments of all kinds (filtered to this provider-year)
        settings: Organization settings (defaults if None)
        through_month: Last month to emit (1-12)

    Returns:
        ProviderYearResult with one metric per computed month

    Raises:
        ComputationSkipped: If the provider cannot be computed at all
            (bad plan tag, non-positive salary/rate/FTE, bad holdback)
    """
    validate_month(through_month)
    settings = settings or EngineSettings()
    result = ProviderYearResult(provider_id=provider.id)

    market = find_benchmark(benchmarks, provider.specialty)
    if market is None:
        missing = MissingBenchmark(provider.specialty)
        logger.warning(f"{provider.id}: {missing}")
        result.warnings.append(f"{provider.id}: {missing}")

    try:
        plan = parse_plan_type(provider.compensation_model)
        holdback_percent = resolve_holdback_percent(
            provider.holdback_percent, settings.default_holdback_percent
        )
        schedule = build_target_schedule(
            provider, year, market, adjustments, settings.fallback_conversion_factor
        )
    except InvalidInput as e:
        raise ComputationSkipped(provider.id, str(e), cause=e)

    if schedule.conversion_factor_source["type"] == "fallback":
        message = (
            f"{provider.id}: using fallback conversion factor "
            f"{schedule.conversion_factor} ({schedule.conversion_factor_source['note']})"
        )
        logger.warning(message)
        result.warnings.append(message)

    wrvu_benchmarks = market.wrvu if market else None
    comp_benchmarks = market.total_comp if market else None
    cf_benchmarks = market.conversion_factor if market else None

    provider_adjustments = [
        a for a in adjustments if a.provider_id == provider.id and a.year == year
    ]
    raw_by_month = _raw_actuals_by_month(actuals, provider.id, year)

    cumulative_actual = 0.0
    cumulative_target = 0.0
    cumulative_comp = 0.0
    previous_actual = None

    for month in range(1, through_month + 1):
        raw = raw_by_month.get(month, 0.0)
        actual = raw + sum_for_period(provider_adjustments, year, month, Period.EXACT, kind="productivity")
        cumulative_actual += actual

        target = schedule.monthly_target_adjusted(month)
        cumulative_target += target

        salary = schedule.salary(month)
        clinical_fte = schedule.clinical_fte(month)
        additional_pay = sum_for_period(provider_adjustments, year, month, Period.EXACT, kind="additional_pay")

        annualized_actual = fte_adjust(cumulative_actual / month * 12, clinical_fte)
        ctx = PlanContext(
            conversion_factor=schedule.conversion_factor,
            wrvu_benchmarks=wrvu_benchmarks,
            cf_benchmarks=cf_benchmarks,
            clinical_fte=clinical_fte,
        )

        try:
            wrvu_percentile = percentile_of(annualized_actual, wrvu_benchmarks)
            label = nearest_benchmark(annualized_actual, wrvu_benchmarks)
            comp = compute(plan, actual, target, ctx, holdback_percent)
        except InvalidInput as e:
            # Salary and additional pay are still paid for a skipped month
            cumulative_comp += salary + additional_pay
            previous_actual = actual
            skip = ComputationSkipped(provider.id, str(e), month=month, cause=e)
            logger.warning(str(skip))
            result.skipped.append(_skip_record(skip))
            continue

        total_comp = salary + comp.incentive - comp.holdback + additional_pay
        cumulative_comp += total_comp
        annualized_comp = fte_adjust(cumulative_comp / month * 12, clinical_fte)

        try:
            comp_percentile = percentile_of(annualized_comp, comp_benchmarks)
        except InvalidInput as e:
            previous_actual = actual
            skip = ComputationSkipped(provider.id, str(e), month=month, cause=e)
            logger.warning(str(skip))
            result.skipped.append(_skip_record(skip))
            continue

        plan_progress = (cumulative_actual / cumulative_target) * 100 if cumulative_target > 0 else 0.0

        logger.debug(
            f"{provider.id} {year}-{month:02d}: actual={actual:.2f} target={target:.2f} "
            f"wrvu_pct={wrvu_percentile:.1f} incentive={comp.incentive:.2f} "
            f"holdback={comp.holdback:.2f}"
        )

        result.metrics.append(ProviderMetric(
            provider_id=provider.id,
            year=year,
            month=month,
            raw_actual=raw,
            actual=actual,
            target=target,
            cumulative_actual=cumulative_actual,
            cumulative_target=cumulative_target,
            annualized_actual=annualized_actual,
            wrvu_percentile=wrvu_percentile,
            comp_percentile=comp_percentile,
            nearest_benchmark=label,
            conversion_factor=comp.conversion_factor or schedule.conversion_factor,
            base_salary=salary,
            incentive=comp.incentive,
            holdback=comp.holdback,
            additional_pay=additional_pay,
            total_compensation=total_comp,
            cumulative_compensation=cumulative_comp,
            plan_progress=plan_progress,
            months_completed=month,
            mom_trend=_month_over_month(actual, previous_actual),
        ))
        previous_actual = actual

    return result


def run_batch(
    snapshot: CompensationSnapshot,
    year: int,
    settings: Optional[EngineSettings] = None,
    through_month: int = 12,
    max_workers: Optional[int] = None,
) -> BatchReport:
    """Compute metrics for every provider in a snapshot.

    Args:
        snapshot: Input snapshot (providers, benchmarks, actuals, adjustments)
        year: Calendar year
        settings: Organization settings (defaults if None)
        through_month: Last month to emit (1-12)
        max_workers: Thread pool size; None or 1 runs sequentially

    Returns:
        BatchReport with metrics in provider order, skips and warnings
    """
    validate_month(through_month)
    settings = settings or EngineSettings()

    actuals_by_provider = defaultdict(list)
    for entry in snapshot.actuals:
        if entry.year == year:
            actuals_by_provider[entry.provider_id].append(entry)

    adjustments_by_provider = defaultdict(list)
    for adj in snapshot.adjustments:
        if adj.year == year:
            adjustments_by_provider[adj.provider_id].append(adj)

    def run_one(provider: Provider) -> ProviderYearResult:
        try:
            return compute_provider_year(
                provider,
                year,
                snapshot.benchmarks,
                actuals_by_provider.get(provider.id, []),
                adjustments_by_provider.get(provider.id, []),
                settings=settings,
                through_month=through_month,
            )
        except ComputationSkipped as skip:
            logger.warning(str(skip))
            return ProviderYearResult(provider_id=provider.id, skipped=[_skip_record(skip)])
        except EngineError as e:
            skip = ComputationSkipped(provider.id, str(e), cause=e)
            logger.warning(str(skip))
            return ProviderYearResult(provider_id=provider.id, skipped=[_skip_record(skip)])

    providers = list(snapshot.providers)
    logger.info(f"Computing {year} metrics for {len(providers)} provider(s)")

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(run_one, providers))
    else:
        results = [run_one(p) for p in providers]

    report = BatchReport(year=year, providers_processed=len(providers))
    for provider_result in results:
        report.metrics.extend(provider_result.metrics)
        report.skipped.extend(provider_result.skipped)
        report.warnings.extend(provider_result.warnings)

    logger.info(
        f"Batch {year}: {len(report.metrics)} metric(s), "
        f"{len(report.skipped)} skipped, {len(report.warnings)} warning(s)"
    )
    return report


class MetricStore:
    """Idempotent upsert store for ProviderMetric rows.

    Rows are keyed by (provider_id, year, month). Upserting a row equal
    to the stored one is reported as 'unchanged'.
    """

    def __init__(self, metrics: Optional[Iterable[ProviderMetric]] = None):
        self._rows: Dict[tuple, ProviderMetric] = {}
        if metrics:
            self.upsert_many(metrics)

    def __len__(self) -> int:
        return len(self._rows)

    def upsert(self, metric: ProviderMetric) -> str:
        """Insert or replace a row. Returns 'created', 'updated' or 'unchanged'."""
        existing = self._rows.get(metric.key)
        if existing is None:
            status = "created"
        elif existing == metric:
            return "unchanged"
        else:
            status = "updated"
        self._rows[metric.key] = metric
        return status

    def upsert_many(self, metrics: Iterable[ProviderMetric]) -> Dict[str, int]:
        counts = {"created": 0, "updated": 0, "unchanged": 0}
        for metric in metrics:
            counts[self.upsert(metric)] += 1
        return counts

    def get(self, provider_id: str, year: int, month: int) -> Optional[ProviderMetric]:
        return self._rows.get((provider_id, year, month))

    def for_provider(self, provider_id: str, year: int) -> List[ProviderMetric]:
        rows = [m for m in self._rows.values() if m.provider_id == provider_id and m.year == year]
        return sorted(rows, key=lambda m: m.month)

    def delete_year(self, year: int) -> int:
        """Delete all rows for a year. Returns the number deleted."""
        keys = [k for k in self._rows if k[1] == year]
        for key in keys:
            del self._rows[key]
        return len(keys)

    def to_records(self) -> List[dict]:
        """All rows as dicts, sorted by (provider_id, year, month)."""
        return [self._rows[k].model_dump() for k in sorted(self._rows)]

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_records(), f, indent=2)
        return path

    @classmethod
    def load(cls, path: Path) -> "MetricStore":
        with open(path) as f:
            rows = json.load(f)
        return cls(ProviderMetric.model_validate(row) for row in rows)
