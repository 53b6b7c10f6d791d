"""Pydantic schemas for wrvu-comp input and output snapshots.

All schemas use extra='forbid' to reject unknown fields, ensuring
typos in snapshot files cause clear errors rather than silent ignoring.

Numeric guards that the engine must report (rather than reject) are
deliberately left off the schema: a provider with a zero salary is a
valid record that gets skipped and reported by the batch runner.
"""

import math
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


AdjustmentKind = Literal["productivity", "target", "additional_pay"]

ADJUSTMENT_KINDS = ("productivity", "target", "additional_pay")


# =============================================================================
# Market data
# =============================================================================


class BenchmarkSet(BaseModel):
    """Four-point benchmark curve (25th/50th/75th/90th percentile values)."""

    model_config = ConfigDict(extra="forbid")

    p25: float = Field(default=0, ge=0, description="25th percentile value")
    p50: float = Field(default=0, ge=0, description="50th percentile value")
    p75: float = Field(default=0, ge=0, description="75th percentile value")
    p90: float = Field(default=0, ge=0, description="90th percentile value")

    @property
    def is_empty(self) -> bool:
        """True if no benchmark point is populated."""
        return not any((self.p25, self.p50, self.p75, self.p90))

    def points(self) -> List[tuple]:
        """(percentile, value) pairs in ascending percentile order."""
        return [(25, self.p25), (50, self.p50), (75, self.p75), (90, self.p90)]


class MarketBenchmark(BaseModel):
    """Market survey row for one specialty."""

    model_config = ConfigDict(extra="forbid")

    specialty: str = Field(..., min_length=1, description="Specialty name")
    total_comp: BenchmarkSet = Field(
        default_factory=BenchmarkSet, description="Total cash compensation benchmarks"
    )
    wrvu: BenchmarkSet = Field(
        default_factory=BenchmarkSet, description="Annual wRVU benchmarks"
    )
    conversion_factor: BenchmarkSet = Field(
        default_factory=BenchmarkSet, description="Dollars per wRVU benchmarks"
    )


# =============================================================================
# Provider records
# =============================================================================


class CompensationChange(BaseModel):
    """Mid-year salary (and optionally FTE) change."""

    model_config = ConfigDict(extra="forbid")

    effective_date: date = Field(..., description="Date the new salary takes effect")
    previous_salary: float = Field(..., ge=0, description="Annual salary before the change")
    new_salary: float = Field(..., ge=0, description="Annual salary after the change")
    previous_fte: Optional[float] = Field(default=None, ge=0, le=1)
    new_fte: Optional[float] = Field(default=None, ge=0, le=1)
    reason: Optional[str] = None


class Provider(BaseModel):
    """Provider record as supplied by the admin system (read-only)."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Provider identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    specialty: str = Field(..., description="Specialty used for market lookups")
    base_salary: float = Field(..., description="Annual base salary")
    fte: float = Field(default=1.0, description="Total FTE")
    clinical_fte: Optional[float] = Field(
        default=None, description="Clinical FTE (falls back to fte when unset)"
    )
    compensation_model: str = Field(
        default="standard", description="Plan tag: base_pay, standard, tiered_rate"
    )
    target_wrvus: Optional[float] = Field(
        default=None, description="Annual target baseline (informational)"
    )
    holdback_percent: Optional[float] = Field(
        default=None, ge=0, le=100, description="Provider-specific holdback override"
    )
    compensation_changes: List[CompensationChange] = Field(default_factory=list)

    @property
    def effective_clinical_fte(self) -> float:
        """Clinical FTE, or total FTE when clinical FTE is not set."""
        return self.fte if self.clinical_fte is None else self.clinical_fte


# =============================================================================
# Time-scoped inputs
# =============================================================================


class MonthlyActual(BaseModel):
    """Raw productivity for one provider-month."""

    model_config = ConfigDict(extra="forbid")

    provider_id: str
    year: int
    month: int = Field(..., ge=1, le=12)
    value: float = Field(..., description="Raw wRVUs produced")
    hours: Optional[float] = Field(default=None, ge=0, description="Hours worked")

    @field_validator("value")
    @classmethod
    def value_finite(cls, v: float) -> float:
        """Reject NaN and infinities."""
        if not math.isfinite(v):
            raise ValueError(f"value must be finite, got {v}")
        return v


class Adjustment(BaseModel):
    """Single month slot of a named adjustment series."""

    model_config = ConfigDict(extra="forbid")

    kind: AdjustmentKind
    provider_id: str
    year: int
    month: int = Field(..., ge=1, le=12)
    name: str = Field(..., min_length=1)
    value: float = Field(default=0, description="Signed adjustment value")

    @field_validator("value")
    @classmethod
    def value_finite(cls, v: float) -> float:
        """Reject NaN and infinities."""
        if not math.isfinite(v):
            raise ValueError(f"value must be finite, got {v}")
        return v


class CompensationSnapshot(BaseModel):
    """Everything the engine needs for a batch, loaded up front by the caller."""

    model_config = ConfigDict(extra="forbid")

    providers: List[Provider] = Field(default_factory=list)
    benchmarks: List[MarketBenchmark] = Field(default_factory=list)
    actuals: List[MonthlyActual] = Field(default_factory=list)
    adjustments: List[Adjustment] = Field(default_factory=list)


# =============================================================================
# Engine output
# =============================================================================


class ProviderMetric(BaseModel):
    """Computed metrics for one provider-month. Keyed by (provider, year, month)."""

    model_config = ConfigDict(extra="forbid")

    provider_id: str
    year: int
    month: int = Field(..., ge=1, le=12)
    raw_actual: float = Field(..., description="Monthly wRVUs before adjustments")
    actual: float = Field(..., description="Monthly wRVUs including adjustments")
    target: float = Field(..., description="Monthly target including adjustments")
    cumulative_actual: float
    cumulative_target: float
    annualized_actual: float = Field(..., description="YTD wRVUs annualized, FTE-adjusted")
    wrvu_percentile: float
    comp_percentile: float
    nearest_benchmark: str
    conversion_factor: float
    base_salary: float = Field(..., description="Salary paid for the month")
    incentive: float
    holdback: float
    additional_pay: float
    total_compensation: float
    cumulative_compensation: float
    plan_progress: float
    months_completed: int
    mom_trend: float = Field(default=0, description="Month-over-month % change in actual")

    @property
    def key(self) -> tuple:
        """Store key: (provider_id, year, month)."""
        return (self.provider_id, self.year, self.month)


class SkippedComputation(BaseModel):
    """A provider (or provider-month) excluded from a calculation pass."""

    model_config = ConfigDict(extra="forbid")

    provider_id: str
    month: Optional[int] = None
    error: str = Field(..., description="Error class name (e.g., 'InvalidInput')")
    reason: str


class BatchReport(BaseModel):
    """Output of a batch run.

    Contains all emitted metrics in provider order, plus the skip list
    and warnings (missing benchmarks, fallback rates) for the caller.
    """

    model_config = ConfigDict(extra="forbid")

    year: int
    metrics: List[ProviderMetric] = Field(default_factory=list)
    skipped: List[SkippedComputation] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    providers_processed: int = 0

    @property
    def ok(self) -> bool:
        """True if nothing was skipped."""
        return len(self.skipped) == 0
