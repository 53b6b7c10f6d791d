"""wRVU Comp SDK - Core compensation calculation engine."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_organization_path,
    load_organization,
    save_organization,
    set_organization_value,
    load_engine_settings,
    validate_engine_settings,
    get_data_path,
    get_year_data_path,
    EngineSettings,
    DEFAULT_HOLDBACK_PERCENT,
    DEFAULT_FALLBACK_CONVERSION_FACTOR,
)

from .errors import (
    EngineError,
    InvalidInput,
    MissingBenchmark,
    ComputationSkipped,
    ConfigError,
)

from .schemas import (
    BenchmarkSet,
    MarketBenchmark,
    CompensationChange,
    Provider,
    MonthlyActual,
    Adjustment,
    CompensationSnapshot,
    ProviderMetric,
    SkippedComputation,
    BatchReport,
)

from .benchmarks import (
    percentile_of,
    nearest_benchmark,
    find_benchmark,
    fte_adjust,
)

from .adjustments import (
    Period,
    sum_for_period,
    sum_by_kind,
    replace_series,
)

from .targets import (
    monthly_target,
    monthly_schedule,
    resolve_conversion_factor,
    build_target_schedule,
    TargetSchedule,
)

from .plans import (
    PlanType,
    PlanContext,
    CompensationResult,
    parse_plan_type,
    resolve_holdback_percent,
    holdback,
    incentive,
    compute,
)

from .metrics import (
    compute_provider_year,
    run_batch,
    MetricStore,
)

from .snapshots import load_snapshot, parse_snapshot

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_organization_path",
    "load_organization",
    "save_organization",
    "set_organization_value",
    "load_engine_settings",
    "validate_engine_settings",
    "get_data_path",
    "get_year_data_path",
    "EngineSettings",
    "DEFAULT_HOLDBACK_PERCENT",
    "DEFAULT_FALLBACK_CONVERSION_FACTOR",
    # Errors
    "EngineError",
    "InvalidInput",
    "MissingBenchmark",
    "ComputationSkipped",
    "ConfigError",
    # Schemas
    "BenchmarkSet",
    "MarketBenchmark",
    "CompensationChange",
    "Provider",
    "MonthlyActual",
    "Adjustment",
    "CompensationSnapshot",
    "ProviderMetric",
    "SkippedComputation",
    "BatchReport",
    # Benchmarks
    "percentile_of",
    "nearest_benchmark",
    "find_benchmark",
    "fte_adjust",
    # Adjustments
    "Period",
    "sum_for_period",
    "sum_by_kind",
    "replace_series",
    # Targets
    "monthly_target",
    "monthly_schedule",
    "resolve_conversion_factor",
    "build_target_schedule",
    "TargetSchedule",
    # Plans
    "PlanType",
    "PlanContext",
    "CompensationResult",
    "parse_plan_type",
    "resolve_holdback_percent",
    "holdback",
    "incentive",
    "compute",
    # Metrics
    "compute_provider_year",
    "run_batch",
    "MetricStore",
    # Snapshots
    "load_snapshot",
    "parse_snapshot",
]
