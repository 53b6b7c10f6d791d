"""Error taxonomy for the compensation engine.

None of these are fatal to a batch. The accumulator records them in the
BatchReport and moves on to the next provider (or month).
"""

from typing import Optional


class EngineError(Exception):
    """Base class for engine errors."""
    pass


class InvalidInput(EngineError, ValueError):
    """Raised for non-positive salary/rate/FTE, bad months, bad values."""
    pass


class MissingBenchmark(EngineError):
    """Raised when no market benchmark row exists for a specialty."""

    def __init__(self, specialty: str):
        self.specialty = specialty
        super().__init__(f"No market data found for specialty: {specialty}")


class ComputationSkipped(EngineError):
    """A provider (or single provider-month) was skipped.

    Wraps the underlying cause so callers can report it without losing
    the original error type.
    """

    def __init__(
        self,
        provider_id: str,
        reason: str,
        month: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        self.provider_id = provider_id
        self.reason = reason
        self.month = month
        self.cause = cause
        where = f"provider {provider_id}"
        if month is not None:
            where += f", month {month}"
        super().__init__(f"Skipped {where}: {reason}")


class ConfigError(Exception):
    """Raised when configuration values are invalid."""
    pass
