"""Configuration models for core domain components.

Pydantic-based configuration passed explicitly to the completion predicate and
the status adapters by whoever assembles them.
"""

from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class TimeUnit(StrEnum):
    milliseconds = "milliseconds"
    seconds = "seconds"
    minutes = "minutes"

    def to_seconds(self, value: float) -> float:
        factor = {
            TimeUnit.milliseconds: 0.001,
            TimeUnit.seconds: 1.0,
            TimeUnit.minutes: 60.0,
        }[self]
        return value * factor


class JobCompletionConfig(BaseModel):
    """Polling policy for waiting on an asynchronous job.

    Attributes:
        max_duration: Total wait budget, expressed in `unit`
        period: Initial interval between status queries, expressed in `unit`
        max_period: Upper bound for the interval when backing off, expressed in `unit`
        unit: Time unit of the three values above
        backoff: Grow the interval by 1.5x per poll (capped at max_period) instead of polling at a fixed period
    """

    max_duration: float = Field(
        default=1200,
        gt=0,
        description="Maximum time to wait for a job to reach a terminal state"
    )

    period: float = Field(
        default=1,
        gt=0,
        description="Initial interval between job status queries"
    )

    max_period: float = Field(
        default=5,
        gt=0,
        description="Maximum interval between job status queries"
    )

    unit: TimeUnit = Field(
        default=TimeUnit.seconds,
        description="Time unit for max_duration, period and max_period"
    )

    backoff: bool = Field(
        default=True,
        description="Use exponential backoff between polls"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def _check_periods(self) -> "JobCompletionConfig":
        if self.max_period < self.period:
            raise ValueError("max_period must not be smaller than period")
        return self

    @property
    def max_duration_seconds(self) -> float:
        return self.unit.to_seconds(self.max_duration)

    @property
    def period_seconds(self) -> float:
        return self.unit.to_seconds(self.period)

    @property
    def max_period_seconds(self) -> float:
        return self.unit.to_seconds(self.max_period)

    @classmethod
    def from_app_settings(cls, settings) -> "JobCompletionConfig":
        """Build the polling policy from a CloudJobsSettings instance."""
        return cls(
            max_duration=settings.CLOUDJOBS_JOB_MAX_DURATION,
            period=settings.CLOUDJOBS_JOB_POLL_PERIOD,
            max_period=settings.CLOUDJOBS_JOB_MAX_POLL_PERIOD,
            unit=TimeUnit.seconds,
            backoff=settings.CLOUDJOBS_JOB_POLL_BACKOFF,
        )


class StatusFetchConfig(BaseModel):
    """Retry policy for a single job status query."""

    attempts: int = Field(default=3, ge=1, le=10)
    retry_base_wait: float = Field(default=0.5, gt=0)
    retry_max_wait: float = Field(default=5.0, gt=0)
    request_timeout: float = Field(default=10.0, gt=0)

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @classmethod
    def from_app_settings(cls, settings) -> "StatusFetchConfig":
        return cls(
            attempts=settings.CLOUDJOBS_STATUS_FETCH_ATTEMPTS,
            retry_base_wait=settings.CLOUDJOBS_STATUS_FETCH_RETRY_BASE_WAIT,
            retry_max_wait=settings.CLOUDJOBS_STATUS_FETCH_RETRY_MAX_WAIT,
            request_timeout=settings.CLOUDJOBS_STATUS_FETCH_TIMEOUT,
        )
