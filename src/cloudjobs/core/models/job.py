from enum import IntEnum, StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class JobStatus(StrEnum):
    pending = "pending"
    in_progress = "in_progress"
    succeeded = "succeeded"
    failed = "failed"

    @classmethod
    def from_code(cls, code: Any) -> "JobStatus":
        """Map the numeric CloudStack `jobstatus` onto a JobStatus."""
        try:
            numeric = int(code)
        except (TypeError, ValueError):
            return cls.pending
        return {
            0: cls.in_progress,
            1: cls.succeeded,
            2: cls.failed,
        }.get(numeric, cls.pending)

    def is_terminal(self) -> bool:
        return self in {JobStatus.succeeded, JobStatus.failed}


class ErrorCode(IntEnum):
    UNAUTHORIZED = 401
    METHOD_NOT_ALLOWED = 405
    MALFORMED_PARAMETER = 430
    PARAM_ERROR = 431
    INTERNAL_ERROR = 530
    ACCOUNT_ERROR = 531
    ACCOUNT_RESOURCE_LIMIT_ERROR = 532
    INSUFFICIENT_CAPACITY_ERROR = 533
    RESOURCE_UNAVAILABLE_ERROR = 534
    RESOURCE_ALLOCATION_ERROR = 535
    RESOURCE_IN_USE_ERROR = 536
    NETWORK_RULE_CONFLICT_ERROR = 537
    UNKNOWN = -1

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


class JobHandle(BaseModel):
    """Reference to a submitted asynchronous operation.

    `resource_id` is the id of the resource the job acts upon; providers do not
    always report it up front (e.g. associating a new address), so it is optional.
    """

    resource_id: Optional[str] = None
    job_id: str

    model_config = {"frozen": True}


class JobError(BaseModel):
    """Provider error of a failed job.

    `raw_code` is the number the provider sent. It differs from `code` only
    when the number is not a known ErrorCode, in which case `code` is UNKNOWN.
    """

    code: ErrorCode = ErrorCode.UNKNOWN
    raw_code: Optional[int] = None
    text: str = ""

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _keep_raw_code(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("raw_code") is None and isinstance(data.get("code"), int):
            data = {**data, "raw_code": int(data["code"])}
        return data

    def __str__(self) -> str:
        raw_code = int(self.code) if self.raw_code is None else self.raw_code
        return f"{self.code.name}({raw_code}): {self.text}"


class JobRecord(BaseModel):
    """Immutable snapshot of a remote job as returned by a single status query.

    Notes:
    - `error` is present if and only if the job failed.
    - `result` is only ever present on a succeeded job and stays untyped here;
      decoding into domain types happens in the result resolver.
    - `result_type` and `instance_type` are the provider's hints about the
      shape of `result` (CloudStack `jobresulttype` / `jobinstancetype`).
    """

    id: str
    status: JobStatus = JobStatus.pending
    progress: int = Field(default=0, ge=0)
    result_type: Optional[str] = None
    instance_type: Optional[str] = None
    result: Optional[Any] = None
    error: Optional[JobError] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_outcome_fields(self) -> "JobRecord":
        if (self.error is not None) != (self.status == JobStatus.failed):
            raise ValueError(
                f"job {self.id}: error must be set exactly when status is failed (status={self.status})"
            )
        if self.result is not None and self.status != JobStatus.succeeded:
            raise ValueError(f"job {self.id}: result present on non-succeeded job (status={self.status})")
        return self

    def is_terminal(self) -> bool:
        return self.status.is_terminal()
