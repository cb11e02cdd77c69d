from typing import Optional

from cloudjobs.core.models.job import ErrorCode


class JobExecutionError(Exception):
    """Base exception for asynchronous job failures.

    Attributes:
        message: Human-readable error description
        diagnostic: Technical diagnostic information for debugging
        job_id: Optional job identifier
    """
    def __init__(
        self,
        message: str,
        diagnostic: Optional[str] = None,
        job_id: Optional[str] = None
    ):
        self.message = message
        self.diagnostic = diagnostic
        self.job_id = job_id
        super().__init__(message)


class OperationTimedOut(JobExecutionError):
    """Raised when a job was not seen to succeed within the wait budget.

    The remote job is not cancelled; only the local wait gives up.

    Attributes:
        elapsed_seconds: Time elapsed before giving up
        timeout_seconds: Configured wait budget
        last_status: Status of the last snapshot seen, if any
    """
    def __init__(
        self,
        job_id: str,
        elapsed_seconds: float,
        timeout_seconds: float,
        last_status: Optional[str] = None,
        diagnostic: Optional[str] = None
    ):
        self.elapsed_seconds = elapsed_seconds
        self.timeout_seconds = timeout_seconds
        self.last_status = last_status
        message = (
            f"Job {job_id} did not complete in time after {elapsed_seconds:.1f}s "
            f"(limit: {timeout_seconds}s, last status: {last_status})"
        )
        super().__init__(message=message, diagnostic=diagnostic, job_id=job_id)


class RemoteJobFailed(JobExecutionError):
    """Raised when the remote system reports the job terminated unsuccessfully.

    Attributes:
        error_code: Provider error code, UNKNOWN when the number is not recognised
        raw_code: Numeric code exactly as the provider sent it
        error_text: Provider error text, preserved verbatim
    """
    def __init__(
        self,
        job_id: str,
        error_code: ErrorCode,
        error_text: str,
        diagnostic: Optional[str] = None,
        raw_code: Optional[int] = None,
    ):
        self.error_code = error_code
        self.error_text = error_text
        self.raw_code = int(error_code) if raw_code is None else raw_code
        message = f"Job {job_id} failed with {error_code.name}({self.raw_code}): {error_text}"
        super().__init__(message=message, diagnostic=diagnostic, job_id=job_id)


class JobStatusFetchError(JobExecutionError):
    """Raised when the job status endpoint fails to return a usable response.

    Attributes:
        upstream_status: HTTP status code from the endpoint (if applicable)
        upstream_body: Response body from the endpoint (if available)
    """
    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
        diagnostic: Optional[str] = None,
        job_id: Optional[str] = None
    ):
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        super().__init__(message=message, diagnostic=diagnostic, job_id=job_id)


class TransientFetchError(JobStatusFetchError):
    """Status fetch failure worth retrying (timeouts, 5xx, connection errors)."""

    pass


class ResourceAlreadyExists(Exception):
    """Raised by a create call when a resource with the same identity exists."""

    def __init__(self, resource_type: str, name: str):
        self.resource_type = resource_type
        self.name = name
        super().__init__(f"{resource_type} {name!r} already exists")


class PreconditionUnmet(ValueError):
    """Raised before any mutation when the target scope cannot satisfy a request."""

    pass
