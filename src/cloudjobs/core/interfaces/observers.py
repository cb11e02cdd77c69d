"""Observer protocol for job progress.

Observers decouple side effects (progress reporting, metrics, audit trails)
from the polling loop.
"""

from typing import Any, Protocol

from cloudjobs.core.models.job import JobHandle, JobRecord


class JobProgressObserver(Protocol):
    """Observer protocol for job progress events.

    - on_status_polled: after every status snapshot fetched while waiting
    - on_job_finished: after a job was resolved to a result
    - on_job_failed: after a job terminated with an error or timed out

    Observers may be called from several concurrent waits and should be
    stateless or async-safe.
    """

    async def on_status_polled(self, record: JobRecord) -> None:
        ...

    async def on_job_finished(self, handle: JobHandle, result: Any) -> None:
        ...

    async def on_job_failed(self, handle: JobHandle, error: Exception) -> None:
        ...
