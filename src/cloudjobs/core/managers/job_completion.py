"""JobCompletionPredicate: blocks the calling task until a job leaves the in-progress state."""

from __future__ import annotations

from typing import List, Optional

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
)

from cloudjobs.core.config import JobCompletionConfig
from cloudjobs.core.interfaces.job_status import JobStatusQueryPort
from cloudjobs.core.interfaces.observers import JobProgressObserver
from cloudjobs.core.models.job import JobRecord, JobStatus
from cloudjobs.core.settings import logger

BACKOFF_FACTOR = 1.5


def _not_terminal(record: JobRecord) -> bool:
    return not record.is_terminal()


class JobCompletionPredicate:
    """Polls a job's status until it is terminal or the time budget runs out.

    `wait` is true only for a succeeded job. A failed job stops polling at once
    and yields false, exactly like an exhausted budget; callers that need to
    tell the two apart look at the job's final snapshot. Errors raised by the
    status query are not retried here and propagate to the caller.

    Attributes:
        config: Immutable polling policy (budget, period, backoff)
    """

    def __init__(
        self,
        status_query: JobStatusQueryPort,
        config: Optional[JobCompletionConfig] = None,
        observers: Optional[List[JobProgressObserver]] = None,
    ) -> None:
        self._status = status_query
        self.config = config or JobCompletionConfig()
        self._observers = observers or []

    @property
    def timeout_seconds(self) -> float:
        return self.config.max_duration_seconds

    def _wait_strategy(self):
        if not self.config.backoff:
            return wait_fixed(self.config.period_seconds)
        return wait_exponential(
            multiplier=self.config.period_seconds,
            exp_base=BACKOFF_FACTOR,
            min=self.config.period_seconds,
            max=self.config.max_period_seconds,
        )

    async def wait(self, job_id: str) -> bool:
        retrying = AsyncRetrying(
            stop=stop_after_delay(self.timeout_seconds),
            wait=self._wait_strategy(),
            retry=retry_if_result(_not_terminal),
        )
        try:
            record = await retrying(self._fetch_and_notify, job_id)
        except RetryError as exc:
            last = exc.last_attempt.result()
            logger.debug(
                f"[job:wait] budget exhausted job_id={job_id} "
                f"attempts={exc.last_attempt.attempt_number} last_status={last.status}"
            )
            return False

        if record.status == JobStatus.failed:
            logger.debug(f"[job:wait] job failed job_id={job_id} error={record.error}")
            return False
        return True

    async def _fetch_and_notify(self, job_id: str) -> JobRecord:
        record = await self._status.fetch(job_id)
        logger.debug(
            f"[job:poll] job_id={job_id} status={record.status} progress={record.progress}"
        )
        for observer in self._observers:
            try:
                await observer.on_status_polled(record)
            except Exception as exc:
                logger.error(
                    f"[observer:error] on_status_polled failed observer={type(observer).__name__} "
                    f"job_id={job_id} error={exc}"
                )
        return record
