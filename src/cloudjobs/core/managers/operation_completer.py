"""AsyncOperationCompleter: turns a submitted job into its typed result or a typed error."""

from __future__ import annotations

import time
from typing import Any, Iterable, List, Optional, Type, Union

from cloudjobs.core.exceptions import JobExecutionError, OperationTimedOut
from cloudjobs.core.interfaces.job_status import JobStatusQueryPort
from cloudjobs.core.interfaces.observers import JobProgressObserver
from cloudjobs.core.logging_config import bind_correlation_id
from cloudjobs.core.managers.job_completion import JobCompletionPredicate
from cloudjobs.core.managers.result_resolver import JobResultResolver
from cloudjobs.core.models.job import JobHandle, JobStatus
from cloudjobs.core.settings import logger

JobRef = Union[JobHandle, str]


def _as_handle(job: JobRef) -> JobHandle:
    if isinstance(job, JobHandle):
        return job
    return JobHandle(job_id=str(job))


class AsyncOperationCompleter:
    """Waits for a job to finish, then resolves its outcome.

    The predicate only reports whether the job succeeded in time. When it
    did, the job is fetched once more and its result decoded by the resolver.
    When it did not, a failed final snapshot raises RemoteJobFailed and any
    other snapshot raises OperationTimedOut, including one that succeeded
    after the wait gave up.
    """

    def __init__(
        self,
        predicate: JobCompletionPredicate,
        status_query: JobStatusQueryPort,
        resolver: Optional[JobResultResolver] = None,
        observers: Optional[List[JobProgressObserver]] = None,
    ) -> None:
        self._predicate = predicate
        self._status = status_query
        self._resolver = resolver or JobResultResolver()
        self._observers = observers or []

    async def complete(self, handle: JobRef, expected_type: Optional[Type[Any]] = None) -> Any:
        handle = _as_handle(handle)
        job_id = handle.job_id
        with bind_correlation_id(job_id):
            started = time.monotonic()
            logger.debug(f"[completer] waiting job_id={job_id} resource_id={handle.resource_id}")
            try:
                finished = await self._predicate.wait(job_id)
                record = await self._status.fetch(job_id)
                elapsed = time.monotonic() - started

                if not finished and record.status != JobStatus.failed:
                    raise OperationTimedOut(
                        job_id=job_id,
                        elapsed_seconds=elapsed,
                        timeout_seconds=self._predicate.timeout_seconds,
                        last_status=str(record.status),
                    )
                result = self._resolver.resolve(record, expected_type)
            except JobExecutionError as exc:
                logger.info(f"[completer] job did not complete job_id={job_id} error={exc}")
                await self._notify_failed(handle, exc)
                raise

            logger.debug(f"[completer] job complete job_id={job_id} elapsed={elapsed:.2f}s")
            await self._notify_finished(handle, result)
            return result

    async def complete_submission(
        self, submitted: Any, expected_type: Optional[Type[Any]] = None
    ) -> Any:
        """Complete `submitted` if it is a JobHandle, otherwise return it unchanged.

        Provider calls either finish synchronously (returning the resource) or
        hand back a job to wait for; callers need not care which.
        """
        if isinstance(submitted, JobHandle):
            return await self.complete(submitted, expected_type)
        return submitted

    async def await_completion(self, jobs: Iterable[Optional[JobRef]]) -> List[Any]:
        """Complete several jobs one after another; `None` entries are skipped.

        Operations such as destroying an already-gone resource start no job.
        """
        results = []
        for job in jobs:
            if job is None:
                continue
            results.append(await self.complete(job))
        return results

    async def _notify_finished(self, handle: JobHandle, result: Any) -> None:
        for observer in self._observers:
            try:
                await observer.on_job_finished(handle, result)
            except Exception as exc:
                logger.error(
                    f"[observer:error] on_job_finished failed observer={type(observer).__name__} "
                    f"job_id={handle.job_id} error={exc}"
                )

    async def _notify_failed(self, handle: JobHandle, error: Exception) -> None:
        for observer in self._observers:
            try:
                await observer.on_job_failed(handle, error)
            except Exception as exc:
                logger.error(
                    f"[observer:error] on_job_failed failed observer={type(observer).__name__} "
                    f"job_id={handle.job_id} error={exc}"
                )
