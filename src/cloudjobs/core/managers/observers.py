"""Concrete observer implementations for job progress.

This module provides observers that handle:
- Progress logging while a job is polled
- Outcome logging once a job is resolved or gives up
"""

import logging
from typing import Any, Dict

from cloudjobs.core.models.job import JobHandle, JobRecord

logger = logging.getLogger(__name__)


class ProgressLoggingObserver:
    """Logs a job's progress whenever it changes.

    Only a change of status or progress percentage is logged, so a job polled
    hundreds of times does not flood the log. Keys are job ids, so one
    instance can follow concurrent waits. A job stops being tracked once a
    terminal snapshot is seen, even when nobody completes it afterwards.
    """

    def __init__(self, level: int = logging.INFO):
        self._level = level
        self._last_seen: Dict[str, tuple] = {}

    async def on_status_polled(self, record: JobRecord) -> None:
        state = (record.status, record.progress)
        if self._last_seen.get(record.id) == state:
            return
        self._last_seen[record.id] = state
        logger.log(
            self._level,
            f"[observer:progress] job_id={record.id} status={record.status} progress={record.progress}%",
        )
        if record.status.is_terminal():
            self._last_seen.pop(record.id, None)

    async def on_job_finished(self, handle: JobHandle, result: Any) -> None:
        self._last_seen.pop(handle.job_id, None)
        logger.log(
            self._level,
            f"[observer:progress] finished job_id={handle.job_id} result_type={type(result).__name__}",
        )

    async def on_job_failed(self, handle: JobHandle, error: Exception) -> None:
        self._last_seen.pop(handle.job_id, None)
        logger.warning(f"[observer:progress] failed job_id={handle.job_id} error={error}")
