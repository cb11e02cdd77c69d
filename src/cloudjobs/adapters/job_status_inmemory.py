"""In-memory implementation of JobStatusQueryPort.

Serves scripted snapshot sequences per job id: each fetch returns the next
snapshot, and the last one repeats forever. Async-safe using an asyncio.Lock.
Suitable for tests and local development against no real endpoint.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List

from cloudjobs.core.exceptions import JobStatusFetchError
from cloudjobs.core.interfaces.job_status import JobStatusQueryPort
from cloudjobs.core.models.job import JobRecord


class InMemoryJobStatusStore(JobStatusQueryPort):
    def __init__(self) -> None:
        self._snapshots: Dict[str, List[JobRecord]] = {}
        self._cursor: Dict[str, int] = {}
        self._fetches: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    def script(self, job_id: str, records: Iterable[JobRecord]) -> None:
        """Register the snapshots successive fetches of `job_id` will return."""
        snapshots = list(records)
        if not snapshots:
            raise ValueError(f"No snapshots given for job {job_id}")
        for record in snapshots:
            if record.id != job_id:
                raise ValueError(f"Snapshot for job {record.id} scripted under {job_id}")
        self._snapshots[job_id] = snapshots
        self._cursor[job_id] = 0
        self._fetches[job_id] = 0

    def fetch_count(self, job_id: str) -> int:
        return self._fetches.get(job_id, 0)

    async def fetch(self, job_id: str) -> JobRecord:
        async with self._lock:
            snapshots = self._snapshots.get(job_id)
            if snapshots is None:
                raise JobStatusFetchError(f"Unknown job: {job_id}", upstream_status=404, job_id=job_id)
            index = self._cursor[job_id]
            record = snapshots[index]
            self._cursor[job_id] = min(index + 1, len(snapshots) - 1)
            self._fetches[job_id] += 1
            return record
