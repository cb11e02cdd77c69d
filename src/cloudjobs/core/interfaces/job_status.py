"""JobStatusQueryPort: read access to the status of remote asynchronous jobs."""
from __future__ import annotations

from abc import ABC, abstractmethod

from cloudjobs.core.models.job import JobRecord


class JobStatusQueryPort(ABC):
	"""Port abstraction for querying a job's current state.

	Implementations must be pure reads and safe to call concurrently for the same
	job id. Transient transport failures are retried inside the implementation;
	anything that escapes `fetch` is fatal for the caller.
	"""

	@abstractmethod
	async def fetch(self, job_id: str) -> JobRecord:
		"""Return a fresh snapshot of the job."""
		raise NotImplementedError
