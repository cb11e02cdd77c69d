"""JobStatusQueryPort backed by CloudStack's `queryAsyncJobResult` command.

The response parsing is a plain function returning a fresh JobRecord per call,
so the adapter keeps no per-response state.
"""

from typing import Any, Dict, Optional

from cloudjobs.core.config import StatusFetchConfig
from cloudjobs.core.exceptions import JobStatusFetchError
from cloudjobs.core.interfaces.http_client import HttpClientPort
from cloudjobs.core.interfaces.job_status import JobStatusQueryPort
from cloudjobs.core.interfaces.retry import RetryPort
from cloudjobs.core.models.job import ErrorCode, JobError, JobRecord, JobStatus
from cloudjobs.core.settings import logger

RESPONSE_KEY = "queryasyncjobresultresponse"


def parse_job_record(body: Any, job_id: Optional[str] = None) -> JobRecord:
    """Build a JobRecord from a `queryAsyncJobResult` response body.

    Accepts the body with or without the outer `queryasyncjobresultresponse`
    envelope. Raises JobStatusFetchError when the body is not an object at all.
    """
    if not isinstance(body, dict):
        raise JobStatusFetchError(
            f"Unexpected job status body type {type(body).__name__}",
            upstream_body=str(body)[:500],
            job_id=job_id,
        )
    payload: Dict[str, Any] = body.get(RESPONSE_KEY, body)
    if not isinstance(payload, dict):
        raise JobStatusFetchError(
            "Job status envelope is not an object",
            upstream_body=str(body)[:500],
            job_id=job_id,
        )

    record_id = str(payload.get("jobid") or job_id or "")
    status = JobStatus.from_code(payload.get("jobstatus"))
    progress = max(_as_int(payload.get("jobprocstatus")), 0)
    result_type = payload.get("jobresulttype")
    instance_type = payload.get("jobinstancetype")
    raw_result = payload.get("jobresult")

    if status == JobStatus.failed:
        return JobRecord(
            id=record_id,
            status=status,
            progress=progress,
            result_type=result_type,
            instance_type=instance_type,
            error=_parse_error(raw_result, payload),
        )
    return JobRecord(
        id=record_id,
        status=status,
        progress=progress,
        result_type=result_type,
        instance_type=instance_type,
        result=raw_result if status == JobStatus.succeeded else None,
    )


def _parse_error(raw_result: Any, payload: Dict[str, Any]) -> JobError:
    if isinstance(raw_result, dict):
        code = raw_result.get("errorcode", payload.get("jobresultcode"))
        text = raw_result.get("errortext", "")
    else:
        code = payload.get("jobresultcode")
        text = "" if raw_result is None else str(raw_result)
    raw_code = _as_int(code, default=-1)
    return JobError(code=ErrorCode(raw_code), raw_code=raw_code, text=str(text))


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


class CloudStackJobStatusAdapter(JobStatusQueryPort):
    """Fetches job snapshots over HTTP.

    Transient failures of a single query (timeouts, 5xx, connection errors)
    are retried through the RetryPort; everything else propagates.
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        endpoint: str,
        retry_port: Optional[RetryPort] = None,
        config: Optional[StatusFetchConfig] = None,
    ) -> None:
        self._http = http_client
        self._endpoint = str(endpoint)
        self._retry = retry_port
        self.config = config or StatusFetchConfig()

    async def fetch(self, job_id: str) -> JobRecord:
        params = {
            "command": "queryAsyncJobResult",
            "jobid": job_id,
            "response": "json",
        }

        async def do_fetch():
            return await self._http.get(
                self._endpoint, params=params, timeout=self.config.request_timeout
            )

        if self._retry:
            body = await self._retry.execute(do_fetch, attempts=self.config.attempts)
        else:
            body = await do_fetch()

        record = parse_job_record(body, job_id=job_id)
        logger.debug(
            "[status:fetch] job_id=%s status=%s progress=%s",
            record.id,
            record.status,
            record.progress,
        )
        return record
