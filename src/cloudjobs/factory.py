# factory.py
from typing import List, Optional

from cloudjobs.adapters.cloudstack_job_status import CloudStackJobStatusAdapter
from cloudjobs.adapters.retry_tenacity import TenacityRetryAdapter
from cloudjobs.core.config import JobCompletionConfig, StatusFetchConfig
from cloudjobs.core.interfaces.http_client import HttpClientPort
from cloudjobs.core.interfaces.job_status import JobStatusQueryPort
from cloudjobs.core.interfaces.observers import JobProgressObserver
from cloudjobs.core.managers.job_completion import JobCompletionPredicate
from cloudjobs.core.managers.operation_completer import AsyncOperationCompleter
from cloudjobs.core.managers.result_resolver import JobResultResolver
from cloudjobs.core.settings import CloudJobsSettings, app_settings


# The factory lives at the outermost layer (not in core):
# it instantiates the concrete adapters and wires them together.

def build_status_query(
    http_client: HttpClientPort,
    settings: CloudJobsSettings = app_settings,
) -> CloudStackJobStatusAdapter:
    fetch_config = StatusFetchConfig.from_app_settings(settings)
    return CloudStackJobStatusAdapter(
        http_client,
        endpoint=str(settings.CLOUDJOBS_API_URL),
        retry_port=TenacityRetryAdapter.from_config(fetch_config),
        config=fetch_config,
    )


def build_completer(
    http_client: Optional[HttpClientPort] = None,
    settings: CloudJobsSettings = app_settings,
    observers: Optional[List[JobProgressObserver]] = None,
    status_query: Optional[JobStatusQueryPort] = None,
) -> AsyncOperationCompleter:
    """Assemble an AsyncOperationCompleter from settings.

    Either an HTTP client (for the CloudStack status endpoint) or a ready
    status query must be given.
    """
    if status_query is None:
        if http_client is None:
            raise ValueError("build_completer needs an http_client or a status_query")
        status_query = build_status_query(http_client, settings)

    predicate = JobCompletionPredicate(
        status_query,
        config=JobCompletionConfig.from_app_settings(settings),
        observers=observers,
    )
    return AsyncOperationCompleter(
        predicate,
        status_query,
        resolver=JobResultResolver(),
        observers=observers,
    )
