"""Resolution of terminal job records into typed results.

Manages the chain of result shape matchers and turns failed records into
RemoteJobFailed.
"""

from typing import Any, List, Optional, Type

from cloudjobs.core.exceptions import JobExecutionError, RemoteJobFailed
from cloudjobs.core.interfaces.result_decoding import (
    ResultDecodingContext,
    ResultShapeMatcher,
)
from cloudjobs.core.managers.result_strategies import (
    DiscriminatorMatcher,
    ExpectedTypeMatcher,
    FieldSignatureMatcher,
    OpaqueFallbackMatcher,
    ScalarMatcher,
    WrapperKeyMatcher,
)
from cloudjobs.core.models.job import ErrorCode, JobRecord, JobStatus
from cloudjobs.core.models.results import DecodedResult
from cloudjobs.core.settings import logger


class JobResultResolver:
    """Resolves a terminal job record to its result value or an error.

    Evaluates the record's result against matchers in priority order:
    1. ExpectedTypeMatcher - caller-supplied model validates
    2. DiscriminatorMatcher - provider type hint names a known kind
    3. WrapperKeyMatcher - `{"<kind>": {...}}` wrapper
    4. FieldSignatureMatcher - signature keys of a known kind
    5. ScalarMatcher - plain scalar or empty result
    6. OpaqueFallbackMatcher - anything else (always matches)

    The first matcher that decodes the payload wins. A result is never
    discarded: unknown shapes come back as OpaqueResult.
    """

    def __init__(self, matchers: Optional[List[ResultShapeMatcher]] = None):
        self._matchers: List[ResultShapeMatcher] = matchers or [
            ExpectedTypeMatcher(),
            DiscriminatorMatcher(),
            WrapperKeyMatcher(),
            FieldSignatureMatcher(),
            ScalarMatcher(),
            OpaqueFallbackMatcher(),  # Catch-all, always at the end
        ]

    def resolve(self, record: JobRecord, expected_type: Optional[Type[Any]] = None) -> Any:
        """Return the decoded result of a succeeded job, or raise for a failed one.

        Args:
            record: Terminal job snapshot
            expected_type: Type the caller expects back; used as a decoding hint

        Raises:
            RemoteJobFailed: the job terminated with an error
            JobExecutionError: the record is not terminal
        """
        if record.status == JobStatus.failed:
            error = record.error
            raise RemoteJobFailed(
                job_id=record.id,
                error_code=error.code if error else ErrorCode.UNKNOWN,
                error_text=error.text if error else "",
                raw_code=error.raw_code if error else None,
            )
        if record.status != JobStatus.succeeded:
            raise JobExecutionError(
                f"Job {record.id} is not terminal (status: {record.status})",
                job_id=record.id,
            )
        return self.decode(record, expected_type).value

    def decode(self, record: JobRecord, expected_type: Optional[Type[Any]] = None) -> DecodedResult:
        context = ResultDecodingContext(record, expected_type)
        decoded: Optional[DecodedResult] = None
        for matcher in self._matchers:
            if not matcher.can_decode(context):
                continue
            decoded = matcher.decode(context)
            if decoded is not None:
                logger.debug(
                    f"[resolver] {type(matcher).__name__} decoded job_id={record.id} kind={decoded.kind}"
                )
                break

        if decoded is None:
            # Only reachable with a custom matcher chain lacking a catch-all
            logger.error(f"[resolver] no matcher decoded job_id={record.id}")
            decoded = OpaqueFallbackMatcher().decode(context)

        if expected_type is not None and isinstance(expected_type, type):
            if not isinstance(decoded.value, expected_type):
                logger.warning(
                    f"[resolver] result of job_id={record.id} is {type(decoded.value).__name__}, "
                    f"expected {expected_type.__name__}"
                )
        return decoded
