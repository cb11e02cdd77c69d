"""Protocol for job result decoding strategies.

Defines the interface for the matchers that map an untyped job result onto a
known result kind, following the Strategy pattern.
"""

from typing import Any, Optional, Protocol, Type

from pydantic import BaseModel

from cloudjobs.core.models.job import JobRecord
from cloudjobs.core.models.results import DecodedResult


class ResultDecodingContext:
    """Context object containing all data needed to decode a job result.

    Also pre-computes the unwrapped payload: when the raw result is an object
    with a single key wrapping another object (CloudStack's
    `{"virtualmachine": {...}}`), `wrapper_key` and `inner` expose both parts.
    """

    def __init__(
        self,
        record: JobRecord,
        expected_type: Optional[Type[Any]] = None,
    ):
        self.record = record
        self.expected_type = expected_type
        self.payload = record.result

        self.wrapper_key: Optional[str] = None
        self.inner: Any = self.payload
        if isinstance(self.payload, dict) and len(self.payload) == 1:
            key, value = next(iter(self.payload.items()))
            if isinstance(value, dict):
                self.wrapper_key = key
                self.inner = value

    @property
    def expects_model(self) -> bool:
        return isinstance(self.expected_type, type) and issubclass(self.expected_type, BaseModel)


class ResultShapeMatcher(Protocol):
    """Protocol defining the interface for result decoding strategies.

    Each matcher handles one way of recognising a result:
    - ExpectedTypeMatcher: caller told us which model to expect
    - DiscriminatorMatcher: provider type hint names a known kind
    - WrapperKeyMatcher: result object wrapped under a known kind key
    - FieldSignatureMatcher: unwrapped object carries a kind's signature fields
    - ScalarMatcher: plain string/number/bool results
    - OpaqueFallbackMatcher: anything else, kept verbatim
    """

    def can_decode(self, context: ResultDecodingContext) -> bool:
        """Check if this matcher should attempt the given context."""
        ...

    def decode(self, context: ResultDecodingContext) -> Optional[DecodedResult]:
        """Decode the payload, or return None to let the next matcher try."""
        ...
