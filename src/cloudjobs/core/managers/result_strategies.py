"""Concrete implementations of result decoding strategies.

Matchers are tried in this order by the JobResultResolver:
1. ExpectedTypeMatcher: caller-supplied pydantic model
2. DiscriminatorMatcher: provider type hint (result_type / instance_type)
3. WrapperKeyMatcher: `{"<kind>": {...}}` wrapper
4. FieldSignatureMatcher: unwrapped object with a kind's signature keys
5. ScalarMatcher: strings, numbers, booleans and empty results
6. OpaqueFallbackMatcher: everything else, preserved verbatim

A matcher that cannot validate the payload returns None so the chain moves on;
validation errors never leave this module.
"""

from typing import Any, Optional, Type

from pydantic import BaseModel, ValidationError

from cloudjobs.core.interfaces.result_decoding import ResultDecodingContext
from cloudjobs.core.models.results import (
    RESULT_MODELS,
    RESULT_SIGNATURES,
    DecodedResult,
    OpaqueResult,
    ResultKind,
)
from cloudjobs.core.settings import logger


def _validate(model: Type[BaseModel], data: Any, job_id: str) -> Optional[BaseModel]:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.debug(
            f"[result:decode] {model.__name__} rejected payload job_id={job_id} errors={exc.error_count()}"
        )
        return None


def _kind_of(model: Type[Any]) -> Optional[ResultKind]:
    for kind, candidate in RESULT_MODELS.items():
        if candidate is model:
            return kind
    return None


class ExpectedTypeMatcher:
    def can_decode(self, context: ResultDecodingContext) -> bool:
        return context.expects_model and isinstance(context.inner, dict)

    def decode(self, context: ResultDecodingContext) -> Optional[DecodedResult]:
        value = _validate(context.expected_type, context.inner, context.record.id)
        if value is None:
            return None
        return DecodedResult(kind=_kind_of(context.expected_type), value=value)


class DiscriminatorMatcher:
    """Uses the provider's explicit type hint, when it names a known kind."""

    def _hinted_kind(self, context: ResultDecodingContext) -> Optional[ResultKind]:
        return ResultKind.from_hint(context.record.result_type) or ResultKind.from_hint(
            context.record.instance_type
        )

    def can_decode(self, context: ResultDecodingContext) -> bool:
        return isinstance(context.payload, dict) and self._hinted_kind(context) is not None

    def decode(self, context: ResultDecodingContext) -> Optional[DecodedResult]:
        kind = self._hinted_kind(context)
        payload = context.payload
        data = payload[kind.value] if isinstance(payload.get(kind.value), dict) else context.inner
        if not isinstance(data, dict):
            return None
        value = _validate(RESULT_MODELS[kind], data, context.record.id)
        if value is None:
            return None
        return DecodedResult(kind=kind, value=value)


class WrapperKeyMatcher:
    def can_decode(self, context: ResultDecodingContext) -> bool:
        return ResultKind.from_hint(context.wrapper_key) is not None

    def decode(self, context: ResultDecodingContext) -> Optional[DecodedResult]:
        kind = ResultKind.from_hint(context.wrapper_key)
        value = _validate(RESULT_MODELS[kind], context.inner, context.record.id)
        if value is None:
            return None
        return DecodedResult(kind=kind, value=value)


class FieldSignatureMatcher:
    def can_decode(self, context: ResultDecodingContext) -> bool:
        return isinstance(context.inner, dict)

    def decode(self, context: ResultDecodingContext) -> Optional[DecodedResult]:
        keys = set(context.inner.keys())
        for kind, signature in RESULT_SIGNATURES.items():
            if not signature.issubset(keys):
                continue
            value = _validate(RESULT_MODELS[kind], context.inner, context.record.id)
            if value is not None:
                return DecodedResult(kind=kind, value=value)
        return None


class ScalarMatcher:
    def can_decode(self, context: ResultDecodingContext) -> bool:
        return context.payload is None or isinstance(context.payload, (str, int, float, bool))

    def decode(self, context: ResultDecodingContext) -> Optional[DecodedResult]:
        return DecodedResult(kind=ResultKind.opaque, value=context.payload)


class OpaqueFallbackMatcher:
    """Catch-all: keeps the raw structure so no result is ever dropped."""

    def can_decode(self, context: ResultDecodingContext) -> bool:
        return True

    def decode(self, context: ResultDecodingContext) -> Optional[DecodedResult]:
        logger.debug(
            f"[result:decode] no known shape, keeping opaque result job_id={context.record.id} "
            f"payload_type={type(context.payload).__name__}"
        )
        return DecodedResult(
            kind=ResultKind.opaque,
            value=OpaqueResult(data=context.payload, result_type=context.record.result_type),
        )
