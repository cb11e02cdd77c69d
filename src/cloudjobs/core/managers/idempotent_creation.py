"""Find-or-create and reuse-before-allocate over asynchronous provider calls.

Both patterns share the same shape: validate the target scope before any
mutation, look for something usable, and only then submit a mutation whose
job is completed through the AsyncOperationCompleter.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from cloudjobs.core.exceptions import ResourceAlreadyExists
from cloudjobs.core.managers.operation_completer import AsyncOperationCompleter
from cloudjobs.core.settings import logger

SpecT = TypeVar("SpecT")
ScopeT = TypeVar("ScopeT")
ResourceT = TypeVar("ResourceT")


class IdempotentResourceCreator(ABC, Generic[SpecT, ResourceT]):
    """Returns the resource matching a spec, creating it only when absent.

    Subclasses provide the provider-specific steps; `ensure` fixes their order:
    1. check_preconditions - raise PreconditionUnmet before any mutation
    2. find_existing - reuse a match when there is one
    3. submit_create - otherwise create (finished resource or JobHandle)
    4. follow_up - mutations applied to the reused or created resource

    A create rejected with ResourceAlreadyExists means someone else won the
    race; the resource is looked up once more and the error only propagates
    when that lookup still finds nothing.
    """

    expected_type: Optional[Type[Any]] = None
    resource_type: str = "resource"

    def __init__(self, completer: AsyncOperationCompleter):
        self._completer = completer

    @abstractmethod
    async def check_preconditions(self, spec: SpecT) -> None:
        pass

    @abstractmethod
    async def find_existing(self, spec: SpecT) -> Optional[ResourceT]:
        pass

    @abstractmethod
    async def submit_create(self, spec: SpecT) -> Any:
        pass

    async def follow_up(self, spec: SpecT, resource: ResourceT) -> ResourceT:
        return resource

    async def ensure(self, spec: SpecT) -> ResourceT:
        await self.check_preconditions(spec)

        resource = await self.find_existing(spec)
        if resource is not None:
            logger.debug(f"[ensure] reusing existing {self.resource_type} spec={spec}")
        else:
            resource = await self._create_or_recover(spec)

        return await self.follow_up(spec, resource)

    async def _create_or_recover(self, spec: SpecT) -> ResourceT:
        try:
            submitted = await self.submit_create(spec)
        except ResourceAlreadyExists:
            logger.info(f"[ensure] {self.resource_type} created concurrently, looking it up again spec={spec}")
            resource = await self.find_existing(spec)
            if resource is None:
                raise
            return resource

        resource = await self._completer.complete_submission(submitted, self.expected_type)
        logger.info(f"[ensure] created {self.resource_type} spec={spec}")
        return resource


class ReuseOrAllocate(ABC, Generic[ScopeT, ResourceT]):
    """Returns an existing resource from a scope, allocating one only when none is free.

    When several candidates qualify, the first in the order the provider
    listed them is returned.
    """

    expected_type: Optional[Type[Any]] = None
    resource_type: str = "resource"

    def __init__(self, completer: AsyncOperationCompleter):
        self._completer = completer

    @abstractmethod
    async def check_preconditions(self, scope: ScopeT) -> None:
        pass

    @abstractmethod
    async def list_candidates(self, scope: ScopeT) -> Sequence[ResourceT]:
        pass

    @abstractmethod
    async def submit_allocation(self, scope: ScopeT) -> Any:
        pass

    async def obtain(self, scope: ScopeT) -> ResourceT:
        await self.check_preconditions(scope)

        candidates = list(await self.list_candidates(scope))
        if candidates:
            if len(candidates) > 1:
                logger.debug(
                    f"[obtain] {len(candidates)} reusable {self.resource_type}s, taking the first"
                )
            return candidates[0]

        submitted = await self.submit_allocation(scope)
        resource = await self._completer.complete_submission(submitted, self.expected_type)
        logger.info(f"[obtain] allocated new {self.resource_type}")
        return resource
