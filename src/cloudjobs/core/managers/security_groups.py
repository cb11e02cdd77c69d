"""Find-or-create for security groups, with TCP ingress authorization."""

from typing import FrozenSet, List, Optional

from pydantic import BaseModel, Field, field_validator

from cloudjobs.core.exceptions import PreconditionUnmet
from cloudjobs.core.interfaces.resources import SecurityGroupsPort, ZonesPort
from cloudjobs.core.managers.idempotent_creation import IdempotentResourceCreator
from cloudjobs.core.managers.operation_completer import AsyncOperationCompleter
from cloudjobs.core.models.resources import SecurityGroup
from cloudjobs.core.settings import logger

DEFAULT_CIDR = "0.0.0.0/0"


class SecurityGroupSpec(BaseModel):
    """Desired security group: a name in a zone with TCP ports open to cidrs."""

    zone_id: str
    name: str
    ports: FrozenSet[int] = Field(default_factory=frozenset)
    cidrs: FrozenSet[str] = Field(default_factory=lambda: frozenset({DEFAULT_CIDR}))

    model_config = {"frozen": True}

    @field_validator("cidrs", mode="after")
    @classmethod
    def _default_cidrs(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        return value or frozenset({DEFAULT_CIDR})

    @field_validator("ports", mode="after")
    @classmethod
    def _check_ports(cls, value: FrozenSet[int]) -> FrozenSet[int]:
        for port in value:
            if not 0 < port < 65536:
                raise ValueError(f"port out of range: {port}")
        return value

    def __str__(self) -> str:
        return f"{self.name}@{self.zone_id}"


class FindSecurityGroupOrCreate(IdempotentResourceCreator[SecurityGroupSpec, SecurityGroup]):
    expected_type = SecurityGroup
    resource_type = "security group"

    def __init__(
        self,
        completer: AsyncOperationCompleter,
        zones: ZonesPort,
        security_groups: SecurityGroupsPort,
    ):
        super().__init__(completer)
        self._zones = zones
        self._groups = security_groups

    async def check_preconditions(self, spec: SecurityGroupSpec) -> None:
        zone = await self._zones.get_zone(spec.zone_id)
        if not zone.security_groups_enabled:
            raise PreconditionUnmet(f"Zone {spec.zone_id} does not support security groups")

    async def find_existing(self, spec: SecurityGroupSpec) -> Optional[SecurityGroup]:
        return await self._groups.get_security_group_by_name(spec.name)

    async def submit_create(self, spec: SecurityGroupSpec):
        logger.debug(f"[security-group] creating name={spec.name} zone_id={spec.zone_id}")
        return await self._groups.create_security_group(spec.name)

    async def follow_up(self, spec: SecurityGroupSpec, resource: SecurityGroup) -> SecurityGroup:
        for port in sorted(spec.ports):
            missing = self._missing_cidrs(resource, port, spec.cidrs)
            if not missing:
                continue
            logger.debug(
                f"[security-group] authorizing group_id={resource.id} port={port} cidrs={missing}"
            )
            handle = await self._groups.authorize_ingress_ports_to_cidrs(
                resource.id, "TCP", port, port, missing
            )
            await self._completer.complete(handle)
        return resource

    @staticmethod
    def _missing_cidrs(group: SecurityGroup, port: int, cidrs: FrozenSet[str]) -> List[str]:
        return [cidr for cidr in sorted(cidrs) if not group.authorizes(port, cidr)]
