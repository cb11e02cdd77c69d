"""Ports for the provider calls used around asynchronous jobs.

These are realised by provider client code outside this library. Mutating
calls return either a finished resource or a `JobHandle` to be completed.
Create calls raise `ResourceAlreadyExists` when the identity is taken.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence, Union

from cloudjobs.core.models.job import JobHandle
from cloudjobs.core.models.resources import (
    PortForwardingRule,
    PublicIPAddress,
    SecurityGroup,
    Zone,
)


class ZonesPort(ABC):
    @abstractmethod
    async def get_zone(self, zone_id: str) -> Zone:
        pass


class SecurityGroupsPort(ABC):
    @abstractmethod
    async def get_security_group_by_name(self, name: str) -> Optional[SecurityGroup]:
        """Return the named group or None when it does not exist."""
        pass

    @abstractmethod
    async def create_security_group(self, name: str) -> Union[SecurityGroup, JobHandle]:
        pass

    @abstractmethod
    async def authorize_ingress_ports_to_cidrs(
        self,
        security_group_id: str,
        protocol: str,
        start_port: int,
        end_port: int,
        cidrs: Iterable[str],
    ) -> JobHandle:
        pass


class AddressesPort(ABC):
    @abstractmethod
    async def list_public_ip_addresses(
        self, network_id: str, allocated_only: bool = True
    ) -> Sequence[PublicIPAddress]:
        pass

    @abstractmethod
    async def associate_ip_address_in_zone(
        self, zone_id: str, network_id: Optional[str] = None
    ) -> Union[PublicIPAddress, JobHandle]:
        pass


class PortForwardingPort(ABC):
    @abstractmethod
    async def create_port_forwarding_rule(
        self,
        ip_address_id: str,
        protocol: str,
        public_port: int,
        virtual_machine_id: str,
        private_port: int,
    ) -> Union[PortForwardingRule, JobHandle]:
        pass
