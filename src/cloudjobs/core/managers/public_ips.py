"""Reuse an allocated public IP address of a network, or associate a new one."""

from typing import List

from cloudjobs.core.exceptions import PreconditionUnmet
from cloudjobs.core.interfaces.resources import AddressesPort, ZonesPort
from cloudjobs.core.managers.idempotent_creation import ReuseOrAllocate
from cloudjobs.core.managers.operation_completer import AsyncOperationCompleter
from cloudjobs.core.models.resources import Network, NetworkType, PublicIPAddress
from cloudjobs.core.settings import logger


class ReuseOrAssociateNewPublicIp(ReuseOrAllocate[Network, PublicIPAddress]):
    """Hands out a free public IP of a network.

    An address is free when it is allocated to the network, is not its source
    NAT address, is not used for static NAT and has no virtual machine bound.
    """

    expected_type = PublicIPAddress
    resource_type = "public ip address"

    def __init__(
        self,
        completer: AsyncOperationCompleter,
        zones: ZonesPort,
        addresses: AddressesPort,
    ):
        super().__init__(completer)
        self._zones = zones
        self._addresses = addresses

    async def check_preconditions(self, scope: Network) -> None:
        zone = await self._zones.get_zone(scope.zone_id)
        if zone.network_type != NetworkType.advanced:
            raise PreconditionUnmet(
                f"Zone {scope.zone_id} uses {zone.network_type} networking; "
                "public IP addresses need an advanced zone"
            )

    async def list_candidates(self, scope: Network) -> List[PublicIPAddress]:
        addresses = await self._addresses.list_public_ip_addresses(scope.id, allocated_only=True)
        return [address for address in addresses if self._is_free(address, scope)]

    async def submit_allocation(self, scope: Network):
        logger.debug(f"[public-ip] associating new address zone_id={scope.zone_id} network_id={scope.id}")
        return await self._addresses.associate_ip_address_in_zone(scope.zone_id, network_id=scope.id)

    @staticmethod
    def _is_free(address: PublicIPAddress, network: Network) -> bool:
        if address.network_id is not None and address.network_id != network.id:
            return False
        return not (address.is_source_nat or address.is_static_nat or address.virtual_machine_id)
