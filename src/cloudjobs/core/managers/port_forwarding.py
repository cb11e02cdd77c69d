"""Port forwarding rules from a public IP to a virtual machine."""

from typing import Iterable, List

from cloudjobs.core.interfaces.resources import PortForwardingPort
from cloudjobs.core.managers.operation_completer import AsyncOperationCompleter
from cloudjobs.core.models.resources import PortForwardingRule, PublicIPAddress
from cloudjobs.core.settings import logger


class PortForwardingRulesForIP:
    """Forwards each given port of a public IP to the same port of a VM.

    All rules are submitted before any job is awaited; the jobs are then
    completed in submission order.
    """

    def __init__(self, completer: AsyncOperationCompleter, port_forwarding: PortForwardingPort):
        self._completer = completer
        self._port_forwarding = port_forwarding

    async def create(
        self,
        ip: PublicIPAddress,
        virtual_machine_id: str,
        ports: Iterable[int],
        protocol: str = "tcp",
    ) -> List[PortForwardingRule]:
        submitted = []
        for port in ports:
            logger.debug(
                f"[port-forwarding] submitting ip={ip.ip_address} port={port} vm_id={virtual_machine_id}"
            )
            submitted.append(
                await self._port_forwarding.create_port_forwarding_rule(
                    ip.id, protocol, port, virtual_machine_id, port
                )
            )

        rules = []
        for job in submitted:
            rules.append(await self._completer.complete_submission(job, PortForwardingRule))
        return rules
