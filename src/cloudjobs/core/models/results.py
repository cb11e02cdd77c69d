"""Known result kinds of asynchronous jobs and the opaque fallback variant."""

import json
from enum import StrEnum
from typing import Any, Dict, FrozenSet, Optional, Type

from pydantic import BaseModel

from cloudjobs.core.models.resources import (
    PortForwardingRule,
    PublicIPAddress,
    SecurityGroup,
    SuccessResponse,
    Template,
    VirtualMachine,
)


class ResultKind(StrEnum):
    """Explicit sum type of decodable job results.

    Values are the wrapper keys CloudStack uses inside `jobresult`.
    """

    public_ip_address = "ipaddress"
    port_forwarding_rule = "portforwardingrule"
    template = "template"
    virtual_machine = "virtualmachine"
    security_group = "securitygroup"
    success = "success"
    opaque = "opaque"

    @classmethod
    def from_hint(cls, hint: Optional[str]) -> Optional["ResultKind"]:
        """Resolve a provider type hint ("IpAddress", "VirtualMachine", ...) to a kind."""
        if not hint:
            return None
        normalized = hint.replace("_", "").replace("-", "").replace(" ", "").lower()
        for kind in cls:
            if kind is not cls.opaque and kind.value == normalized:
                return kind
        return None


RESULT_MODELS: Dict[ResultKind, Type[BaseModel]] = {
    ResultKind.public_ip_address: PublicIPAddress,
    ResultKind.port_forwarding_rule: PortForwardingRule,
    ResultKind.template: Template,
    ResultKind.virtual_machine: VirtualMachine,
    ResultKind.security_group: SecurityGroup,
    ResultKind.success: SuccessResponse,
}

# Keys whose joint presence identifies an unwrapped result object.
RESULT_SIGNATURES: Dict[ResultKind, FrozenSet[str]] = {
    ResultKind.port_forwarding_rule: frozenset({"privateport", "publicport", "ipaddressid"}),
    ResultKind.public_ip_address: frozenset({"ipaddress", "issourcenat"}),
    ResultKind.virtual_machine: frozenset({"serviceofferingid", "templateid"}),
    ResultKind.template: frozenset({"ostypeid", "isready"}),
    ResultKind.security_group: frozenset({"name", "ingressrule"}),
    ResultKind.success: frozenset({"success"}),
}


class OpaqueResult(BaseModel):
    """Result payload that matched no known kind, kept verbatim."""

    data: Any
    result_type: Optional[str] = None

    model_config = {"frozen": True}

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        if isinstance(self.data, dict):
            return self.data.get(key, default)
        return default

    def __str__(self) -> str:
        return json.dumps(self.data, sort_keys=True, default=str)


class DecodedResult(BaseModel):
    kind: Optional[ResultKind] = None
    value: Any
