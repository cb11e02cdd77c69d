"""Domain resources produced by asynchronous jobs.

Field aliases follow the lowercase keys of CloudStack JSON responses so the
same models validate both raw job results and listing responses.
"""

from enum import StrEnum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class CloudStackModel(BaseModel):
    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }


class NetworkType(StrEnum):
    basic = "Basic"
    advanced = "Advanced"


class Zone(CloudStackModel):
    id: str
    name: Optional[str] = None
    network_type: NetworkType = Field(NetworkType.basic, alias="networktype")
    security_groups_enabled: bool = Field(False, alias="securitygroupsenabled")


class Network(CloudStackModel):
    id: str
    name: Optional[str] = None
    zone_id: str = Field(alias="zoneid")


class PublicIPAddress(CloudStackModel):
    id: str
    ip_address: str = Field(alias="ipaddress")
    allocated: Optional[str] = None
    zone_id: Optional[str] = Field(None, alias="zoneid")
    network_id: Optional[str] = Field(None, alias="associatednetworkid")
    is_source_nat: bool = Field(False, alias="issourcenat")
    is_static_nat: bool = Field(False, alias="isstaticnat")
    state: Optional[str] = None
    virtual_machine_id: Optional[str] = Field(None, alias="virtualmachineid")
    job_id: Optional[str] = Field(None, alias="jobid")


class PortForwardingRule(CloudStackModel):
    id: str
    ip_address_id: str = Field(alias="ipaddressid")
    ip_address: Optional[str] = Field(None, alias="ipaddress")
    private_port: int = Field(alias="privateport")
    public_port: int = Field(alias="publicport")
    protocol: str = "tcp"
    state: Optional[str] = None
    virtual_machine_id: Optional[str] = Field(None, alias="virtualmachineid")
    cidrs: List[str] = Field(default_factory=list, alias="cidrlist")

    @field_validator("cidrs", mode="before")
    @classmethod
    def _split_cidr_list(cls, value):
        # CloudStack sends cidrlist as a comma separated string
        if isinstance(value, str):
            return [cidr.strip() for cidr in value.split(",") if cidr.strip()]
        return value


class Template(CloudStackModel):
    id: str
    name: Optional[str] = None
    display_text: Optional[str] = Field(None, alias="displaytext")
    zone_id: Optional[str] = Field(None, alias="zoneid")
    os_type_id: Optional[str] = Field(None, alias="ostypeid")
    format: Optional[str] = None
    hypervisor: Optional[str] = None
    status: Optional[str] = None
    ready: bool = Field(False, alias="isready")
    password_enabled: bool = Field(False, alias="passwordenabled")


class IngressRule(CloudStackModel):
    rule_id: Optional[str] = Field(None, alias="ruleid")
    protocol: str = "tcp"
    start_port: Optional[int] = Field(None, alias="startport")
    end_port: Optional[int] = Field(None, alias="endport")
    cidr: Optional[str] = None

    def covers(self, port: int, cidr: str, protocol: str = "tcp") -> bool:
        if self.protocol.lower() != protocol.lower() or self.cidr != cidr:
            return False
        if self.start_port is None or self.end_port is None:
            return False
        return self.start_port <= port <= self.end_port


class SecurityGroup(CloudStackModel):
    id: str
    name: str
    description: Optional[str] = None
    account: Optional[str] = None
    ingress_rules: List[IngressRule] = Field(default_factory=list, alias="ingressrule")

    def authorizes(self, port: int, cidr: str) -> bool:
        return any(rule.covers(port, cidr) for rule in self.ingress_rules)


class VirtualMachine(CloudStackModel):
    id: str
    name: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayname")
    state: Optional[str] = None
    zone_id: Optional[str] = Field(None, alias="zoneid")
    template_id: Optional[str] = Field(None, alias="templateid")
    service_offering_id: Optional[str] = Field(None, alias="serviceofferingid")
    password: Optional[str] = None
    password_enabled: bool = Field(False, alias="passwordenabled")
    public_ip: Optional[str] = Field(None, alias="publicip")
    public_ip_id: Optional[str] = Field(None, alias="publicipid")
    security_groups: List[SecurityGroup] = Field(default_factory=list, alias="securitygroup")


class SuccessResponse(CloudStackModel):
    success: bool
    display_text: Optional[str] = Field(None, alias="displaytext")
