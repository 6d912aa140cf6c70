"""
Schema & type definitions

Kept in one place:
- ActionKind:     operations the CLI can resolve to (numeric ids double as elevation tokens)
- ServiceAction:  verbs passed to the service manager
- ServiceOutcome: tri-state result of a service action
- SystemctlExit:  service manager exit codes with a dedicated meaning
- NetworkManifest: pydantic validation of lib/network/manifest.yaml
"""
import ipaddress
import re
from enum import Enum, IntEnum

from pydantic import BaseModel, Field, field_validator, model_validator


# ============================================================
# Actions
# ============================================================
class ActionKind(IntEnum):
    """
    Operations resolved from the command line.

    1-3 need elevated privilege; their numeric value is the token passed
    across the sudo boundary, so these values must stay stable.
    """
    PROVISION_PROXY = 1
    CHANGE_EXIT_REGION = 2
    RESTART_ANONYMITY_SERVICE = 3
    TEST_CONNECTIVITY = 4
    QUERY_REGIONS = 5
    SHOW_VERSION = 6
    SHOW_USAGE = 7

    @property
    def requires_privilege(self) -> bool:
        return self in PRIVILEGED_ACTIONS


PRIVILEGED_ACTIONS = frozenset({
    ActionKind.PROVISION_PROXY,
    ActionKind.CHANGE_EXIT_REGION,
    ActionKind.RESTART_ANONYMITY_SERVICE,
})


# ============================================================
# Service manager
# ============================================================
class ServiceAction(str, Enum):
    START = "start"
    STOP = "stop"
    ENABLE = "enable"
    DISABLE = "disable"
    RESTART = "restart"


class ServiceOutcome(str, Enum):
    SUCCESS = "success"
    SOFT_FAILURE = "soft_failure"
    FATAL = "fatal"


class SystemctlExit(IntEnum):
    """LSB exit codes systemctl reports for unit operations"""
    SUCCESS = 0
    NOT_ACTIVE = 3
    NOT_INSTALLED = 5


# ============================================================
# Network manifest
# ============================================================
_REGION_CODE = re.compile(r"^[A-Za-z]{2}$")
_LEASE_TIME = re.compile(r"^(infinite|\d+[smhd]?)$")


class NetworkManifest(BaseModel):
    """Top-level structure of lib/network/manifest.yaml"""
    default_exit_region: str = "us"
    client_interface: str = "eth0"
    client_subnet: str = "192.168.2.0/24"
    client_gateway: str = "192.168.2.1"
    dhcp_range_start: str = "192.168.2.10"
    dhcp_range_end: str = "192.168.2.200"
    dhcp_lease_time: str = "24h"
    dns_server: str = "1.1.1.1"
    transport_port: int = Field(default=9040, ge=1, le=65535)
    dns_port: int = Field(default=53, ge=1, le=65535)
    anonymity_service: str = "tor"
    dhcp_service: str = "dnsmasq"

    @field_validator("default_exit_region")
    @classmethod
    def region_is_two_letters(cls, v: str) -> str:
        if not _REGION_CODE.match(v):
            raise ValueError(f"exit region must be a two letter code, got '{v}'")
        return v.lower()

    @field_validator("client_interface")
    @classmethod
    def interface_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("client_interface must not be empty")
        return v.strip()

    @field_validator("client_subnet")
    @classmethod
    def subnet_is_ipv4_network(cls, v: str) -> str:
        ipaddress.IPv4Network(v, strict=True)
        return v

    @field_validator("client_gateway", "dhcp_range_start", "dhcp_range_end", "dns_server")
    @classmethod
    def is_ipv4_address(cls, v: str) -> str:
        ipaddress.IPv4Address(v)
        return v

    @field_validator("dhcp_lease_time")
    @classmethod
    def lease_time_format(cls, v: str) -> str:
        if not _LEASE_TIME.match(v):
            raise ValueError(f"dhcp_lease_time must look like '24h', '45m' or 'infinite', got '{v}'")
        return v

    @model_validator(mode="after")
    def addresses_inside_subnet(self) -> "NetworkManifest":
        net = ipaddress.IPv4Network(self.client_subnet)
        start = ipaddress.IPv4Address(self.dhcp_range_start)
        end = ipaddress.IPv4Address(self.dhcp_range_end)
        gateway = ipaddress.IPv4Address(self.client_gateway)

        for name, addr in (("client_gateway", gateway), ("dhcp_range_start", start), ("dhcp_range_end", end)):
            if addr not in net:
                raise ValueError(f"{name} {addr} is outside {net}")
        if start > end:
            raise ValueError(f"dhcp range start {start} is after end {end}")
        if start <= gateway <= end:
            raise ValueError(f"gateway {gateway} lies inside the dhcp range")
        return self
