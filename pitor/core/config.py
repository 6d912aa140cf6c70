"""
Run configuration

ProxyConfig and SystemPaths are immutable and built once per run, then
carried on AppContext. Nothing reads module-level mutable settings.

Sources:
- pitor/lib/network/manifest.yaml  (client network, ports, service names)
- pitor/addons/*/manifest.yaml     (per-addon settings, read via BaseAddon.get_manifest)
"""
import dataclasses
import ipaddress
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from pitor.core.errors import PreconditionFailure
from pitor.core.schema import NetworkManifest

# Directory holding core/, lib/ and addons/
PACKAGE_ROOT = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class ProxyConfig:
    """Parameters every artifact is rendered from"""

    exit_region: str
    client_interface: str
    client_subnet: str        # network address, e.g. 192.168.2.0
    client_gateway: str
    subnet_mask: str
    cidr: int
    dhcp_range_start: str
    dhcp_range_end: str
    dhcp_lease_time: str
    dns_server: str
    transport_port: int
    dns_port: int
    anonymity_service: str = "tor"
    dhcp_service: str = "dnsmasq"

    @property
    def managed_services(self) -> Tuple[str, str]:
        return (self.anonymity_service, self.dhcp_service)

    def with_exit_region(self, region: str) -> "ProxyConfig":
        return dataclasses.replace(self, exit_region=region.lower())


@dataclass(frozen=True)
class SystemPaths:
    """Well-known files this tool owns or touches"""

    dhcpcd_conf: Path = Path("/etc/dhcpcd.conf")
    dnsmasq_conf: Path = Path("/etc/dnsmasq.conf")
    iptables_rules_v4: Path = Path("/etc/iptables/rules.v4")
    iptables_rules_v6: Path = Path("/etc/iptables/rules.v6")
    torrc: Path = Path("/etc/tor/torrc")
    tor_log: Path = Path("/var/log/tor/notices.log")
    sysctl_conf: Path = Path("/etc/sysctl.d/local.conf")
    keyboard_default: Path = Path("/etc/default/keyboard")
    modprobe_blacklist: Path = Path("/etc/modprobe.d/raspi-blacklist.conf")
    sys_class_net: Path = Path("/sys/class/net")

    @classmethod
    def under(cls, root: Path) -> "SystemPaths":
        """Re-root every default path below `root` (tests, image builds)"""
        defaults = cls()
        return cls(**{
            f.name: root / getattr(defaults, f.name).relative_to("/")
            for f in dataclasses.fields(cls)
        })


def load_manifests(package_root: Path = PACKAGE_ROOT) -> Dict[str, Dict[str, Any]]:
    """
    Pre-load every module's manifest.yaml as the single config source.

    Scans:
        1. pitor/addons/*/manifest.yaml - addon settings
        2. pitor/lib/*/manifest.yaml    - library settings

    Keys are the module directory names, e.g. "tor", "network".
    """
    config_logger = logging.getLogger("pitor")
    manifests: Dict[str, Dict[str, Any]] = {}

    for parent_dir in (package_root / "addons", package_root / "lib"):
        if not parent_dir.exists():
            continue
        for module_dir in sorted(parent_dir.iterdir()):
            if not module_dir.is_dir():
                continue
            manifest_file = module_dir / "manifest.yaml"
            if manifest_file.exists():
                with open(manifest_file, "r", encoding="utf-8") as f:
                    manifests[module_dir.name] = yaml.safe_load(f) or {}
                config_logger.debug(f"  -> [Manifest] loaded: {manifest_file.relative_to(package_root)}")

    return manifests


def build_proxy_config(
    manifests: Dict[str, Dict[str, Any]],
    exit_region: Optional[str] = None,
) -> ProxyConfig:
    """Validate the network manifest and freeze it into a ProxyConfig

    Args:
        manifests: output of load_manifests()
        exit_region: overrides the manifest's default_exit_region

    Raises:
        PreconditionFailure: the manifest does not describe a usable network
    """
    try:
        manifest = NetworkManifest.model_validate(manifests.get("network", {}))
    except ValidationError as e:
        raise PreconditionFailure(
            f"lib/network/manifest.yaml is invalid:\n{e}",
            "Fix the network manifest and run again",
        ) from e

    net = ipaddress.IPv4Network(manifest.client_subnet)

    return ProxyConfig(
        exit_region=(exit_region or manifest.default_exit_region).lower(),
        client_interface=manifest.client_interface,
        client_subnet=str(net.network_address),
        client_gateway=manifest.client_gateway,
        subnet_mask=str(net.netmask),
        cidr=net.prefixlen,
        dhcp_range_start=manifest.dhcp_range_start,
        dhcp_range_end=manifest.dhcp_range_end,
        dhcp_lease_time=manifest.dhcp_lease_time,
        dns_server=manifest.dns_server,
        transport_port=manifest.transport_port,
        dns_port=manifest.dns_port,
        anonymity_service=manifest.anonymity_service,
        dhcp_service=manifest.dhcp_service,
    )
