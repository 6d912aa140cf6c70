"""
Network topology detection

- internet-facing interface: outgoing device of the IPv4 default route
- client-facing interface:   fixed by configuration, only its link state is probed

Detected fresh on every provisioning run, never cached.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pitor.core.errors import NoInternetRoute
from pitor.core.ports import ICommandRunner
from pitor.lib.network.config import DEFAULT_ROUTE_CMD, OPERSTATE_DOWN, OPERSTATE_FILENAME

logger = logging.getLogger("pitor")


@dataclass(frozen=True)
class Topology:
    internet_interface: str
    client_interface: str
    client_link_up: bool


def detect_internet_interface(cmd: ICommandRunner) -> str:
    """Return the interface of the IPv4 default route

    Expected line: "default via 192.168.1.1 dev wlan0 proto dhcp metric 600".
    The first default route wins. No retry: a missing route at boot is the
    usual cause and the operator is told to try again.

    Raises:
        NoInternetRoute: no default route, or the line has no device field
    """
    result = cmd.run(DEFAULT_ROUTE_CMD, check=False)
    if result.returncode != 0:
        raise NoInternetRoute(f"Failed to read the routing table: {result.stderr.strip() or result.returncode}")

    for line in result.stdout.splitlines():
        tokens = line.split()
        if not tokens or tokens[0] != "default":
            continue
        if "dev" in tokens:
            idx = tokens.index("dev")
            if idx + 1 < len(tokens):
                return tokens[idx + 1]
        raise NoInternetRoute(f"Default route has no outgoing interface: '{line.strip()}'")

    raise NoInternetRoute()


def read_operstate(interface: str, sys_class_net: Path) -> Optional[str]:
    """Read /sys/class/net/<iface>/operstate, None when unreadable"""
    try:
        return (sys_class_net / interface / OPERSTATE_FILENAME).read_text(encoding="utf-8").strip().lower()
    except OSError as e:
        logger.debug(f"  -> cannot read operstate of {interface}: {e}")
        return None


def is_client_link_up(interface: str, sys_class_net: Path = Path("/sys/class/net")) -> bool:
    """Only an explicit "down" fails

    "up" passes, and so do "unknown", "dormant" or an unreadable state.
    Unknown states are accepted rather than rejected.
    """
    state = read_operstate(interface, sys_class_net)
    if state is None:
        logger.warning(f"  -> [WARN] Link state of '{interface}' is unknown, assuming a client is attached")
        return True
    if state != OPERSTATE_DOWN and state != "up":
        logger.debug(f"  -> '{interface}' operstate is '{state}', treated as up")
    return state != OPERSTATE_DOWN


def detect_topology(
    cmd: ICommandRunner,
    client_interface: str,
    sys_class_net: Path = Path("/sys/class/net"),
) -> Topology:
    return Topology(
        internet_interface=detect_internet_interface(cmd),
        client_interface=client_interface,
        client_link_up=is_client_link_up(client_interface, sys_class_net),
    )
