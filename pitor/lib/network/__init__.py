"""
Network - host topology and connectivity

Module layout:
- config.py        constants (route query, operstate, check endpoint)
- topology.py      internet/client interface detection
- connectivity.py  proxied check request + response schema
- manifest.yaml    client network settings (validated by core.schema.NetworkManifest)
"""
from pitor.lib.network.connectivity import TorCheckResponse, check_connection, require_tools
from pitor.lib.network.topology import (
    Topology,
    detect_internet_interface,
    detect_topology,
    is_client_link_up,
)

__all__ = [
    "Topology",
    "TorCheckResponse",
    "check_connection",
    "detect_internet_interface",
    "detect_topology",
    "is_client_link_up",
    "require_tools",
]
