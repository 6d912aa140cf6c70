"""
Network module constants

Routing-table query, interface state location and the diagnostic endpoint.
"""
from typing import List, Tuple

# ── Routing table ───────────────────────────────────────────
DEFAULT_ROUTE_CMD: List[str] = ["ip", "-4", "route", "list", "default"]

# ── Interface operational state ─────────────────────────────
# /sys/class/net/<iface>/operstate: up, down, dormant, unknown, ...
OPERSTATE_FILENAME = "operstate"
OPERSTATE_DOWN = "down"

# ── Connectivity test ───────────────────────────────────────
TOR_CHECK_URL = "https://check.torproject.org/api/ip"

CONNECTIVITY_TOOLS: Tuple[str, ...] = ("torsocks", "curl")

