"""
Connectivity test through the anonymity network

Sends one request to the Tor Project check endpoint via torsocks + curl and
validates the JSON body against TorCheckResponse. A body that does not
match the schema fails loudly instead of yielding a garbled address.
"""
import logging
import shutil
from typing import Callable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, ValidationError

from pitor.core.errors import ConnectivityFailure, ToolingUnavailable
from pitor.core.ports import ICommandRunner
from pitor.lib.network.config import CONNECTIVITY_TOOLS, TOR_CHECK_URL

logger = logging.getLogger("pitor")

_NO_RELAY_HINT = (
    "It's possible Tor isn't running or there aren't active Tor exit relays "
    "in the selected exit region"
)


class TorCheckResponse(BaseModel):
    """Body of https://check.torproject.org/api/ip"""
    model_config = ConfigDict(populate_by_name=True)

    is_tor: bool = Field(alias="IsTor")
    ip: IPvAnyAddress = Field(alias="IP")


def require_tools(
    tools: Sequence[str] = CONNECTIVITY_TOOLS,
    which: Optional[Callable[[str], Optional[str]]] = None,
) -> None:
    """Fail before any request when a required executable is missing

    Raises:
        ToolingUnavailable: naming the first missing tool
    """
    which = which or shutil.which
    for tool in tools:
        if which(tool) is None:
            raise ToolingUnavailable(tool)


def check_connection(cmd: ICommandRunner, url: str = TOR_CHECK_URL) -> TorCheckResponse:
    """Fetch the externally visible address through Tor

    Raises:
        ToolingUnavailable: torsocks or curl is missing
        ConnectivityFailure: request failed, body malformed, or traffic is not exiting via Tor
    """
    require_tools()

    result = cmd.run(["torsocks", "-q", "curl", "-s", url], check=False)
    if result.returncode != 0:
        raise ConnectivityFailure("Failed to connect to the Tor network", _NO_RELAY_HINT)

    try:
        response = TorCheckResponse.model_validate_json(result.stdout)
    except ValidationError as e:
        logger.debug(f"  -> unexpected body from {url}: {result.stdout!r}")
        raise ConnectivityFailure(
            f"Unexpected response from {url}: {e.error_count()} field error(s)",
            "The check endpoint may have changed its response format",
        ) from e

    if not response.is_tor:
        raise ConnectivityFailure(
            f"Connected, but traffic is not leaving through Tor (IP {response.ip})",
            "Restart the Tor service and make sure the TransPort redirection is loaded",
        )

    return response
