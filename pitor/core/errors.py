"""
Error taxonomy

Every fatal condition is a PitorError carrying an optional guidance line
that tells the operator how to correct it. Soft degradations are never
raised, they are logged as warnings and the run continues.
"""
from typing import Optional


class PitorError(Exception):
    """Base class for all fatal conditions"""

    def __init__(self, message: str, guidance: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.guidance = guidance


class PreconditionFailure(PitorError):
    """User-correctable input or host state (invalid region, link down, missing config)"""


class ToolingUnavailable(PitorError):
    """A required external executable is missing"""

    def __init__(self, tool: str, guidance: Optional[str] = None) -> None:
        super().__init__(f"{tool} is not available", guidance or f"Install it with 'apt-get install -y {tool}'")
        self.tool = tool


class EscalatedServiceFailure(PitorError):
    """A service action failed where immediate correctness is required"""


class EnvironmentDetectionFailure(PitorError):
    """The host environment could not be detected or written"""


class NoInternetRoute(EnvironmentDetectionFailure):
    """No IPv4 default route, so no internet-facing interface"""

    def __init__(self, message: str = "Failed to find a network interface connected to the internet") -> None:
        super().__init__(
            message,
            "Connect the internet-facing interface and run again once a default route is up",
        )


class ConnectivityFailure(PitorError):
    """The diagnostic request through the anonymity network failed"""


class PrivilegeRequired(PitorError):
    """An elevated action token arrived without elevated privilege"""
