"""
Service lifecycle controller - systemctl wrapper with uniform outcomes

Every action yields a ServiceResult with a tri-state outcome:
    SUCCESS       exit code 0
    SOFT_FAILURE  logged as a warning, the caller carries on
    FATAL         the caller aborts via ServiceResult.raise_for_outcome()

start/stop/enable/disable are soft on failure unless escalate=True.
restart classifies the exit code:
    0 -> success, 3 (not active) -> soft, 5 (not installed) -> fatal, other -> fatal
With strict=True every non-zero restart is fatal.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from pitor.core.errors import EscalatedServiceFailure
from pitor.core.ports import ICommandRunner
from pitor.core.schema import ServiceAction, ServiceOutcome, SystemctlExit

logger = logging.getLogger("pitor")


@dataclass
class ServiceResult:
    service: str
    action: ServiceAction
    outcome: ServiceOutcome
    returncode: int
    message: str
    guidance: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is ServiceOutcome.SUCCESS

    def raise_for_outcome(self) -> "ServiceResult":
        """Raise EscalatedServiceFailure on a FATAL outcome, else return self"""
        if self.outcome is ServiceOutcome.FATAL:
            raise EscalatedServiceFailure(self.message, self.guidance)
        return self


def _journal_hint(service: str) -> str:
    return f"Run 'journalctl -e -u {service}' to review logs"


class ServiceController:
    """Wraps the init system's service manager"""

    def __init__(self, cmd: ICommandRunner) -> None:
        self.cmd = cmd

    def _systemctl(self, action: ServiceAction, service: str) -> int:
        return self.cmd.run(["systemctl", action.value, service], check=False).returncode

    def _run(self, action: ServiceAction, service: str, escalate: bool) -> ServiceResult:
        rc = self._systemctl(action, service)
        if rc == SystemctlExit.SUCCESS:
            return ServiceResult(service, action, ServiceOutcome.SUCCESS, rc, f"{action.value} {service}")

        message = f"Failed to {action.value} {service} (exit code {rc})"
        if escalate:
            logger.debug(f"  -> {message}")
            return ServiceResult(service, action, ServiceOutcome.FATAL, rc, message, _journal_hint(service))

        logger.warning(f"  -> [WARN] {message}")
        return ServiceResult(service, action, ServiceOutcome.SOFT_FAILURE, rc, message)

    # ── Lifecycle verbs ─────────────────────────────────

    def start(self, service: str, escalate: bool = False) -> ServiceResult:
        return self._run(ServiceAction.START, service, escalate)

    def stop(self, service: str, escalate: bool = False) -> ServiceResult:
        return self._run(ServiceAction.STOP, service, escalate)

    def enable(self, service: str, escalate: bool = False) -> ServiceResult:
        return self._run(ServiceAction.ENABLE, service, escalate)

    def disable(self, service: str, escalate: bool = False) -> ServiceResult:
        return self._run(ServiceAction.DISABLE, service, escalate)

    def restart(self, service: str, strict: bool = False) -> ServiceResult:
        """Restart with exit-code-sensitive classification"""
        action = ServiceAction.RESTART
        rc = self._systemctl(action, service)

        if rc == SystemctlExit.SUCCESS:
            return ServiceResult(service, action, ServiceOutcome.SUCCESS, rc, f"Restarted {service}")

        if rc == SystemctlExit.NOT_ACTIVE and not strict:
            message = f"Can't restart '{service}'. Service is not running or active"
            logger.warning(f"  -> [WARN] {message}")
            return ServiceResult(service, action, ServiceOutcome.SOFT_FAILURE, rc, message)

        if rc == SystemctlExit.NOT_INSTALLED:
            return ServiceResult(
                service, action, ServiceOutcome.FATAL, rc,
                f"Can't restart '{service}'. Service is not installed",
                "Run 'pitormgr -c <region>' to install and configure it",
            )

        return ServiceResult(
            service, action, ServiceOutcome.FATAL, rc,
            f"Failed to restart '{service}' (exit code {rc})",
            _journal_hint(service),
        )

    def reboot(self) -> int:
        return self.cmd.run(["systemctl", "reboot"], check=False).returncode
