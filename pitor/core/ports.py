"""
Ports - the one seam between pitor and the host

Everything that runs an external program (apt-get, systemctl, ip, chown,
torsocks) goes through ICommandRunner so tests can substitute it.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence


@dataclass
class CommandResult:
    """Exit status and captured output of one program"""
    returncode: int
    stdout: str
    stderr: str
    command: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ICommandRunner(ABC):

    @abstractmethod
    def run(
        self,
        cmd: Sequence[str],
        check: bool = True,
        timeout: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Run to completion with captured output

        env is layered over the current environment, not a replacement.
        check=False reports failures (and a missing executable, as 127)
        through returncode instead of raising.
        """
        ...

    @abstractmethod
    def run_realtime(
        self,
        cmd: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Run a long command while streaming its output; returns the exit status"""
        ...
