"""
Privilege dispatch

Two stages:
    1. parse   - user-facing flags -> Action (pure, see main.parse_args)
    2. execute - privileged actions run as root, or the process re-executes
                 itself through sudo carrying only the resolved Action

Elevated argv form: "<action-id> [arg]", e.g. "2 de". The elevated process
never sees the user-facing flags.
"""
import logging
import os
import sys
from dataclasses import dataclass
from typing import List, Optional

from pitor.core.errors import PrivilegeRequired
from pitor.core.schema import PRIVILEGED_ACTIONS, ActionKind

logger = logging.getLogger("pitor")

ENTRY_MODULE = "pitor.main"


@dataclass(frozen=True)
class Action:
    """What the operator asked for, resolved once"""
    kind: ActionKind
    arg: Optional[str] = None

    @property
    def requires_privilege(self) -> bool:
        return self.kind.requires_privilege

    def to_argv(self) -> List[str]:
        """Token passed across the privilege boundary"""
        argv = [str(self.kind.value)]
        if self.arg is not None:
            argv.append(self.arg)
        return argv


def is_privileged() -> bool:
    return os.geteuid() == 0


def escalate(action: Action) -> None:
    """Replace the current process with `sudo python -m pitor.main <token>`

    Never returns on success. The child inherits the terminal, so the
    sudo password prompt and the reboot prompt still reach the operator.
    """
    argv = ["sudo", sys.executable, "-m", ENTRY_MODULE] + action.to_argv()
    logger.debug(f"  -> re-executing: {' '.join(argv)}")
    sys.stdout.flush()
    sys.stderr.flush()
    os.execvp("sudo", argv)


def parse_action_argv(argv: List[str]) -> Optional[Action]:
    """Recognise the elevated argv form

    Returns None when argv is not an action token (ordinary CLI flags).

    Raises:
        PrivilegeRequired: a valid token arrived without root
    """
    if not argv or not argv[0].isdigit():
        return None

    try:
        kind = ActionKind(int(argv[0]))
    except ValueError:
        return None
    if kind not in PRIVILEGED_ACTIONS or len(argv) > 2:
        return None

    if not is_privileged():
        raise PrivilegeRequired(
            f"Action {kind.name} must run with elevated privilege",
            "Use the regular options (e.g. 'pitormgr -c us'); they escalate through sudo",
        )

    return Action(kind, argv[1] if len(argv) == 2 else None)
