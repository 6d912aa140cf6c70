"""
Package manager wrapper (apt-get)

Index refresh and upgrade are whole-system operations; installs run one
package at a time so a single failure does not hide the others.
"""
import logging
from typing import Dict, List, Sequence

from pitor.core.ports import ICommandRunner

logger = logging.getLogger("pitor")

# apt-get must never stop for a debconf question
APT_ENV: Dict[str, str] = {"DEBIAN_FRONTEND": "noninteractive"}


class PackageManager:
    """apt-get, non-interactive"""

    def __init__(self, cmd: ICommandRunner) -> None:
        self.cmd = cmd

    def update(self) -> bool:
        return self.cmd.run(["apt-get", "update"], check=False, env=APT_ENV).ok

    def upgrade(self) -> bool:
        return self.cmd.run_realtime(["apt-get", "upgrade", "-y"], env=APT_ENV) == 0

    def install(self, package: str) -> bool:
        return self.cmd.run(["apt-get", "install", "-y", package], check=False, env=APT_ENV).ok

    def install_each(self, packages: Sequence[str]) -> List[str]:
        """Install packages one by one, return the ones that failed"""
        failed: List[str] = []
        for package in packages:
            logger.info(f"  -> Installing {package}")
            if not self.install(package):
                logger.warning(f"  -> [WARN] Failed to install {package}")
                failed.append(package)
        return failed
