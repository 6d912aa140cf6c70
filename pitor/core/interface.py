"""
Core interface definitions
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pluggy

from pitor.core.artifacts import Artifacts
from pitor.core.config import ProxyConfig, SystemPaths
from pitor.core.ports import ICommandRunner


hookspec = pluggy.HookspecMarker("pitor")
hookimpl = pluggy.HookimplMarker("pitor")


@dataclass
class AppContext:
    """
    Application context - the composition root

    Every addon reads its inputs, runs commands and records outputs through it.
    """

    # === Run configuration (immutable) ===
    config: ProxyConfig
    paths: SystemPaths

    # === Injected services ===
    cmd: ICommandRunner

    # === Step outputs ===
    artifacts: Artifacts = field(default_factory=Artifacts)

    # === Execution trace (debugging and tests) ===
    execution_log: List[str] = field(default_factory=lambda: [])

    # === Pre-loaded manifests (addons never read files directly) ===
    addon_manifests: Dict[str, Dict[str, Any]] = field(default_factory=lambda: {})


class BaseAddon:
    """Addon base class

    Subclasses declare the module_dir class attribute (= their directory name);
    name is derived from it.

    Provisioning calls the hooks phase by phase across the whole pipeline:
        prepare  - before the managed services are stopped (soft)
        provision - write configuration artifacts (fatal on failure)
        finalize - after the managed services are started again (soft)
    """

    module_dir: str

    @property
    def name(self) -> str:
        return self.module_dir

    def log(self, context: AppContext, action: str, message: str = "") -> None:
        """Append to the execution trace"""
        log_entry = f"{self.name}:{action}"
        if message:
            log_entry += f":{message}"
        context.execution_log.append(log_entry)

    def get_manifest(self, context: AppContext) -> Dict[str, Any]:
        return context.addon_manifests.get(self.name, {})

    @hookspec
    def prepare(self, context: AppContext) -> None:
        """Pre-provisioning hook"""
        ...

    @hookspec
    def provision(self, context: AppContext) -> None:
        """Artifact-writing hook"""
        ...

    @hookspec
    def finalize(self, context: AppContext) -> None:
        """Post-provisioning hook"""
        ...
