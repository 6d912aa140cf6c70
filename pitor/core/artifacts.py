"""
Artifacts - strongly typed record of what each step produced during one run

Never persisted: the only durable state is the files on disk and the
service manager's unit state, both owned by the operating system.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class Artifacts:
    """
    Outputs of the provisioning steps, filled in as the pipeline runs.

    New addons add their fields here so the producer/consumer contract
    stays explicit.
    """

    # ==================== Topology ====================
    internet_interface: Optional[str] = None

    # ==================== SystemAddon ====================
    installed_packages: List[str] = field(default_factory=lambda: [])
    failed_packages: List[str] = field(default_factory=lambda: [])

    # ==================== Config files ====================
    written_files: List[Path] = field(default_factory=lambda: [])

    # ==================== Soft degradations ====================
    warnings: List[str] = field(default_factory=lambda: [])

    def record_file(self, path: Path) -> None:
        self.written_files.append(path)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
