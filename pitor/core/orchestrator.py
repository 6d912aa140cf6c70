"""
Configuration orchestrator - the operations the CLI resolves to

    provision_proxy            full provisioning, ends with a reboot prompt
    change_exit_region         ExitNodes substitution + strict tor restart
    restart_anonymity_service  tor restart, classified by exit code
    test_connectivity          check request through Tor
    query_regions              region directory lookup

Nothing is persisted between runs. "Configured" is inferred from the
presence of the torrc on disk.
"""
from typing import Callable, List, Optional, Sequence

from pitor.addons.tor.plugin import update_exit_region
from pitor.core.errors import EnvironmentDetectionFailure, PreconditionFailure
from pitor.core.interface import AppContext, BaseAddon
from pitor.core.utils import logger
from pitor.lib.network import TorCheckResponse, check_connection, detect_topology
from pitor.lib.regions import DIRECTORY, Region, RegionDirectory
from pitor.lib.services import ServiceController, ServiceResult
from pitor.lib.ui import print_info, print_success, print_table, prompt_enter

REBOOT_PROMPT = "Press ENTER to reboot"


class Orchestrator:
    """Sequences addons and service actions around one AppContext"""

    def __init__(
        self,
        context: AppContext,
        pipeline: Sequence[BaseAddon] = (),
        directory: RegionDirectory = DIRECTORY,
        confirm: Callable[[str], None] = prompt_enter,
    ) -> None:
        self.ctx = context
        self.pipeline = list(pipeline)
        self.directory = directory
        self.confirm = confirm
        self.services = ServiceController(context.cmd)

    # ============================================================
    # Validation
    # ============================================================
    def _require_region(self, region: Optional[str]) -> str:
        if not region or not region.strip():
            raise PreconditionFailure(
                "Must enter a valid two letter country code for the tor exit relay",
                "Run 'pitormgr -q <keyword>' to look up country codes",
            )
        if not self.directory.is_valid(region):
            raise PreconditionFailure(
                f"Invalid country code: {region}",
                "Run 'pitormgr -q <keyword>' to look up country codes",
            )
        return region.lower()

    # ============================================================
    # Pipeline
    # ============================================================
    def _run_phase(self, phase: str) -> None:
        for addon in self.pipeline:
            method = getattr(addon, phase, None)
            if method:
                logger.debug(f"  -> {addon.name}.{phase}()")
                method(self.ctx)

    def _soft_service_pass(self, action: Callable[[str], ServiceResult], services: Sequence[str]) -> None:
        for service in services:
            result = action(service)
            if not result.ok:
                self.ctx.artifacts.warn(result.message)

    # ============================================================
    # Operations
    # ============================================================
    def provision_proxy(self, region: Optional[str]) -> None:
        """Configure the host as a transparent Tor gateway, then offer a reboot

        Raises:
            PreconditionFailure: empty/invalid region, client link down
            NoInternetRoute: no default route
            EnvironmentDetectionFailure: a configuration file could not be written
        """
        ctx = self.ctx
        code = self._require_region(region)
        ctx.config = ctx.config.with_exit_region(code)
        cfg = ctx.config

        logger.info(f"\n>>> [Provision] Configuring Raspberry PI as a pitor (exit region '{code}')")

        topology = detect_topology(ctx.cmd, cfg.client_interface, ctx.paths.sys_class_net)
        if not topology.client_link_up:
            raise PreconditionFailure(
                f"Interface '{cfg.client_interface}' is down",
                f"Connect a client device to '{cfg.client_interface}' and run again",
            )
        ctx.artifacts.internet_interface = topology.internet_interface
        logger.info(f"  -> Internet interface: {topology.internet_interface}")
        logger.info(f"  -> Client interface:   {topology.client_interface}")

        self._run_phase("prepare")

        logger.info("\n>>> [Services] Stopping managed services...")
        self._soft_service_pass(self.services.stop, cfg.managed_services)

        logger.info("\n>>> [Provision] Writing configuration files...")
        try:
            self._run_phase("provision")
        except OSError as e:
            raise EnvironmentDetectionFailure(
                f"Failed to write configuration: {e}",
                "Check free space and permissions under /etc, then run again",
            ) from e

        logger.info("\n>>> [Services] Enabling and starting managed services...")
        self._soft_service_pass(self.services.enable, cfg.managed_services)
        self._soft_service_pass(self.services.start, cfg.managed_services)

        self._run_phase("finalize")

        self._summarize()
        self._reboot()

    def change_exit_region(self, region: Optional[str]) -> None:
        """Pin tor to a new exit region and restart it

        Raises:
            PreconditionFailure: invalid region, torrc missing (no write in either case)
            EnvironmentDetectionFailure: the substitution did not take
            EscalatedServiceFailure: tor did not restart cleanly
        """
        ctx = self.ctx
        code = self._require_region(region)

        logger.info(f"\n>>> [Tor] Setting tor exit relay country to '{code}'")
        try:
            update_exit_region(ctx.paths.torrc, code)
        except OSError as e:
            raise EnvironmentDetectionFailure(
                f"Failed to update {ctx.paths.torrc}: {e}",
                "Check permissions on the Tor configuration directory",
            ) from e
        ctx.config = ctx.config.with_exit_region(code)

        logger.info(f"  -> Restarting {ctx.config.anonymity_service}")
        self.services.restart(ctx.config.anonymity_service, strict=True).raise_for_outcome()

        logger.info("  -> ✓ Successfully updated Tor exit relay country!")

    def restart_anonymity_service(self) -> ServiceResult:
        """Restart tor; "not active" is only a warning here

        Raises:
            EscalatedServiceFailure: not installed, or any other failure
        """
        service = self.ctx.config.anonymity_service
        logger.info(f"\n>>> [Tor] Restarting {service}")

        result = self.services.restart(service).raise_for_outcome()
        if result.ok:
            logger.info(f"  -> ✓ Successfully restarted {service}")
        else:
            self.ctx.artifacts.warn(result.message)
        return result

    def test_connectivity(self) -> TorCheckResponse:
        """
        Raises:
            ToolingUnavailable: torsocks or curl missing
            ConnectivityFailure: request failed or not routed through Tor
        """
        logger.info("\n>>> [Test] Testing connection to the Tor network...")
        response = check_connection(self.ctx.cmd)
        print_success(f"Connected to the Tor network. Exit IP: {response.ip}")
        return response

    def query_regions(self, keyword: str) -> List[Region]:
        matches = self.directory.search(keyword)
        if not matches:
            print_info(f"No country matches '{keyword}'")
            return matches

        print_table(
            f"Countries matching '{keyword}'",
            ["Code", "Name"],
            [[region.code, region.name] for region in matches],
            caption=f"{len(matches)} match(es)",
        )
        return matches

    # ============================================================
    # Wrap-up
    # ============================================================
    def _summarize(self) -> None:
        artifacts = self.ctx.artifacts
        logger.info("\n>>> [Done] Raspberry PI configured as a pitor")
        for path in artifacts.written_files:
            logger.info(f"  -> ✓ {path}")
        if artifacts.warnings:
            logger.warning(f"  -> [WARN] Finished with {len(artifacts.warnings)} warning(s):")
            for message in artifacts.warnings:
                logger.warning(f"       - {message}")

    def _reboot(self) -> None:
        try:
            self.confirm(REBOOT_PROMPT)
        except (KeyboardInterrupt, EOFError):
            logger.warning("\n  -> [WARN] Reboot skipped. Reboot manually to apply the configuration")
            return

        logger.info("  -> Rebooting...")
        rc = self.services.reboot()
        if rc != 0:
            logger.warning(f"  -> [WARN] Reboot request failed (exit code {rc}). Reboot manually")
