"""
Tor Addon - anonymity routing configuration

provision:
  1. Render /etc/tor/torrc (TransPort/DNSPort on the gateway, ExitNodes pinned)
  2. Prepare the notice log file the daemon writes to

update_exit_region() is the one in-place edit this tool makes: only the
ExitNodes clause of an existing torrc is substituted, and the result is
verified by reading the file back.
"""
import os
import re
from pathlib import Path
from typing import Any, Dict

from pitor.core.config import ProxyConfig
from pitor.core.errors import EnvironmentDetectionFailure, PreconditionFailure
from pitor.core.interface import BaseAddon, AppContext, hookimpl
from pitor.core.utils import logger
from pitor.lib.utils import render_lines, write_text_atomic

_EXIT_NODES = re.compile(r"^ExitNodes \{.*\}[ \t]*$", re.MULTILINE)


def exit_nodes_line(region: str) -> str:
    return f"ExitNodes {{{region.lower()}}}"


def render_torrc(config: ProxyConfig, log_file: Path, settings: Dict[str, Any]) -> str:
    return render_lines([
        f"Log {settings.get('log_level', 'notice')} file {log_file}",
        f"VirtualAddrNetwork {settings.get('virtual_addr_network', '10.192.0.0/10')}",
        f"AutomapHostsOnResolve {settings.get('automap_hosts_on_resolve', 1)}",
        f"TransPort {config.client_gateway}:{config.transport_port}",
        f"DNSPort {config.client_gateway}:{config.dns_port}",
        exit_nodes_line(config.exit_region),
        f"StrictNodes {settings.get('strict_nodes', 1)}",
    ])


def update_exit_region(torrc: Path, region: str) -> None:
    """Replace the ExitNodes clause of an existing torrc

    Every other line is left byte-for-byte untouched.

    Raises:
        PreconditionFailure: torrc does not exist yet (nothing is written)
        EnvironmentDetectionFailure: the clause is still absent after the write
    """
    if not torrc.is_file():
        raise PreconditionFailure(
            f"The Tor configuration file '{torrc}' does not exist",
            "Run 'pitormgr -c <region>' to configure as pitor first",
        )

    line = exit_nodes_line(region)
    content = torrc.read_text(encoding="utf-8")
    updated, count = _EXIT_NODES.subn(line, content)
    if count:
        write_text_atomic(torrc, updated)
    else:
        logger.debug(f"  -> no ExitNodes clause found in {torrc}")

    # A pattern mismatch above is a silent no-op, so check the file itself
    written = torrc.read_text(encoding="utf-8").splitlines()
    if line not in written:
        raise EnvironmentDetectionFailure(
            f"Failed to set tor exit relay country to '{region.lower()}'",
            f"Check that {torrc} contains an 'ExitNodes {{..}}' line",
        )


class TorAddon(BaseAddon):
    module_dir = "tor"

    @hookimpl
    def provision(self, context: AppContext) -> None:
        ctx = context
        settings = self.get_manifest(ctx)

        self._write_torrc(ctx, settings)
        self._prepare_log_file(ctx, settings)

    def _write_torrc(self, ctx: AppContext, settings: Dict[str, Any]) -> None:
        target = ctx.paths.torrc
        logger.info(f"  -> Configuring tor with exit relay country '{ctx.config.exit_region}'")
        write_text_atomic(target, render_torrc(ctx.config, ctx.paths.tor_log, settings))

        ctx.artifacts.record_file(target)
        self.log(ctx, "provision", str(target))

    def _prepare_log_file(self, ctx: AppContext, settings: Dict[str, Any]) -> None:
        """Create the log file without truncating it, owned by the daemon account"""
        log_file = ctx.paths.tor_log
        account = settings.get("service_account", "debian-tor")

        log_file.parent.mkdir(parents=True, exist_ok=True)
        log_file.touch(exist_ok=True)
        os.chmod(log_file, 0o644)

        result = ctx.cmd.run(["chown", f"{account}:{account}", str(log_file)], check=False)
        if not result.ok:
            message = f"Failed to hand {log_file} to {account}"
            logger.warning(f"  -> [WARN] {message}")
            ctx.artifacts.warn(message)

        self.log(ctx, "provision", str(log_file))
