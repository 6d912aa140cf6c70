"""
dhcpcd Addon - address assignment

Gives the client interface a static gateway address and keeps dhcpcd away
from both the client and the internet interface.
"""
from pitor.core.config import ProxyConfig
from pitor.core.interface import BaseAddon, AppContext, hookimpl
from pitor.core.utils import logger
from pitor.lib.utils import render_lines, write_text_atomic


def render_dhcpcd_conf(config: ProxyConfig, internet_interface: str) -> str:
    return render_lines([
        f"interface {config.client_interface}",
        f"static ip_address={config.client_gateway}/{config.cidr}",
        f"static domain_name_servers={config.client_gateway} {config.dns_server}",
        f"denyinterfaces {config.client_interface}",
        f"denyinterfaces {internet_interface}",
    ])


class DhcpcdAddon(BaseAddon):
    module_dir = "dhcpcd"

    @hookimpl
    def provision(self, context: AppContext) -> None:
        ctx = context
        cfg = ctx.config
        target = ctx.paths.dhcpcd_conf

        logger.info(f"  -> Configuring dhcp service for {cfg.client_interface}")
        write_text_atomic(target, render_dhcpcd_conf(cfg, ctx.artifacts.internet_interface or ""))

        ctx.artifacts.record_file(target)
        self.log(ctx, "provision", str(target))
