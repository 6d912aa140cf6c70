"""
dnsmasq Addon - DHCP for the client network

One interface clause, one range, and dhcp-authoritative: this appliance is
the only DHCP server on the client subnet. DNS itself is answered by Tor's
DNSPort on the gateway address.
"""
from pitor.core.config import ProxyConfig
from pitor.core.interface import BaseAddon, AppContext, hookimpl
from pitor.core.utils import logger
from pitor.lib.utils import render_lines, write_text_atomic


def render_dnsmasq_conf(config: ProxyConfig) -> str:
    dhcp_range = ",".join([
        config.dhcp_range_start,
        config.dhcp_range_end,
        config.subnet_mask,
        config.dhcp_lease_time,
    ])
    return render_lines([
        f"interface={config.client_interface}",
        f"dhcp-range={dhcp_range}",
        "dhcp-authoritative",
    ])


class DnsmasqAddon(BaseAddon):
    module_dir = "dnsmasq"

    @hookimpl
    def provision(self, context: AppContext) -> None:
        ctx = context
        target = ctx.paths.dnsmasq_conf

        logger.info(f"  -> Configuring dnsmasq service for {ctx.config.client_interface}")
        write_text_atomic(target, render_dnsmasq_conf(ctx.config))

        ctx.artifacts.record_file(target)
        self.log(ctx, "provision", str(target))
