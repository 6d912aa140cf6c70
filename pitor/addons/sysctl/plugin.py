"""
sysctl Addon - kernel parameters

IPv4 forwarding on, IPv6 off system-wide. Applied on the next boot.
"""
from pitor.core.interface import BaseAddon, AppContext, hookimpl
from pitor.core.utils import logger
from pitor.lib.utils import render_lines, write_text_atomic

KERNEL_PARAMETERS = [
    ("net.ipv4.ip_forward", "1"),
    ("net.ipv6.conf.all.disable_ipv6", "1"),
    ("net.ipv6.conf.default.disable_ipv6", "1"),
    ("net.ipv6.conf.lo.disable_ipv6", "1"),
]


def render_sysctl_conf() -> str:
    return render_lines([f"{key}={value}" for key, value in KERNEL_PARAMETERS])


class SysctlAddon(BaseAddon):
    module_dir = "sysctl"

    @hookimpl
    def provision(self, context: AppContext) -> None:
        ctx = context
        target = ctx.paths.sysctl_conf

        logger.info("  -> Enabling IPv4 forwarding and disabling IPv6")
        write_text_atomic(target, render_sysctl_conf())

        ctx.artifacts.record_file(target)
        self.log(ctx, "provision", str(target))
