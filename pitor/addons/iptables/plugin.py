"""
iptables Addon - traffic redirection rulesets (iptables-restore format)

IPv4:
  nat     new TCP connections from the client interface -> Tor TransPort,
          everything leaving the internet interface is masqueraded
  filter  ACCEPT on INPUT/FORWARD/OUTPUT; redirection happens in nat
IPv6:
  filter  DROP on INPUT/FORWARD/OUTPUT; Tor's TransPort carries no IPv6
"""
from typing import List

from pitor.core.config import ProxyConfig
from pitor.core.interface import BaseAddon, AppContext, hookimpl
from pitor.core.utils import logger
from pitor.lib.utils import render_lines, write_text_atomic


def _chain_policies(policy: str, chains: List[str]) -> List[str]:
    return [f":{chain} {policy} [0:0]" for chain in chains]


def render_rules_v4(config: ProxyConfig, internet_interface: str) -> str:
    lines = ["*nat"]
    lines += _chain_policies("ACCEPT", ["PREROUTING", "INPUT", "OUTPUT", "POSTROUTING"])
    lines += [
        f"-A PREROUTING -i {config.client_interface} -p tcp -m tcp "
        f"--tcp-flags FIN,SYN,RST,ACK SYN -j REDIRECT --to-ports {config.transport_port}",
        f"-A POSTROUTING -o {internet_interface} -j MASQUERADE",
        "COMMIT",
        "*filter",
    ]
    lines += _chain_policies("ACCEPT", ["INPUT", "FORWARD", "OUTPUT"])
    lines.append("COMMIT")
    return render_lines(lines)


def render_rules_v6() -> str:
    lines = ["*filter"]
    lines += _chain_policies("DROP", ["INPUT", "FORWARD", "OUTPUT"])
    lines.append("COMMIT")
    return render_lines(lines)


class IptablesAddon(BaseAddon):
    module_dir = "iptables"

    @hookimpl
    def provision(self, context: AppContext) -> None:
        ctx = context
        paths = ctx.paths

        logger.info("  -> Configuring iptables")
        write_text_atomic(paths.iptables_rules_v4, render_rules_v4(ctx.config, ctx.artifacts.internet_interface or ""))
        write_text_atomic(paths.iptables_rules_v6, render_rules_v6())

        for target in (paths.iptables_rules_v4, paths.iptables_rules_v6):
            ctx.artifacts.record_file(target)
            self.log(ctx, "provision", str(target))
