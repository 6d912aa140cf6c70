"""
dhcpcd / dnsmasq / iptables / sysctl addon unit tests

Each addon renders a whole file from ProxyConfig (+ the detected internet
interface) and replaces it in one step.
"""
from pitor.addons.dhcpcd.plugin import DhcpcdAddon, render_dhcpcd_conf
from pitor.addons.dnsmasq.plugin import DnsmasqAddon, render_dnsmasq_conf
from pitor.addons.iptables.plugin import IptablesAddon, render_rules_v4, render_rules_v6
from pitor.addons.sysctl.plugin import SysctlAddon, render_sysctl_conf
from pitor.core.interface import AppContext


class TestDhcpcd:

    def test_render(self, app_context: AppContext):
        assert render_dhcpcd_conf(app_context.config, "wlan0").splitlines() == [
            "interface eth0",
            "static ip_address=192.168.2.1/24",
            "static domain_name_servers=192.168.2.1 1.1.1.1",
            "denyinterfaces eth0",
            "denyinterfaces wlan0",
        ]

    def test_provision_overwrites_file(self, context_with_topology: AppContext):
        ctx = context_with_topology
        ctx.paths.dhcpcd_conf.parent.mkdir(parents=True, exist_ok=True)
        ctx.paths.dhcpcd_conf.write_text("hostname\nclientid\n")

        DhcpcdAddon().provision(ctx)

        content = ctx.paths.dhcpcd_conf.read_text()
        assert "clientid" not in content
        assert content.endswith("denyinterfaces wlan0\n")
        assert ctx.paths.dhcpcd_conf in ctx.artifacts.written_files
        assert f"dhcpcd:provision:{ctx.paths.dhcpcd_conf}" in ctx.execution_log


class TestDnsmasq:

    def test_render(self, app_context: AppContext):
        assert render_dnsmasq_conf(app_context.config) == (
            "interface=eth0\n"
            "dhcp-range=192.168.2.10,192.168.2.200,255.255.255.0,24h\n"
            "dhcp-authoritative\n"
        )

    def test_provision(self, app_context: AppContext):
        DnsmasqAddon().provision(app_context)
        assert app_context.paths.dnsmasq_conf.read_text().startswith("interface=eth0\n")


class TestIptables:

    def test_render_v4(self, app_context: AppContext):
        lines = render_rules_v4(app_context.config, "wlan0").splitlines()

        assert lines[0] == "*nat"
        assert ":PREROUTING ACCEPT [0:0]" in lines
        assert ":POSTROUTING ACCEPT [0:0]" in lines
        assert (
            "-A PREROUTING -i eth0 -p tcp -m tcp --tcp-flags FIN,SYN,RST,ACK SYN "
            "-j REDIRECT --to-ports 9040"
        ) in lines
        assert "-A POSTROUTING -o wlan0 -j MASQUERADE" in lines
        filter_start = lines.index("*filter")
        assert lines[filter_start:] == [
            "*filter",
            ":INPUT ACCEPT [0:0]",
            ":FORWARD ACCEPT [0:0]",
            ":OUTPUT ACCEPT [0:0]",
            "COMMIT",
        ]
        assert lines.count("COMMIT") == 2

    def test_render_v6_drops_everything(self):
        assert render_rules_v6().splitlines() == [
            "*filter",
            ":INPUT DROP [0:0]",
            ":FORWARD DROP [0:0]",
            ":OUTPUT DROP [0:0]",
            "COMMIT",
        ]

    def test_provision_writes_both_rulesets(self, context_with_topology: AppContext):
        ctx = context_with_topology
        IptablesAddon().provision(ctx)

        assert "MASQUERADE" in ctx.paths.iptables_rules_v4.read_text()
        assert "DROP" in ctx.paths.iptables_rules_v6.read_text()
        assert ctx.artifacts.written_files == [ctx.paths.iptables_rules_v4, ctx.paths.iptables_rules_v6]


class TestSysctl:

    def test_render(self):
        assert render_sysctl_conf().splitlines() == [
            "net.ipv4.ip_forward=1",
            "net.ipv6.conf.all.disable_ipv6=1",
            "net.ipv6.conf.default.disable_ipv6=1",
            "net.ipv6.conf.lo.disable_ipv6=1",
        ]

    def test_provision(self, app_context: AppContext):
        SysctlAddon().provision(app_context)
        assert app_context.paths.sysctl_conf.read_text() == render_sysctl_conf()
