"""
pitormgr entry point

    pitormgr -c [REGION]   configure the host as a pitor (default region: us)
    pitormgr -s REGION     change the tor exit relay country
    pitormgr -r            restart tor
    pitormgr -t            test the connection through Tor
    pitormgr -q KEYWORD    look up country codes
    pitormgr -v            show version

Privileged actions re-execute through sudo as "python -m pitor.main <id> [arg]".
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from pitor.core.adapters import SubprocessRunner
from pitor.core.config import PACKAGE_ROOT, SystemPaths, build_proxy_config, load_manifests
from pitor.core.errors import PitorError
from pitor.core.interface import AppContext, BaseAddon
from pitor.core.orchestrator import Orchestrator
from pitor.core.privilege import Action, escalate, is_privileged, parse_action_argv
from pitor.core.schema import ActionKind
from pitor.core.utils import logger, setup_logger
from pitor.lib.ui import print_error, print_warning

# Addons
from pitor.addons.system.plugin import SystemAddon
from pitor.addons.dhcpcd.plugin import DhcpcdAddon
from pitor.addons.dnsmasq.plugin import DnsmasqAddon
from pitor.addons.iptables.plugin import IptablesAddon
from pitor.addons.tor.plugin import TorAddon
from pitor.addons.sysctl.plugin import SysctlAddon


# ============================================================
# Global constants
# ============================================================
PROG = "pitormgr"
VERSION = "1.0.0"
DEFAULT_REGION = "us"
LOG_FILE = Path("/var/log/pitormgr.log")


def create_pipeline() -> List[BaseAddon]:
    """
    Addon order (hard-coded, explicit)

    1. system    - keyboard, apt, packages (prepare) / hardening (finalize)
    2. dhcpcd    - static address on the client interface
    3. dnsmasq   - DHCP for the client subnet
    4. iptables  - TransPort redirection + IPv6 drop
    5. tor       - torrc + log file
    6. sysctl    - forwarding on, IPv6 off
    """
    return [
        SystemAddon(),
        DhcpcdAddon(),
        DnsmasqAddon(),
        IptablesAddon(),
        TorAddon(),
        SysctlAddon(),
    ]


def create_context(paths: Optional[SystemPaths] = None) -> AppContext:
    """Build the application context

    Args:
        paths: override the well-known system paths (tests)
    """
    manifests = load_manifests(PACKAGE_ROOT)

    return AppContext(
        config=build_proxy_config(manifests),
        paths=paths or SystemPaths(),
        cmd=SubprocessRunner(),
        addon_manifests=manifests,
    )


# ============================================================
# Stage 1: what does the operator want
# ============================================================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Configure a Raspberry PI as a transparent Tor gateway",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument("-c", "--configure", nargs="?", const=DEFAULT_REGION, metavar="REGION",
                       help=f"configure as a pitor with the given exit country (default: {DEFAULT_REGION})")
    group.add_argument("-s", "--set-exit", nargs="?", const="", metavar="REGION",
                       help="change the tor exit relay country")
    group.add_argument("-r", "--restart", action="store_true", help="restart the tor service")
    group.add_argument("-t", "--test", action="store_true", help="test the connection to the Tor network")
    group.add_argument("-q", "--query", nargs="?", const="", metavar="KEYWORD",
                       help="look up country codes by keyword")
    group.add_argument("-v", "--version", action="store_true", help="show version")
    parser.add_argument("--debug", action="store_true", help="debug mode")
    return parser


def parse_args(argv: List[str], parser: Optional[argparse.ArgumentParser] = None) -> Action:
    """Resolve user-facing flags into one Action

    Missing option values resolve to SHOW_USAGE. Unknown options exit
    through argparse.
    """
    args = (parser or build_parser()).parse_args(argv)

    if args.configure is not None:
        return Action(ActionKind.PROVISION_PROXY, args.configure or DEFAULT_REGION)
    if args.set_exit is not None:
        if not args.set_exit:
            return Action(ActionKind.SHOW_USAGE)
        return Action(ActionKind.CHANGE_EXIT_REGION, args.set_exit)
    if args.restart:
        return Action(ActionKind.RESTART_ANONYMITY_SERVICE)
    if args.test:
        return Action(ActionKind.TEST_CONNECTIVITY)
    if args.query is not None:
        if not args.query:
            return Action(ActionKind.SHOW_USAGE)
        return Action(ActionKind.QUERY_REGIONS, args.query)
    if args.version:
        return Action(ActionKind.SHOW_VERSION)
    return Action(ActionKind.SHOW_USAGE)


# ============================================================
# Stage 2: ensure privilege, then execute
# ============================================================
def execute(action: Action, context: AppContext) -> None:
    orchestrator = Orchestrator(context, create_pipeline())
    kind = action.kind

    if kind is ActionKind.PROVISION_PROXY:
        orchestrator.provision_proxy(action.arg)
    elif kind is ActionKind.CHANGE_EXIT_REGION:
        orchestrator.change_exit_region(action.arg)
    elif kind is ActionKind.RESTART_ANONYMITY_SERVICE:
        orchestrator.restart_anonymity_service()
    elif kind is ActionKind.TEST_CONNECTIVITY:
        orchestrator.test_connectivity()
    elif kind is ActionKind.QUERY_REGIONS:
        orchestrator.query_regions(action.arg or "")


def dispatch(action: Action, parser: Optional[argparse.ArgumentParser] = None) -> None:
    if action.kind is ActionKind.SHOW_VERSION:
        print(f"{PROG} v{VERSION}")
        return
    if action.kind is ActionKind.SHOW_USAGE:
        (parser or build_parser()).print_help()
        return

    if action.requires_privilege and not is_privileged():
        logger.warning("  -> [WARN] Must be root to perform this action")
        escalate(action)
        return

    execute(action, create_context())


def main(argv: Optional[List[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    debug = "--debug" in argv

    # Initialise logging before anything else; only root can write the log file
    setup_logger(LOG_FILE if is_privileged() else None, debug=debug)

    try:
        # Elevated re-entry carries an action token, never user flags
        action = parse_action_argv(argv)
        parser = None
        if action is None:
            parser = build_parser()
            action = parse_args(argv, parser)
        dispatch(action, parser=parser)
    except PitorError as e:
        print_error(e.message)
        if e.guidance:
            print_warning(e.guidance)
        sys.exit(1)
    except KeyboardInterrupt:
        print_warning("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
