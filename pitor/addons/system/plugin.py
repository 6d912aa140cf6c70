"""
System Addon - host preparation and hardening

prepare:  keyboard layout, apt update/upgrade, required packages
finalize: disable unused platform services, blacklist unused kernel modules

Every step here is best effort: failures are warnings, never fatal.
"""
import re
from typing import List

from pitor.core.interface import BaseAddon, AppContext, hookimpl
from pitor.core.utils import logger
from pitor.lib.packages import PackageManager
from pitor.lib.services import ServiceController
from pitor.lib.utils import render_lines, write_text_atomic

_XKBLAYOUT = re.compile(r'^XKBLAYOUT=.*$', re.MULTILINE)

DEFAULT_PACKAGES = ["tor", "dnsmasq", "iptables-persistent", "curl", "torsocks"]


def render_module_blacklist(modules: List[str]) -> str:
    return render_lines([f"blacklist {module}" for module in modules])


class SystemAddon(BaseAddon):
    module_dir = "system"

    @hookimpl
    def prepare(self, context: AppContext) -> None:
        logger.info("\n>>> [System] Preparing the host...")
        ctx = context

        self._set_keyboard_layout(ctx)
        self._refresh_system(ctx)
        self._install_packages(ctx)

    @hookimpl
    def finalize(self, context: AppContext) -> None:
        logger.info("\n>>> [System] Hardening the host...")
        ctx = context

        self._disable_services(ctx)
        self._blacklist_kernel_modules(ctx)

    def _warn(self, ctx: AppContext, message: str) -> None:
        logger.warning(f"  -> [WARN] {message}")
        ctx.artifacts.warn(message)

    def _set_keyboard_layout(self, ctx: AppContext) -> None:
        """Task 1: switch the default keyboard layout (cosmetic)"""
        layout = self.get_manifest(ctx).get("keyboard_layout", "us")
        keyboard_file = ctx.paths.keyboard_default

        logger.info(f"  -> Setting keyboard layout to '{layout}'")
        try:
            content = keyboard_file.read_text(encoding="utf-8")
            updated, count = _XKBLAYOUT.subn(f'XKBLAYOUT="{layout}"', content)
            if count == 0:
                updated = content + f'XKBLAYOUT="{layout}"\n'
            write_text_atomic(keyboard_file, updated)
            self.log(ctx, "prepare", "keyboard")
        except OSError as e:
            self._warn(ctx, f"Failed to set keyboard layout: {e}")

    def _refresh_system(self, ctx: AppContext) -> None:
        """Task 2: refresh the package index and upgrade the system"""
        apt = PackageManager(ctx.cmd)

        logger.info("  -> Updating the package sources list")
        if not apt.update():
            self._warn(ctx, "Failed to update the package sources list")

        logger.info("  -> Upgrading system to the latest version. This could take a while...")
        if not apt.upgrade():
            self._warn(ctx, "System upgrade did not complete")

    def _install_packages(self, ctx: AppContext) -> None:
        """Task 3: install required packages, one failure does not stop the rest"""
        packages: List[str] = self.get_manifest(ctx).get("packages") or DEFAULT_PACKAGES

        failed = PackageManager(ctx.cmd).install_each(packages)
        ctx.artifacts.failed_packages.extend(failed)
        ctx.artifacts.installed_packages.extend(p for p in packages if p not in failed)
        for package in failed:
            ctx.artifacts.warn(f"Failed to install {package}")

    def _disable_services(self, ctx: AppContext) -> None:
        """Task 4: disable platform services the appliance never uses"""
        services = ServiceController(ctx.cmd)
        for service in self.get_manifest(ctx).get("disabled_services", []):
            logger.info(f"  -> Disabling {service}")
            result = services.disable(service)
            if not result.ok:
                ctx.artifacts.warn(result.message)

    def _blacklist_kernel_modules(self, ctx: AppContext) -> None:
        """Task 5: keep on-board radio drivers from loading"""
        modules: List[str] = self.get_manifest(ctx).get("blacklisted_modules", [])
        if not modules:
            return

        blacklist_file = ctx.paths.modprobe_blacklist
        logger.info(f"  -> Blacklisting kernel modules: {', '.join(modules)}")
        try:
            write_text_atomic(blacklist_file, render_module_blacklist(modules))
            ctx.artifacts.record_file(blacklist_file)
            self.log(ctx, "finalize", "modules")
        except OSError as e:
            self._warn(ctx, f"Failed to blacklist kernel modules: {e}")
