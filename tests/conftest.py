"""
Shared pytest fixtures

Reusable contexts, a mock runner and a tmp-rooted filesystem.
"""
import pytest
from pathlib import Path

from pitor.core.artifacts import Artifacts
from pitor.core.config import PACKAGE_ROOT, SystemPaths, build_proxy_config, load_manifests
from pitor.core.interface import AppContext
from tests.mocks import MockRunner

DEFAULT_ROUTE = "default via 192.168.1.1 dev wlan0 proto dhcp src 192.168.1.50 metric 600\n"


@pytest.fixture
def mock_runner() -> MockRunner:
    """A clean MockRunner with a default route on wlan0"""
    runner = MockRunner()
    runner.stub("ip -4 route list default", stdout=DEFAULT_ROUTE)
    return runner


@pytest.fixture
def manifests():
    """The manifests shipped inside the package"""
    return load_manifests(PACKAGE_ROOT)


@pytest.fixture
def system_paths(tmp_path: Path) -> SystemPaths:
    """
    Every well-known path re-rooted under tmp_path

    The client interface reports "up" and /etc/default/keyboard exists.
    """
    paths = SystemPaths.under(tmp_path)
    operstate = paths.sys_class_net / "eth0" / "operstate"
    operstate.parent.mkdir(parents=True, exist_ok=True)
    operstate.write_text("up\n")

    paths.keyboard_default.parent.mkdir(parents=True, exist_ok=True)
    paths.keyboard_default.write_text('XKBMODEL="pc105"\nXKBLAYOUT="gb"\nXKBVARIANT=""\n')
    return paths


@pytest.fixture
def app_context(mock_runner: MockRunner, manifests, system_paths: SystemPaths) -> AppContext:
    """
    A complete AppContext for tests

    - MockRunner instead of SubprocessRunner
    - SystemPaths under pytest's tmp_path (the real /etc is never touched)
    """
    return AppContext(
        config=build_proxy_config(manifests),
        paths=system_paths,
        cmd=mock_runner,
        artifacts=Artifacts(),
        addon_manifests=manifests,
    )


@pytest.fixture
def context_with_topology(app_context: AppContext) -> AppContext:
    """Context as the artifact addons see it: internet interface already detected"""
    app_context.artifacts.internet_interface = "wlan0"
    return app_context
