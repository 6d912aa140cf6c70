"""
Targeted operation integration tests

change_exit_region / restart_anonymity_service / test_connectivity /
query_regions, each through the Orchestrator with a MockRunner.
"""
import pytest

from pitor.addons.tor.plugin import TorAddon
from pitor.core.errors import (
    ConnectivityFailure,
    EnvironmentDetectionFailure,
    EscalatedServiceFailure,
    PreconditionFailure,
    ToolingUnavailable,
)
from pitor.core.interface import AppContext
from pitor.core.orchestrator import Orchestrator
from pitor.core.schema import ServiceOutcome
from pitor.lib.network.config import TOR_CHECK_URL


@pytest.fixture
def orchestrator(app_context: AppContext) -> Orchestrator:
    return Orchestrator(app_context, confirm=lambda message: None)


@pytest.fixture
def provisioned(app_context: AppContext, mock_runner) -> AppContext:
    """A host whose torrc was written by a previous provisioning run"""
    TorAddon().provision(app_context)
    mock_runner.calls.clear()
    mock_runner.history.clear()
    return app_context


class TestChangeExitRegion:

    def test_valid_region_changes_only_exit_nodes(self, orchestrator, provisioned: AppContext, mock_runner):
        before = provisioned.paths.torrc.read_text().splitlines()

        orchestrator.change_exit_region("SE")

        after = provisioned.paths.torrc.read_text().splitlines()
        assert [line for line in after if line not in before] == ["ExitNodes {se}"]
        assert [line for line in before if line not in after] == ["ExitNodes {us}"]
        assert mock_runner.all_commands == ["systemctl restart tor"]
        assert provisioned.config.exit_region == "se"

    @pytest.mark.parametrize("region", ["xx", "", None, "sweden"])
    def test_invalid_region_never_writes(self, orchestrator, provisioned: AppContext, mock_runner, region):
        before = provisioned.paths.torrc.read_bytes()

        with pytest.raises(PreconditionFailure):
            orchestrator.change_exit_region(region)

        assert provisioned.paths.torrc.read_bytes() == before
        assert mock_runner.calls == []

    @pytest.mark.parametrize("region", ["ﬁ", "ß", "ﬆ"])
    def test_case_mapping_expansions_never_write(self, orchestrator, provisioned: AppContext, mock_runner, region):
        """Characters whose upper case is two letters ("ﬁ" -> "FI") are not codes"""
        before = provisioned.paths.torrc.read_bytes()

        with pytest.raises(PreconditionFailure, match="Invalid country code"):
            orchestrator.change_exit_region(region)

        assert provisioned.paths.torrc.read_bytes() == before
        assert provisioned.config.exit_region == "us"
        mock_runner.assert_not_called_with("systemctl restart")

    def test_missing_torrc_is_fatal_without_write(self, orchestrator, app_context: AppContext, mock_runner):
        with pytest.raises(PreconditionFailure, match="does not exist"):
            orchestrator.change_exit_region("de")

        assert not app_context.paths.torrc.exists()
        assert mock_runner.calls == []

    def test_silent_no_op_is_caught(self, orchestrator, provisioned: AppContext, mock_runner):
        provisioned.paths.torrc.write_text("SocksPort 0\n")

        with pytest.raises(EnvironmentDetectionFailure):
            orchestrator.change_exit_region("de")

        mock_runner.assert_not_called_with("systemctl restart")

    @pytest.mark.parametrize("rc", [3, 5, 1])
    def test_restart_failure_is_escalated(self, orchestrator, provisioned: AppContext, mock_runner, rc):
        mock_runner.stub("systemctl restart tor", returncode=rc)

        with pytest.raises(EscalatedServiceFailure):
            orchestrator.change_exit_region("de")

        assert "ExitNodes {de}" in provisioned.paths.torrc.read_text()


class TestRestartAnonymityService:

    def test_success(self, orchestrator, mock_runner):
        result = orchestrator.restart_anonymity_service()

        assert result.ok
        mock_runner.assert_called_with("systemctl restart tor")

    def test_not_active_is_a_warning(self, orchestrator, app_context: AppContext, mock_runner):
        mock_runner.stub("systemctl restart tor", returncode=3)

        result = orchestrator.restart_anonymity_service()

        assert result.outcome is ServiceOutcome.SOFT_FAILURE
        assert app_context.artifacts.warnings

    def test_not_installed_is_fatal(self, orchestrator, mock_runner):
        mock_runner.stub("systemctl restart tor", returncode=5)

        with pytest.raises(EscalatedServiceFailure, match="not installed") as exc:
            orchestrator.restart_anonymity_service()
        assert "-c" in exc.value.guidance

    def test_other_failure_points_at_journal(self, orchestrator, mock_runner):
        mock_runner.stub("systemctl restart tor", returncode=1)

        with pytest.raises(EscalatedServiceFailure) as exc:
            orchestrator.restart_anonymity_service()
        assert "journalctl -e -u tor" in exc.value.guidance


class TestConnectivity:

    def test_reports_exit_address(self, orchestrator, mock_runner, monkeypatch):
        monkeypatch.setattr("pitor.lib.network.connectivity.shutil.which", lambda tool: f"/usr/bin/{tool}")
        mock_runner.stub(f"torsocks -q curl -s {TOR_CHECK_URL}", stdout='{"IsTor":true,"IP":"185.220.101.4"}')

        response = orchestrator.test_connectivity()

        assert str(response.ip) == "185.220.101.4"

    def test_missing_tool(self, orchestrator, monkeypatch):
        monkeypatch.setattr("pitor.lib.network.connectivity.shutil.which", lambda tool: None)

        with pytest.raises(ToolingUnavailable):
            orchestrator.test_connectivity()

    def test_failure(self, orchestrator, mock_runner, monkeypatch):
        monkeypatch.setattr("pitor.lib.network.connectivity.shutil.which", lambda tool: f"/usr/bin/{tool}")
        mock_runner.stub("torsocks", returncode=1)

        with pytest.raises(ConnectivityFailure):
            orchestrator.test_connectivity()


class TestQueryRegions:

    def test_prints_matches(self, orchestrator, capsys):
        matches = orchestrator.query_regions("bul")

        assert [r.code for r in matches] == ["BG"]
        out = capsys.readouterr().out
        assert "Bulgaria" in out
        assert "1 match" in out

    def test_no_matches_is_not_an_error(self, orchestrator, capsys):
        assert orchestrator.query_regions("zzzz") == []
        assert "No country matches 'zzzz'" in capsys.readouterr().out
