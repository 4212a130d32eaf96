"""
Rebalancing Simulation CLI Tests

Tests for driver subcommands: run, sweep, damping, validate-config.
Verifies exit codes:
  - 0: success
  - 1: actionable issue (invalid config, run did not converge when required)
  - 2: fatal error (missing file, bad input)
"""

import json

import pytest
from click.testing import CliRunner

from driver import cli


@pytest.fixture
def cli_runner():
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def valid_config_file(tmp_path):
    path = tmp_path / "two_silos.yaml"
    path.write_text("node_count: 2\nmax_cycles: 40\n")
    return path


class TestRun:
    """Tests for run command."""

    def test_two_silos_json(self, cli_runner):
        """S=2 balances to 455/455."""
        result = cli_runner.invoke(cli, ["run", "-n", "2", "--no-damping", "-o", "json"])
        assert result.exit_code == 0, result.output
        output = json.loads(result.output)
        assert output["final_loads"] == [455.0, 455.0]
        assert output["summary"]["termination"] == "CONVERGED"
        assert output["conservation"]["passed"] is True

    def test_rich_output(self, cli_runner):
        result = cli_runner.invoke(cli, ["run", "-n", "3"])
        assert result.exit_code == 0
        assert "ACTIVATION" in result.output

    def test_nodes_required(self, cli_runner):
        """Exit code 2 without --nodes or --config."""
        result = cli_runner.invoke(cli, ["run", "-o", "json"])
        assert result.exit_code == 2
        assert "error" in json.loads(result.output)

    def test_invalid_node_count(self, cli_runner):
        """Exit code 1 on a config the engine rejects."""
        result = cli_runner.invoke(cli, ["run", "-n", "0", "-o", "json"])
        assert result.exit_code == 1
        assert "node_count" in json.loads(result.output)["error"]

    def test_weight_length_mismatch(self, cli_runner):
        result = cli_runner.invoke(cli, ["run", "-n", "3", "-w", "1,2"])
        assert result.exit_code == 1

    def test_unparseable_weights(self, cli_runner):
        result = cli_runner.invoke(cli, ["run", "-n", "2", "-w", "a,b"])
        assert result.exit_code == 2

    def test_require_convergence(self, cli_runner):
        """Exit code 1 when the run is EXHAUSTED and convergence is required."""
        result = cli_runner.invoke(
            cli,
            ["run", "-n", "2", "--max-cycles", "3", "--require-convergence", "-o", "json"],
        )
        assert result.exit_code == 1
        assert json.loads(result.output)["summary"]["termination"] == "EXHAUSTED"

    @pytest.mark.parametrize("name,content", [
        ("bad.json", "{not json"),
        ("bad.yaml", "node_count: [2\n"),
    ])
    def test_unparseable_config_file(self, cli_runner, tmp_path, name, content):
        """Exit code 1 with a JSON error payload when the config does not parse."""
        path = tmp_path / name
        path.write_text(content)
        result = cli_runner.invoke(cli, ["run", "-c", str(path), "-o", "json"])
        assert result.exit_code == 1, result.output
        assert "Unparseable config" in json.loads(result.output)["error"]

    def test_missing_config_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(cli, ["run", "-c", str(tmp_path / "nope.yaml"), "-o", "json"])
        assert result.exit_code == 2

    def test_config_file(self, cli_runner, valid_config_file):
        result = cli_runner.invoke(cli, ["run", "-c", str(valid_config_file), "-o", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["summary"]["node_count"] == 2

    def test_export_and_receipts(self, cli_runner, tmp_path):
        export_path = tmp_path / "result.json"
        receipts_path = tmp_path / "receipts.jsonl"
        result = cli_runner.invoke(cli, [
            "run", "-n", "2",
            "--export", str(export_path),
            "--receipts", str(receipts_path),
        ])
        assert result.exit_code == 0
        assert json.loads(export_path.read_text())["final_loads"] == [455.0, 455.0]
        types = [json.loads(line)["receipt_type"] for line in receipts_path.read_text().splitlines()]
        assert types == ["sim_run", "convergence", "conservation_check"]

    def test_weighted_preset(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["run", "-n", "5", "-p", "activation_memory", "--skewed-weights", "-o", "json"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["summary"]["scenario"] == "ACTIVATION_MEMORY"


class TestSweep:
    """Tests for sweep command."""

    def test_sweep_json(self, cli_runner):
        result = cli_runner.invoke(cli, ["sweep", "--max-nodes", "3", "-o", "json"])
        assert result.exit_code == 0
        summaries = json.loads(result.output)
        assert [s["node_count"] for s in summaries] == [1, 2, 3]

    def test_sweep_parallel(self, cli_runner):
        result = cli_runner.invoke(cli, ["sweep", "-p", "size_only", "--workers", "3"])
        assert result.exit_code == 0
        assert "SIZE_ONLY" in result.output

    def test_sweep_bad_range(self, cli_runner):
        result = cli_runner.invoke(cli, ["sweep", "--min-nodes", "4", "--max-nodes", "2"])
        assert result.exit_code == 2


class TestDamping:
    """Tests for damping command."""

    def test_default_surface(self, cli_runner):
        result = cli_runner.invoke(cli, ["damping", "-o", "json"])
        assert result.exit_code == 0
        output = json.loads(result.output)
        assert len(output["grid"]) == 9
        assert len(output["grid"][0]) == 20
        assert output["silos"] == list(range(2, 11))

    def test_rich_table(self, cli_runner):
        result = cli_runner.invoke(cli, ["damping", "--max-cycles", "5"])
        assert result.exit_code == 0

    def test_bad_range(self, cli_runner):
        result = cli_runner.invoke(cli, ["damping", "--min-silos", "5", "--max-silos", "2"])
        assert result.exit_code == 2


class TestValidateConfig:
    """Tests for validate-config command."""

    def test_valid(self, cli_runner, valid_config_file):
        result = cli_runner.invoke(cli, ["validate-config", str(valid_config_file), "-o", "json"])
        assert result.exit_code == 0
        output = json.loads(result.output)
        assert output["valid"] is True
        assert output["errors"] == []

    def test_invalid(self, cli_runner, tmp_path):
        """Exit code 1 on a document that fails validation."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"node_count": 2, "capacity_weights": [1, 2, 3]}))
        result = cli_runner.invoke(cli, ["validate-config", str(path), "-o", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["valid"] is False

    def test_missing(self, cli_runner, tmp_path):
        result = cli_runner.invoke(cli, ["validate-config", str(tmp_path / "none.json")])
        assert result.exit_code == 2
