"""
tests/test_export.py - Summary, series and export of SimResult
"""

import json
import math

import pytest

from rebalance import (
    SimConfig,
    run_simulation,
    summarize,
    series,
    ideal_load,
    export_result,
    generate_report,
)


@pytest.fixture
def two_silo_result():
    return run_simulation(SimConfig(node_count=2))


class TestSummarize:

    def test_keys(self, two_silo_result):
        s = summarize(two_silo_result)
        expected = {
            "scenario", "node_count", "initial_entropy", "final_entropy", "max_entropy",
            "alpha_start", "alpha_end", "ideal_load", "total_cycles", "termination",
        }
        assert set(s) == expected

    def test_values(self, two_silo_result):
        s = summarize(two_silo_result)
        p = [900 / 910, 10 / 910]
        h0 = -sum(x * math.log(x) for x in p)
        assert s["initial_entropy"] == pytest.approx(h0)
        assert s["final_entropy"] == pytest.approx(math.log(2))
        assert s["max_entropy"] == pytest.approx(math.log(2))
        assert s["alpha_start"] == pytest.approx(h0 / math.log(2))
        assert s["ideal_load"] == 455.0
        assert s["termination"] == "CONVERGED"

    def test_ideal_load(self, two_silo_result):
        assert ideal_load(two_silo_result) == 455.0


class TestSeries:

    def test_columns(self, two_silo_result):
        data = series(two_silo_result)
        assert set(data) == {"cycles", "alpha", "entropy", "damping", "silo_0", "silo_1"}
        assert all(len(col) == two_silo_result.total_cycles for col in data.values())

    def test_silo_columns_follow_history(self, two_silo_result):
        data = series(two_silo_result)
        assert data["silo_0"][0] == 900.0
        assert data["silo_1"][0] == 10.0
        assert data["cycles"][:3] == [0, 1, 2]


class TestExport:

    def test_json_round_trip(self, two_silo_result):
        content = export_result(two_silo_result)
        parsed = json.loads(content)
        assert parsed["final_loads"] == [455.0, 455.0]
        assert parsed["config"]["node_count"] == 2
        assert parsed["summary"]["total_cycles"] == two_silo_result.total_cycles

    def test_writes_file(self, two_silo_result, tmp_path):
        path = tmp_path / "result.json"
        content = export_result(two_silo_result, str(path))
        assert path.read_text() == content

    def test_report(self, two_silo_result):
        report = generate_report(two_silo_result)
        assert report.startswith("=== REBALANCE REPORT ===")
        assert "Silos: 2" in report
        assert "CONVERGED" in report
