"""
tests/test_validation.py - Config validation and load conservation
"""

import pytest

from receipts import InvalidArgument, StopRule
from rebalance import SimConfig, DampingParams, config_errors, validate_config, check_conservation


class TestConfigErrors:
    """config_errors collects every problem at once."""

    def test_default_config_clean(self):
        assert config_errors(SimConfig(node_count=3)) == []

    def test_collects_all(self):
        config = SimConfig(node_count=0, max_cycles=0, max_stale_cycles=0)
        errors = config_errors(config)
        assert len(errors) == 3, f"Expected 3 errors, got {errors}"

    def test_damping_rates_checked_only_when_enabled(self):
        bad = DampingParams(cycle_rate=0.0, silo_rate=-1.0)
        assert config_errors(SimConfig(node_count=2, damping=bad)) == []
        errors = config_errors(SimConfig(node_count=2, damping=bad, use_adaptive_damping=True))
        assert len(errors) == 2

    def test_validate_config_raises_with_all_messages(self):
        with pytest.raises(InvalidArgument) as exc:
            validate_config(SimConfig(node_count=2, capacity_weights=(1.0, 2.0, 3.0)))
        assert "capacity_weights has 3 entries" in str(exc.value)

    def test_invalid_argument_is_value_error(self):
        assert issubclass(InvalidArgument, ValueError)


class TestConservation:
    """check_conservation compares totals."""

    def test_exact(self):
        ok, receipt = check_conservation([900, 10], [455, 455])
        assert ok
        assert receipt["receipt_type"] == "conservation_check"
        assert receipt["drift"] == 0.0
        assert receipt["passed"] is True

    def test_small_drift_within_tolerance(self):
        ok, receipt = check_conservation([1000, 0], [500, 501])
        assert ok
        assert receipt["drift"] == 1.0

    def test_large_drift_fails(self):
        ok, receipt = check_conservation([100, 0], [50, 40])
        assert not ok
        assert receipt["relative_drift"] == pytest.approx(0.1)

    def test_strict_raises(self):
        with pytest.raises(StopRule):
            check_conservation([100, 0], [50, 40], strict=True)

    def test_zero_total(self):
        ok, _ = check_conservation([0, 0], [0, 0])
        assert ok
