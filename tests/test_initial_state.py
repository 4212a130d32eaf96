"""
tests/test_initial_state.py - Tests for rebalance/initial_state.py
"""

from dataclasses import replace

import pytest

from receipts import InvalidArgument
from rebalance.initial_state import generate_initial_loads, initial_loads_for
from rebalance.types_config import SimConfig


class TestGenerateInitialLoads:
    """Scenario table and fallback rule."""

    @pytest.mark.parametrize("node_count,expected", [
        (1, (100,)),
        (2, (900, 10)),
        (3, (800, 10, 100)),
        (4, (70, 10, 10, 10)),
        (5, (700, 120, 340, 1200, 2500)),
    ])
    def test_scenario_table(self, node_count, expected):
        assert generate_initial_loads(node_count) == tuple(float(x) for x in expected)

    def test_fallback_one_heavy_silo(self):
        """S > 5: node 0 holds 10 * (S-1), every other node 10."""
        loads = generate_initial_loads(6)
        assert loads == (50.0, 10.0, 10.0, 10.0, 10.0, 10.0)

    def test_fallback_total(self):
        loads = generate_initial_loads(12)
        assert loads[0] == 110.0
        assert sum(loads) == 220.0

    @pytest.mark.parametrize("node_count", range(1, 25))
    def test_length_and_non_negative(self, node_count):
        loads = generate_initial_loads(node_count)
        assert len(loads) == node_count, f"Expected {node_count} loads, got {len(loads)}"
        assert all(x >= 0 for x in loads)

    @pytest.mark.parametrize("node_count", [0, -1, -10])
    def test_rejects_non_positive(self, node_count):
        with pytest.raises(InvalidArgument):
            generate_initial_loads(node_count)


class TestInitialLoadsFor:
    """Config override of the scenario table."""

    def test_uses_table_by_default(self):
        assert initial_loads_for(SimConfig(node_count=2)) == (900.0, 10.0)

    def test_explicit_override(self):
        config = replace(SimConfig(node_count=3), initial_loads=(1, 2, 3))
        assert initial_loads_for(config) == (1.0, 2.0, 3.0)
