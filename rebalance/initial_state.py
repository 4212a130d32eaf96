"""
rebalance/initial_state.py - Starting Load Vectors

Deterministic skewed starting distributions per silo count.
Pure functions.
"""

from typing import Tuple

from receipts import InvalidArgument

from .constants import INITIAL_LOAD_TABLE, BASE_LOAD
from .types_config import SimConfig


def generate_initial_loads(node_count: int) -> Tuple[float, ...]:
    """
    Starting load vector for node_count silos.

    1..5 silos come from INITIAL_LOAD_TABLE. Larger clusters get one heavy
    silo holding BASE_LOAD * (S-1) and S-1 silos holding BASE_LOAD.

    Args:
        node_count: Number of silos S

    Returns:
        Tuple of S non-negative loads

    Raises:
        InvalidArgument: If node_count < 1
    """
    if node_count < 1:
        raise InvalidArgument(f"node_count must be >= 1, got {node_count}")

    if node_count <= len(INITIAL_LOAD_TABLE):
        return INITIAL_LOAD_TABLE[node_count - 1]

    return (BASE_LOAD * (node_count - 1),) + (BASE_LOAD,) * (node_count - 1)


def initial_loads_for(config: SimConfig) -> Tuple[float, ...]:
    """Explicit config.initial_loads if given, else the scenario table."""
    if config.initial_loads is not None:
        return config.initial_loads
    return generate_initial_loads(config.node_count)
