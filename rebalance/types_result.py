"""
rebalance/types_result.py - CycleRecord and SimResult Dataclasses

Immutable per-cycle history entries and the simulation result container.
Frozen dataclasses.
"""

from dataclasses import dataclass
from typing import Tuple

from .constants import EngineState
from .types_config import SimConfig


@dataclass(frozen=True)
class CycleRecord:
    """One cycle of the rebalancing loop, captured before adjustment."""
    cycle: int
    loads: Tuple[float, ...]
    entropy: float
    alpha: float
    damping: float = 1.0
    deviations: Tuple[float, ...] = ()


@dataclass(frozen=True)
class SimResult:
    """Immutable simulation result."""
    initial_loads: Tuple[float, ...]
    final_loads: Tuple[float, ...]
    history: Tuple[CycleRecord, ...]
    total_cycles: int
    termination: EngineState
    config: SimConfig
    receipts: Tuple[dict, ...] = ()

    @property
    def converged(self) -> bool:
        return self.termination is EngineState.CONVERGED
