"""
rebalance/types_config.py - SimConfig Dataclass and Variant Presets

Immutable configuration for simulation runs, plus the named variant
presets and their per-silo-count derivation.
"""

import hashlib
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Sequence, Tuple

from .constants import (
    LogBase,
    WeightReducer,
    UNIT_WEIGHT_TABLE,
    DEFAULT_MAX_CYCLES,
    DEFAULT_MAX_STALE_CYCLES,
    DEFAULT_ENTROPY_STALE_THRESHOLD,
    DEFAULT_CYCLE_RATE,
    DEFAULT_SILO_RATE,
)


@dataclass(frozen=True)
class DampingParams:
    """Rate constants for the adaptive damping function."""
    cycle_rate: float = DEFAULT_CYCLE_RATE
    silo_rate: float = DEFAULT_SILO_RATE


@dataclass(frozen=True)
class SimConfig:
    """Simulation configuration (immutable)."""
    node_count: int = 1
    max_cycles: int = DEFAULT_MAX_CYCLES
    max_stale_cycles: int = DEFAULT_MAX_STALE_CYCLES
    entropy_stale_threshold: float = DEFAULT_ENTROPY_STALE_THRESHOLD
    # None = unweighted (implicit all-ones)
    capacity_weights: Optional[Tuple[float, ...]] = None
    use_adaptive_damping: bool = False
    damping: DampingParams = field(default_factory=DampingParams)
    log_base: LogBase = LogBase.NATURAL
    weight_reducer: WeightReducer = WeightReducer.HARMONIC
    # False = weights shape the optimal targets only; entropy stays plain
    weighted_entropy: bool = True
    # None = take the starting vector from the scenario table
    initial_loads: Optional[Tuple[float, ...]] = None
    scenario_name: str = "ACTIVATION"

    def __post_init__(self) -> None:
        """Convert list inputs to tuples so the frozen config stays immutable."""
        if self.capacity_weights is not None and not isinstance(self.capacity_weights, tuple):
            object.__setattr__(self, 'capacity_weights',
                               tuple(float(w) for w in self.capacity_weights))
        if self.initial_loads is not None and not isinstance(self.initial_loads, tuple):
            object.__setattr__(self, 'initial_loads',
                               tuple(float(x) for x in self.initial_loads))


# =============================================================================
# VARIANT PRESETS (one per original experiment)
# =============================================================================

# Plain activation count, natural log, no damping
SCENARIO_ACTIVATION = SimConfig(
    node_count=5,
    max_cycles=40,
    max_stale_cycles=10,
    entropy_stale_threshold=1e-4,
    capacity_weights=None,
    use_adaptive_damping=False,
    log_base=LogBase.NATURAL,
    scenario_name="ACTIVATION"
)

# Activations constrained by relative memory usage, harmonic reference, damped
SCENARIO_ACTIVATION_MEMORY = SimConfig(
    node_count=5,
    max_cycles=140,
    max_stale_cycles=10,
    entropy_stale_threshold=1e-4,
    capacity_weights=UNIT_WEIGHT_TABLE[4],
    use_adaptive_damping=True,
    damping=DampingParams(cycle_rate=0.1, silo_rate=0.5),
    log_base=LogBase.NATURAL,
    weight_reducer=WeightReducer.HARMONIC,
    scenario_name="ACTIVATION_MEMORY"
)

# Cluster-size experiment in bits, arithmetic reference, undamped
# Weights only move the targets here; entropy and alpha use raw load shares
SCENARIO_SIZE_ONLY = SimConfig(
    node_count=5,
    max_cycles=30,
    max_stale_cycles=5,
    entropy_stale_threshold=1e-4,
    capacity_weights=UNIT_WEIGHT_TABLE[4],
    use_adaptive_damping=False,
    log_base=LogBase.BINARY,
    weight_reducer=WeightReducer.ARITHMETIC,
    weighted_entropy=False,
    scenario_name="SIZE_ONLY"
)

VARIANT_PRESETS = {
    "ACTIVATION": SCENARIO_ACTIVATION,
    "ACTIVATION_MEMORY": SCENARIO_ACTIVATION_MEMORY,
    "SIZE_ONLY": SCENARIO_SIZE_ONLY,
}


def preset_for(name: str,
               node_count: int,
               weight_table: Sequence[Sequence[float]] = UNIT_WEIGHT_TABLE) -> SimConfig:
    """
    Derive a per-node-count config from a named variant preset.

    Weighted presets take their weights from weight_table for 1..len(table)
    silos and fall back to all-ones beyond it.

    Args:
        name: Preset key in VARIANT_PRESETS (case-insensitive)
        node_count: Silo count for this run
        weight_table: Capacity weights indexed by node_count - 1

    Returns:
        SimConfig for node_count

    Raises:
        KeyError: If name is not a known preset
    """
    base = VARIANT_PRESETS[name.upper()]
    weights = None
    if base.capacity_weights is not None:
        if 1 <= node_count <= len(weight_table):
            weights = tuple(float(w) for w in weight_table[node_count - 1])
        else:
            weights = (1.0,) * max(node_count, 0)
    return replace(base, node_count=node_count, capacity_weights=weights)


def config_to_dict(config: SimConfig) -> Dict[str, Any]:
    """Flat JSON-ready view of a config (enums as their values)."""
    return {
        "node_count": config.node_count,
        "max_cycles": config.max_cycles,
        "max_stale_cycles": config.max_stale_cycles,
        "entropy_stale_threshold": config.entropy_stale_threshold,
        "capacity_weights": list(config.capacity_weights) if config.capacity_weights is not None else None,
        "use_adaptive_damping": config.use_adaptive_damping,
        "cycle_rate": config.damping.cycle_rate,
        "silo_rate": config.damping.silo_rate,
        "log_base": config.log_base.value,
        "weight_reducer": config.weight_reducer.value,
        "weighted_entropy": config.weighted_entropy,
        "initial_loads": list(config.initial_loads) if config.initial_loads is not None else None,
        "scenario_name": config.scenario_name,
    }


def config_hash(config: SimConfig) -> str:
    """SHA3-256 of the canonical config dict, first 16 hex chars."""
    canonical = json.dumps(config_to_dict(config), sort_keys=True, separators=(',', ':'))
    return hashlib.sha3_256(canonical.encode()).hexdigest()[:16]
