"""
rebalance - Silo Rebalancing Simulation Package

Public API for the entropy-driven rebalancing simulator.
Flat, focused files. One file = one responsibility.
"""

# =============================================================================
# TYPES (Dataclasses)
# =============================================================================
from .types_config import (
    SimConfig,
    DampingParams,
    SCENARIO_ACTIVATION,
    SCENARIO_ACTIVATION_MEMORY,
    SCENARIO_SIZE_ONLY,
    VARIANT_PRESETS,
    preset_for,
    config_to_dict,
    config_hash,
)
from .types_result import CycleRecord, SimResult

# =============================================================================
# CONSTANTS
# =============================================================================
from .constants import (
    EngineState,
    LogBase,
    WeightReducer,
    INITIAL_LOAD_TABLE,
    BASE_LOAD,
    UNIT_WEIGHT_TABLE,
    SKEWED_WEIGHT_TABLE,
)

# =============================================================================
# CORE SIMULATION
# =============================================================================
from .initial_state import generate_initial_loads, initial_loads_for
from .damping import (
    growth_component,
    silo_component,
    damping_factor,
    scaling_factor,
    damping_surface,
    DampingSurface,
)
from .cycle import (
    run_simulation,
    run_multiverse,
    run_sweep,
    initialize_state,
    simulate_cycle,
    optimal_loads,
    compute_deviations,
    pairwise_deltas,
    apply_adjustment,
    RunState,
)

# =============================================================================
# VALIDATION
# =============================================================================
from .validation import (
    config_errors,
    validate_config,
    check_conservation,
)

# =============================================================================
# EXPORT
# =============================================================================
from .export import (
    summarize,
    series,
    ideal_load,
    export_result,
    generate_report,
)

# =============================================================================
# PUBLIC API
# =============================================================================
__all__ = [
    # Types
    "SimConfig",
    "DampingParams",
    "CycleRecord",
    "SimResult",
    "RunState",
    "DampingSurface",
    # Presets
    "SCENARIO_ACTIVATION",
    "SCENARIO_ACTIVATION_MEMORY",
    "SCENARIO_SIZE_ONLY",
    "VARIANT_PRESETS",
    "preset_for",
    "config_to_dict",
    "config_hash",
    # Constants
    "EngineState",
    "LogBase",
    "WeightReducer",
    "INITIAL_LOAD_TABLE",
    "BASE_LOAD",
    "UNIT_WEIGHT_TABLE",
    "SKEWED_WEIGHT_TABLE",
    # Initial state
    "generate_initial_loads",
    "initial_loads_for",
    # Damping
    "growth_component",
    "silo_component",
    "damping_factor",
    "scaling_factor",
    "damping_surface",
    # Core simulation
    "run_simulation",
    "run_multiverse",
    "run_sweep",
    "initialize_state",
    "simulate_cycle",
    "optimal_loads",
    "compute_deviations",
    "pairwise_deltas",
    "apply_adjustment",
    # Validation
    "config_errors",
    "validate_config",
    "check_conservation",
    # Export
    "summarize",
    "series",
    "ideal_load",
    "export_result",
    "generate_report",
]
