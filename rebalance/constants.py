"""
rebalance/constants.py - Simulation Constants

Scenario tables, default loop bounds and damping rates. Centralized for tuning.
Pure data, no behavior.
"""

from enum import Enum

from entropy import LogBase, WeightReducer


# =============================================================================
# ENGINE STATES
# =============================================================================

class EngineState(Enum):
    """Rebalancing engine lifecycle."""
    RUNNING = "RUNNING"
    CONVERGED = "CONVERGED"    # entropy stopped changing for max_stale_cycles
    EXHAUSTED = "EXHAUSTED"    # hit max_cycles first


# =============================================================================
# INITIAL LOAD SCENARIOS
# =============================================================================

# Deliberately skewed starting distributions for 1..5 silos
INITIAL_LOAD_TABLE = (
    (100.0,),
    (900.0, 10.0),
    (800.0, 10.0, 100.0),
    (70.0, 10.0, 10.0, 10.0),
    (700.0, 120.0, 340.0, 1200.0, 2500.0),
)

# Fallback for larger clusters: node 0 holds BASE_LOAD * (S-1), the rest BASE_LOAD
BASE_LOAD = 10.0

# =============================================================================
# CAPACITY WEIGHT TABLES (relative memory usage per silo)
# =============================================================================

UNIT_WEIGHT_TABLE = (
    (1.0,),
    (1.0, 1.0),
    (1.0, 1.0, 1.0),
    (1.0, 1.0, 1.0, 1.0),
    (1.0, 1.0, 1.0, 1.0, 1.0),
)

SKEWED_WEIGHT_TABLE = (
    (1.0,),
    (1.0, 1.5),
    (1.0, 1.5, 2.0),
    (1.0, 1.5, 2.0, 1.3),
    (1.0, 1.5, 2.0, 1.3, 2.2),
)

# =============================================================================
# LOOP BOUNDS
# =============================================================================

DEFAULT_MAX_CYCLES = 40
DEFAULT_MAX_STALE_CYCLES = 10
DEFAULT_ENTROPY_STALE_THRESHOLD = 1e-4

# =============================================================================
# ADAPTIVE DAMPING RATES
# =============================================================================

DEFAULT_CYCLE_RATE = 0.1   # growth ramp per cycle inside the engine
DEFAULT_SILO_RATE = 0.5    # attenuation per extra silo

# Damping surface exploration (standalone adaptive-scaling chart)
SURFACE_CYCLE_RATE = 0.2
SURFACE_SILO_RATE = 0.5
SURFACE_MAX_CYCLES = 20
SURFACE_MIN_SILOS = 2
SURFACE_MAX_SILOS = 10

# =============================================================================
# CONSERVATION
# =============================================================================

# Relative drift of total load tolerated before check_conservation complains
CONSERVATION_TOLERANCE = 0.01

__all__ = [
    "EngineState",
    "LogBase",
    "WeightReducer",
    "INITIAL_LOAD_TABLE",
    "BASE_LOAD",
    "UNIT_WEIGHT_TABLE",
    "SKEWED_WEIGHT_TABLE",
    "DEFAULT_MAX_CYCLES",
    "DEFAULT_MAX_STALE_CYCLES",
    "DEFAULT_ENTROPY_STALE_THRESHOLD",
    "DEFAULT_CYCLE_RATE",
    "DEFAULT_SILO_RATE",
    "SURFACE_CYCLE_RATE",
    "SURFACE_SILO_RATE",
    "SURFACE_MAX_CYCLES",
    "SURFACE_MIN_SILOS",
    "SURFACE_MAX_SILOS",
    "CONSERVATION_TOLERANCE",
]
