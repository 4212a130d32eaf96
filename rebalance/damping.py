"""
rebalance/damping.py - Adaptive Damping (Scaling) Function

Throttles per-cycle adjustments: a growth ramp over elapsed cycles times an
attenuation over cluster size.

damping(c, S) = (1 - exp(-cycle_rate * c)) * 1 / (1 + silo_rate * (S - 1))
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .constants import (
    SURFACE_CYCLE_RATE,
    SURFACE_SILO_RATE,
    SURFACE_MAX_CYCLES,
    SURFACE_MIN_SILOS,
    SURFACE_MAX_SILOS,
)
from .types_config import DampingParams, SimConfig


def growth_component(cycle: int, cycle_rate: float) -> float:
    """0 at cycle 0, rising monotonically toward 1."""
    return 1 - math.exp(-cycle_rate * cycle)


def silo_component(node_count: int, silo_rate: float) -> float:
    """1 for a single silo, falling monotonically as silos are added."""
    return 1 / (1 + silo_rate * (node_count - 1))


def damping_factor(cycle: int, node_count: int, params: DampingParams = DampingParams()) -> float:
    """
    Combined adaptive scaling factor.

    Args:
        cycle: Cycle index c (>= 0)
        node_count: Silo count S (>= 1)
        params: DampingParams rate constants

    Returns:
        float in [0, 1); exactly 0 at cycle 0
    """
    return growth_component(cycle, params.cycle_rate) * silo_component(node_count, params.silo_rate)


def scaling_factor(cycle: int, config: SimConfig) -> float:
    """Damping factor for this run, or 1.0 when damping is disabled."""
    if not config.use_adaptive_damping:
        return 1.0
    return damping_factor(cycle, config.node_count, config.damping)


# =============================================================================
# DAMPING SURFACE
# =============================================================================

@dataclass(frozen=True, eq=False)
class DampingSurface:
    """Growth series, silo series and the combined grid[silo, cycle]."""
    cycles: Tuple[int, ...]
    silos: Tuple[int, ...]
    growth: Tuple[float, ...]
    attenuation: Tuple[float, ...]
    grid: np.ndarray


def damping_surface(cycles: Sequence[int] = tuple(range(1, SURFACE_MAX_CYCLES + 1)),
                    silos: Sequence[int] = tuple(range(SURFACE_MIN_SILOS, SURFACE_MAX_SILOS + 1)),
                    params: DampingParams = DampingParams(SURFACE_CYCLE_RATE, SURFACE_SILO_RATE)
                    ) -> DampingSurface:
    """
    Evaluate the damping function over a cycles x silos grid.

    Args:
        cycles: Cycle indices (columns)
        silos: Silo counts (rows)
        params: Rate constants

    Returns:
        DampingSurface with grid shape (len(silos), len(cycles))
    """
    cycles = tuple(int(c) for c in cycles)
    silos = tuple(int(s) for s in silos)
    growth = np.array([growth_component(c, params.cycle_rate) for c in cycles])
    attenuation = np.array([silo_component(s, params.silo_rate) for s in silos])
    grid = np.outer(attenuation, growth)
    return DampingSurface(
        cycles=cycles,
        silos=silos,
        growth=tuple(float(g) for g in growth),
        attenuation=tuple(float(a) for a in attenuation),
        grid=grid
    )
