"""
rebalance/cycle.py - Core Rebalancing Loop

Main simulation entry points: simulate_cycle, run_simulation, run_multiverse,
run_sweep.

Each cycle snapshots the load vector, measures entropy and alpha, checks for
entropy stability, then moves load between adjacent silos toward their
(capacity-weighted) optimal targets.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from entropy import load_entropy, max_entropy, convergence_ratio, reference_weight
from receipts import emit_receipt

from .constants import EngineState, UNIT_WEIGHT_TABLE
from .damping import scaling_factor
from .initial_state import initial_loads_for
from .types_config import SimConfig, config_hash, preset_for
from .types_result import CycleRecord, SimResult
from .validation import validate_config

logger = logging.getLogger(__name__)


# =============================================================================
# RUN STATE
# =============================================================================

@dataclass
class RunState:
    """Mutable loop state for a single run."""
    loads: np.ndarray
    weights: np.ndarray
    reference: float
    h_max: float
    previous_entropy: float
    cycle: int = 0
    stale_cycles: int = 0
    state: EngineState = EngineState.RUNNING
    history: List[CycleRecord] = field(default_factory=list)


# =============================================================================
# PER-CYCLE MATH
# =============================================================================

def optimal_loads(loads: np.ndarray, weights: np.ndarray, reference: float) -> np.ndarray:
    """
    Target load per silo: (N / S) * (M / w_i).

    N is the current total, so drift from rounding is absorbed each cycle.
    """
    total = float(np.sum(loads))
    return (total / loads.size) * (reference / weights)


def compute_deviations(loads: np.ndarray, optimal: np.ndarray) -> np.ndarray:
    """Positive = silo above target."""
    return loads - optimal


def pairwise_deltas(deviations: np.ndarray, alpha: float, factor: float) -> np.ndarray:
    """
    Whole-unit transfer from silo i to silo i+1 for every adjacent pair.

    delta_i = round(alpha * factor * (dev_i - dev_{i+1}) / 2), half to even.
    NaN deltas become 0 (that pair is skipped this cycle).
    """
    dev_diff = deviations[:-1] - deviations[1:]
    deltas = np.round(alpha * factor * (dev_diff / 2))
    return np.where(np.isnan(deltas), 0.0, deltas)


def apply_adjustment(loads: np.ndarray, deltas: np.ndarray) -> np.ndarray:
    """Subtract each delta from silo i, add it to silo i+1, floor at zero."""
    adjusted = loads.copy()
    adjusted[:-1] -= deltas
    adjusted[1:] += deltas
    if np.any(adjusted < 0):
        logger.debug("clamping negative loads to zero: %s", adjusted.tolist())
    return np.maximum(adjusted, 0.0)


def _entropy(loads: np.ndarray, run: RunState, config: SimConfig) -> float:
    if config.capacity_weights is None or not config.weighted_entropy:
        return load_entropy(loads, log_base=config.log_base)
    return load_entropy(loads, run.weights, run.reference, log_base=config.log_base)


# =============================================================================
# CYCLE
# =============================================================================

def initialize_state(config: SimConfig) -> RunState:
    """
    Validate config and build the starting RunState.

    Raises:
        InvalidArgument: If the config is malformed
    """
    validate_config(config)

    loads = np.array(initial_loads_for(config), dtype=float)
    if config.capacity_weights is None:
        weights = np.ones(config.node_count)
        reference = 1.0
    else:
        weights = np.array(config.capacity_weights, dtype=float)
        reference = reference_weight(weights, config.weight_reducer)

    run = RunState(
        loads=loads,
        weights=weights,
        reference=reference,
        h_max=max_entropy(config.node_count, config.log_base),
        previous_entropy=0.0
    )
    run.previous_entropy = _entropy(loads, run, config)
    return run


def simulate_cycle(run: RunState, config: SimConfig) -> CycleRecord:
    """
    One iteration of the rebalancing loop.

    Args:
        run: Current RunState (mutated in place)
        config: SimConfig with parameters

    Returns:
        CycleRecord for this cycle (also appended to run.history)
    """
    snapshot = tuple(float(x) for x in run.loads)

    optimal = optimal_loads(run.loads, run.weights, run.reference)
    deviations = compute_deviations(run.loads, optimal)

    entropy = _entropy(run.loads, run, config)
    alpha = convergence_ratio(entropy, run.h_max)
    factor = scaling_factor(run.cycle, config)

    record = CycleRecord(
        cycle=run.cycle,
        loads=snapshot,
        entropy=entropy,
        alpha=alpha,
        damping=factor,
        deviations=tuple(float(d) for d in deviations)
    )
    run.history.append(record)

    # Entropy stability
    if abs(entropy - run.previous_entropy) < config.entropy_stale_threshold:
        run.stale_cycles += 1
    else:
        run.stale_cycles = 0
    run.previous_entropy = entropy

    if run.stale_cycles >= config.max_stale_cycles:
        run.state = EngineState.CONVERGED
        logger.debug("cycle %d: converged (H=%.6f, alpha=%.4f)", run.cycle, entropy, alpha)
        return record

    deltas = pairwise_deltas(deviations, alpha, factor)
    run.loads = apply_adjustment(run.loads, deltas)

    logger.debug("cycle %d: H=%.6f alpha=%.4f damping=%.4f stale=%d",
                 run.cycle, entropy, alpha, factor, run.stale_cycles)

    if run.cycle >= config.max_cycles - 1:
        run.state = EngineState.EXHAUSTED

    return record


def run_simulation(config: SimConfig) -> SimResult:
    """
    Run the rebalancing loop until entropy stabilizes or cycles run out.

    Args:
        config: SimConfig with parameters

    Returns:
        SimResult with initial/final loads, full cycle history and receipts

    Raises:
        InvalidArgument: If the config is malformed (no cycle is run)
    """
    run = initialize_state(config)
    initial = tuple(float(x) for x in run.loads)

    while run.state is EngineState.RUNNING:
        simulate_cycle(run, config)
        if run.state is EngineState.RUNNING:
            run.cycle += 1

    final = tuple(float(x) for x in run.loads)
    total_cycles = run.cycle + 1

    receipts = [emit_receipt("sim_run", {
        "scenario": config.scenario_name,
        "node_count": config.node_count,
        "config_hash": config_hash(config),
        "total_cycles": total_cycles,
        "termination": run.state.value,
        "initial_entropy": run.history[0].entropy,
        "final_entropy": _entropy(run.loads, run, config),
        "initial_total": float(sum(initial)),
        "final_total": float(sum(final))
    })]
    if run.state is EngineState.CONVERGED:
        receipts.append(emit_receipt("convergence", {
            "scenario": config.scenario_name,
            "node_count": config.node_count,
            "cycle": run.cycle,
            "stale_cycles": run.stale_cycles,
            "alpha": run.history[-1].alpha
        }))

    logger.info("%s S=%d: %s after %d cycles",
                config.scenario_name, config.node_count, run.state.value, total_cycles)

    return SimResult(
        initial_loads=initial,
        final_loads=final,
        history=tuple(run.history),
        total_cycles=total_cycles,
        termination=run.state,
        config=config,
        receipts=tuple(receipts)
    )


def run_multiverse(configs: Sequence[SimConfig], max_workers: Optional[int] = None) -> List[SimResult]:
    """
    Run independent simulations, optionally on a thread pool.

    Runs share no state, so results are identical either way.

    Args:
        configs: SimConfig objects
        max_workers: Thread count; None or 1 runs in sequence

    Returns:
        SimResult per config, in input order
    """
    if not max_workers or max_workers <= 1:
        return [run_simulation(config) for config in configs]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(run_simulation, config) for config in configs]
        return [f.result() for f in futures]


def run_sweep(preset: str = "ACTIVATION",
              min_nodes: int = 1,
              max_nodes: int = 5,
              weight_table: Sequence[Sequence[float]] = UNIT_WEIGHT_TABLE,
              max_workers: Optional[int] = None) -> List[SimResult]:
    """
    Run one preset across a range of silo counts.

    Args:
        preset: Variant preset name
        min_nodes: Smallest silo count (inclusive)
        max_nodes: Largest silo count (inclusive)
        weight_table: Capacity weights for weighted presets
        max_workers: Thread count for run_multiverse

    Returns:
        SimResult per silo count, ascending
    """
    configs = [preset_for(preset, s, weight_table) for s in range(min_nodes, max_nodes + 1)]
    return run_multiverse(configs, max_workers=max_workers)
