"""
rebalance/validation.py - Config Validation and Load Conservation

Rejects malformed configs before any cycle runs, and measures how far the
total load drifted over a run.
"""

from typing import List, Sequence, Tuple

import numpy as np

from receipts import InvalidArgument, StopRule, emit_receipt

from .constants import CONSERVATION_TOLERANCE
from .types_config import SimConfig


def config_errors(config: SimConfig) -> List[str]:
    """
    Collect every problem with a config.

    Rules:
    - node_count >= 1
    - max_cycles, max_stale_cycles > 0
    - entropy_stale_threshold > 0
    - capacity_weights (if any) has node_count positive entries
    - initial_loads (if any) has node_count non-negative entries
    - damping rates > 0 when damping is enabled
    """
    errors: List[str] = []

    if config.node_count < 1:
        errors.append(f"node_count must be >= 1, got {config.node_count}")
    if config.max_cycles <= 0:
        errors.append(f"max_cycles must be > 0, got {config.max_cycles}")
    if config.max_stale_cycles <= 0:
        errors.append(f"max_stale_cycles must be > 0, got {config.max_stale_cycles}")
    if not config.entropy_stale_threshold > 0:
        errors.append(f"entropy_stale_threshold must be > 0, got {config.entropy_stale_threshold}")

    if config.capacity_weights is not None:
        if len(config.capacity_weights) != config.node_count:
            errors.append(
                f"capacity_weights has {len(config.capacity_weights)} entries, "
                f"expected {config.node_count}"
            )
        if any(not w > 0 for w in config.capacity_weights):
            errors.append(f"capacity_weights must be positive, got {list(config.capacity_weights)}")

    if config.initial_loads is not None:
        if len(config.initial_loads) != config.node_count:
            errors.append(
                f"initial_loads has {len(config.initial_loads)} entries, "
                f"expected {config.node_count}"
            )
        if any(x < 0 for x in config.initial_loads):
            errors.append(f"initial_loads must be non-negative, got {list(config.initial_loads)}")

    if config.use_adaptive_damping:
        if not config.damping.cycle_rate > 0:
            errors.append(f"damping.cycle_rate must be > 0, got {config.damping.cycle_rate}")
        if not config.damping.silo_rate > 0:
            errors.append(f"damping.silo_rate must be > 0, got {config.damping.silo_rate}")

    return errors


def validate_config(config: SimConfig) -> None:
    """
    Raise InvalidArgument listing every config error.

    Raises:
        InvalidArgument: If config_errors() is non-empty
    """
    errors = config_errors(config)
    if errors:
        raise InvalidArgument("Invalid simulation config:\n" + "\n".join(f"  - {e}" for e in errors))


def check_conservation(initial_loads: Sequence[float],
                       final_loads: Sequence[float],
                       tolerance: float = CONSERVATION_TOLERANCE,
                       strict: bool = False) -> Tuple[bool, dict]:
    """
    Compare total load before and after a run.

    Pairwise transfers are exactly conservative; only rounding and the
    floor at zero move the total.

    Args:
        initial_loads: Load vector before the run
        final_loads: Load vector after the run
        tolerance: Allowed relative drift of the total
        strict: Raise StopRule instead of returning False

    Returns:
        Tuple of (within_tolerance, conservation_check receipt)

    Raises:
        StopRule: If strict and drift exceeds tolerance
    """
    before = float(np.sum(initial_loads))
    after = float(np.sum(final_loads))
    drift = after - before
    relative = abs(drift) / before if before else abs(drift)
    ok = relative <= tolerance

    receipt = emit_receipt("conservation_check", {
        "total_before": before,
        "total_after": after,
        "drift": drift,
        "relative_drift": relative,
        "tolerance": tolerance,
        "passed": ok
    })

    if strict and not ok:
        raise StopRule(
            f"Load drift {relative:.4%} exceeds tolerance {tolerance:.4%} "
            f"({before} -> {after})"
        )
    return ok, receipt
