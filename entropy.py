"""
entropy.py - The Fundamental Module

Computes Shannon entropy of a silo load distribution, plain or weighted by
relative silo capacity. The normalized form (alpha) is the convergence
progress ratio that drives every rebalancing step.
"""

import math
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from receipts import InvalidArgument


# =============================================================================
# ENUMS
# =============================================================================

class LogBase(Enum):
    """Logarithm base used for entropy (nats or bits)."""
    NATURAL = "e"
    BINARY = "2"


class WeightReducer(Enum):
    """How capacity weights collapse into the reference scalar M.

    HARMONIC suits weights that express capacity (memory-constrained silos);
    ARITHMETIC is a plain average weighting. The two give different optimal
    targets whenever the weights are unequal.
    """
    HARMONIC = "harmonic"
    ARITHMETIC = "arithmetic"


# =============================================================================
# WEIGHT REDUCERS
# =============================================================================

def harmonic_mean(values: Sequence[float]) -> float:
    """n / sum(1/x). All values must be positive."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        raise InvalidArgument("harmonic_mean of empty sequence")
    if np.any(arr <= 0):
        raise InvalidArgument(f"harmonic_mean requires positive values, got {list(arr)}")
    return float(arr.size / np.sum(1.0 / arr))


def arithmetic_mean(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        raise InvalidArgument("arithmetic_mean of empty sequence")
    return float(np.mean(arr))


def reference_weight(weights: Optional[Sequence[float]],
                     reducer: WeightReducer = WeightReducer.HARMONIC) -> float:
    """
    Reduce capacity weights to the reference scalar M.

    Args:
        weights: Per-silo capacity weights, or None for the unweighted case
        reducer: WeightReducer choice

    Returns:
        float: M (1.0 when weights is None)
    """
    if weights is None:
        return 1.0
    if reducer is WeightReducer.HARMONIC:
        return harmonic_mean(weights)
    return arithmetic_mean(weights)


# =============================================================================
# CORE FUNCTION 1: load_entropy
# =============================================================================

def load_entropy(loads: Sequence[float],
                 weights: Optional[Sequence[float]] = None,
                 reference: Optional[float] = None,
                 log_base: LogBase = LogBase.NATURAL,
                 reducer: WeightReducer = WeightReducer.HARMONIC) -> float:
    """
    Shannon entropy H = -sum(p_i * log(p_i)) of a load distribution.

    Plain: p_i = n_i / total
    Weighted: p_i = (n_i / total) * (m_i / M)

    Args:
        loads: Per-silo load vector
        weights: Optional capacity weights, same length as loads
        reference: Reference scalar M; derived from weights via reducer if None
        log_base: LogBase.NATURAL (nats) or LogBase.BINARY (bits)
        reducer: WeightReducer used when reference is None

    Returns:
        float: Entropy, 0.0 when total load is zero

    Edge cases:
        - All-zero loads -> 0.0 (degenerate distribution, not an error)
        - Zero probabilities are dropped (0 * log 0 = 0)
    """
    n = np.asarray(loads, dtype=float)
    total = float(np.sum(n))
    if total == 0:
        return 0.0

    p = n / total
    if weights is not None:
        m = np.asarray(weights, dtype=float)
        if m.shape != n.shape:
            raise InvalidArgument(
                f"weights length {m.size} does not match loads length {n.size}"
            )
        M = reference if reference is not None else reference_weight(m, reducer)
        p = p * (m / M)

    p = p[p > 0]
    log = np.log2 if log_base is LogBase.BINARY else np.log
    # + 0.0 folds -0.0 from a single nonzero entry
    return float(-np.sum(p * log(p))) + 0.0


# =============================================================================
# CORE FUNCTION 2: max_entropy
# =============================================================================

def max_entropy(node_count: int, log_base: LogBase = LogBase.NATURAL) -> float:
    """Entropy of a perfectly uniform spread over node_count silos."""
    if node_count < 1:
        raise InvalidArgument(f"node_count must be >= 1, got {node_count}")
    if log_base is LogBase.BINARY:
        return math.log2(node_count)
    return math.log(node_count)


# =============================================================================
# CORE FUNCTION 3: convergence_ratio
# =============================================================================

def convergence_ratio(entropy: float, h_max: float) -> float:
    """alpha = H / H_max, 0 for a single silo (H_max == 0)."""
    if h_max == 0:
        return 0.0
    return entropy / h_max


__all__ = [
    "LogBase",
    "WeightReducer",
    "harmonic_mean",
    "arithmetic_mean",
    "reference_weight",
    "load_entropy",
    "max_entropy",
    "convergence_ratio",
]
