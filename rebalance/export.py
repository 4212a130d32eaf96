"""
rebalance/export.py - Summary, Chart Series and Export

Flattens a SimResult into the scalars and per-cycle series a charting layer
consumes, plus JSON and text renderings.
Pure functions.
"""

import json
from typing import Any, Dict, List, Optional

from entropy import load_entropy, max_entropy

from .types_config import config_to_dict
from .types_result import SimResult


def _result_entropy(result: SimResult, loads) -> float:
    config = result.config
    weights = config.capacity_weights if config.weighted_entropy else None
    return load_entropy(
        loads,
        weights=weights,
        log_base=config.log_base,
        reducer=config.weight_reducer
    )


def ideal_load(result: SimResult) -> float:
    """Uniform equilibrium reference: initial total / S."""
    return sum(result.initial_loads) / len(result.initial_loads)


def summarize(result: SimResult) -> Dict[str, Any]:
    """
    Scalar summary of a run.

    Returns:
        dict with initial_entropy, final_entropy, max_entropy, alpha_start,
        alpha_end, ideal_load, total_cycles, termination
    """
    config = result.config
    return {
        "scenario": config.scenario_name,
        "node_count": config.node_count,
        "initial_entropy": _result_entropy(result, result.initial_loads),
        "final_entropy": _result_entropy(result, result.final_loads),
        "max_entropy": max_entropy(config.node_count, config.log_base),
        "alpha_start": result.history[0].alpha,
        "alpha_end": result.history[-1].alpha,
        "ideal_load": ideal_load(result),
        "total_cycles": result.total_cycles,
        "termination": result.termination.value,
    }


def series(result: SimResult) -> Dict[str, List[float]]:
    """
    Chart-ready columns, one entry per recorded cycle.

    Keys: cycles, alpha, entropy, damping, silo_0 .. silo_{S-1}
    """
    data: Dict[str, List[float]] = {
        "cycles": [r.cycle for r in result.history],
        "alpha": [r.alpha for r in result.history],
        "entropy": [r.entropy for r in result.history],
        "damping": [r.damping for r in result.history],
    }
    for i in range(result.config.node_count):
        data[f"silo_{i}"] = [r.loads[i] for r in result.history]
    return data


def export_result(result: SimResult, output_path: Optional[str] = None) -> str:
    """
    Format a SimResult as JSON.

    Args:
        result: SimResult to export
        output_path: Optional file to write the JSON to

    Returns:
        str: JSON formatted output
    """
    export_data = {
        "config": config_to_dict(result.config),
        "summary": summarize(result),
        "initial_loads": list(result.initial_loads),
        "final_loads": list(result.final_loads),
        "series": series(result),
    }
    content = json.dumps(export_data, indent=2)

    if output_path:
        with open(output_path, "w") as f:
            f.write(content)

    return content


def generate_report(result: SimResult) -> str:
    """
    Generate human-readable summary.

    Args:
        result: SimResult to summarize

    Returns:
        str: Report text
    """
    s = summarize(result)
    lines = [
        "=== REBALANCE REPORT ===",
        f"Scenario: {s['scenario']}",
        f"Silos: {s['node_count']}",
        f"Cycles: {s['total_cycles']} ({s['termination']})",
        f"Entropy: {s['initial_entropy']:.4f} -> {s['final_entropy']:.4f} (max {s['max_entropy']:.4f})",
        f"Alpha: {s['alpha_start']:.4f} -> {s['alpha_end']:.4f}",
        f"Ideal load: {s['ideal_load']:.0f}",
        f"Initial: {list(result.initial_loads)}",
        f"Final: {list(result.final_loads)}",
    ]
    return "\n".join(lines)
