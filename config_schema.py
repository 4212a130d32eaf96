"""
Simulation Configuration Schema - File-backed SimConfig Control Plane

Loads, validates and saves rebalancing simulation configs as JSON or YAML
documents. A document may name a variant preset and override any field of it.

Consumed by:
- driver.py (CLI)

Design Principles:
- Self-validating: Can't load an invalid config
- Self-describing: Exports its JSON schema
- Immutable: Produces frozen SimConfig instances
"""

from __future__ import annotations

import json
import warnings
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml
from jsonschema import Draft202012Validator

from receipts import InvalidArgument
from rebalance.constants import LogBase, WeightReducer
from rebalance.types_config import (
    SimConfig,
    DampingParams,
    VARIANT_PRESETS,
    config_hash,
    config_to_dict,
    preset_for,
)
from rebalance.validation import config_errors


__all__ = [
    'SCHEMA',
    'load',
    'from_dict',
    'to_dict',
    'save',
    'check_file',
    'config_hash',
    'validate_document',
]


# =============================================================================
# JSON Schema Definition (Draft 2020-12)
# =============================================================================

SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "SimConfig",
    "description": "Silo rebalancing simulation configuration",
    "type": "object",
    "required": ["node_count"],
    "properties": {
        "preset": {
            "type": "string",
            "description": "Variant preset the document starts from",
            "enum": sorted(VARIANT_PRESETS)
        },
        "node_count": {
            "type": "integer",
            "description": "Number of silos S",
            "minimum": 1
        },
        "max_cycles": {
            "type": "integer",
            "description": "Hard bound on cycles run",
            "minimum": 1
        },
        "max_stale_cycles": {
            "type": "integer",
            "description": "Consecutive stable-entropy cycles that mean convergence",
            "minimum": 1
        },
        "entropy_stale_threshold": {
            "type": "number",
            "description": "Entropy change below which a cycle counts as stale",
            "exclusiveMinimum": 0
        },
        "capacity_weights": {
            "type": ["array", "null"],
            "description": "Relative capacity per silo (null = unweighted)",
            "items": {"type": "number", "exclusiveMinimum": 0}
        },
        "use_adaptive_damping": {
            "type": "boolean",
            "description": "Scale adjustments by the adaptive damping factor"
        },
        "cycle_rate": {
            "type": "number",
            "description": "Damping growth rate per cycle",
            "exclusiveMinimum": 0
        },
        "silo_rate": {
            "type": "number",
            "description": "Damping attenuation per additional silo",
            "exclusiveMinimum": 0
        },
        "log_base": {
            "type": "string",
            "description": "Entropy logarithm base",
            "enum": [b.value for b in LogBase]
        },
        "weight_reducer": {
            "type": "string",
            "description": "Reducer for the reference weight M",
            "enum": [r.value for r in WeightReducer]
        },
        "weighted_entropy": {
            "type": "boolean",
            "description": "Weight the entropy distribution by capacity (false = plain shares)"
        },
        "initial_loads": {
            "type": ["array", "null"],
            "description": "Explicit starting loads (null = scenario table)",
            "items": {"type": "number", "minimum": 0}
        },
        "scenario_name": {
            "type": "string",
            "minLength": 1
        }
    },
    "additionalProperties": False
}

Draft202012Validator.check_schema(SCHEMA)
_VALIDATOR = Draft202012Validator(SCHEMA)


# =============================================================================
# Validation
# =============================================================================

def validate_document(data: Any) -> Tuple[bool, List[str], List[str]]:
    """
    Validate a config document.

    Returns: (is_valid, errors, warnings)

    Rules:
    - Document matches SCHEMA
    - Resulting SimConfig passes config_errors()
    - max_stale_cycles > max_cycles is allowed but can never converge (warning)
    """
    errors: List[str] = []
    warns: List[str] = []

    if not isinstance(data, dict):
        return False, [f"Config document must be a mapping, got {type(data).__name__}"], warns

    for err in sorted(_VALIDATOR.iter_errors(data), key=lambda e: list(e.path)):
        location = ".".join(str(p) for p in err.path) or "<root>"
        errors.append(f"Schema: {location}: {err.message}")

    if errors:
        return False, errors, warns

    config = _build(data)
    errors.extend(config_errors(config))

    if config.max_stale_cycles > config.max_cycles:
        warns.append(
            f"max_stale_cycles ({config.max_stale_cycles}) exceeds max_cycles "
            f"({config.max_cycles}); the run can only end EXHAUSTED"
        )
    if config.capacity_weights is None and 'weight_reducer' in data:
        warns.append("weight_reducer has no effect without capacity_weights")

    return len(errors) == 0, errors, warns


# =============================================================================
# Construction
# =============================================================================

def _build(data: Dict[str, Any]) -> SimConfig:
    """Apply document fields on top of the preset (or SimConfig defaults)."""
    node_count = int(data["node_count"])
    if "preset" in data:
        base = preset_for(data["preset"], node_count)
    else:
        base = replace(SimConfig(), node_count=node_count)

    damping = DampingParams(
        cycle_rate=float(data.get("cycle_rate", base.damping.cycle_rate)),
        silo_rate=float(data.get("silo_rate", base.damping.silo_rate)),
    )

    changes: Dict[str, Any] = {"damping": damping}
    for key in ("max_cycles", "max_stale_cycles"):
        if key in data:
            changes[key] = int(data[key])
    if "entropy_stale_threshold" in data:
        changes["entropy_stale_threshold"] = float(data["entropy_stale_threshold"])
    if "use_adaptive_damping" in data:
        changes["use_adaptive_damping"] = bool(data["use_adaptive_damping"])
    if "weighted_entropy" in data:
        changes["weighted_entropy"] = bool(data["weighted_entropy"])
    if "log_base" in data:
        changes["log_base"] = LogBase(data["log_base"])
    if "weight_reducer" in data:
        changes["weight_reducer"] = WeightReducer(data["weight_reducer"])
    if "capacity_weights" in data:
        weights = data["capacity_weights"]
        changes["capacity_weights"] = tuple(float(w) for w in weights) if weights is not None else None
    if "initial_loads" in data:
        loads = data["initial_loads"]
        changes["initial_loads"] = tuple(float(x) for x in loads) if loads is not None else None
    if "scenario_name" in data:
        changes["scenario_name"] = data["scenario_name"]

    return replace(base, **changes)


def from_dict(data: Dict[str, Any]) -> SimConfig:
    """
    Create a SimConfig from a config document.

    Args:
        data: Configuration dictionary

    Returns:
        Validated, frozen SimConfig

    Raises:
        InvalidArgument: If the document is invalid
    """
    is_valid, errors, warns = validate_document(data)
    if not is_valid:
        raise InvalidArgument("Config validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    for w in warns:
        warnings.warn(f"SimConfig: {w}", UserWarning, stacklevel=2)

    return _build(data)


def to_dict(config: SimConfig) -> Dict[str, Any]:
    """Config document for a SimConfig (loadable by from_dict)."""
    data = config_to_dict(config)
    # null entries are schema-valid but noisy in files
    return {k: v for k, v in data.items() if v is not None}


# =============================================================================
# File I/O
# =============================================================================

def _read(path_obj: Path) -> Any:
    """Parse a JSON/YAML file; InvalidArgument if it is not well-formed."""
    content = path_obj.read_text()
    try:
        if path_obj.suffix in ('.yaml', '.yml'):
            return yaml.safe_load(content)
        return json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidArgument(f"Unparseable config {path_obj}: {e}") from e


def load(path: str) -> SimConfig:
    """
    Load config from a JSON/YAML file.

    Auto-validates on load (not separate step).

    Args:
        path: Path to config file

    Returns:
        Validated, frozen SimConfig

    Raises:
        FileNotFoundError: If path doesn't exist
        InvalidArgument: If the file does not parse or validation fails
    """
    path_obj = Path(path)

    if not path_obj.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    return from_dict(_read(path_obj))


def check_file(path: str) -> Tuple[bool, List[str], List[str]]:
    """validate_document() for a file on disk; FileNotFoundError if missing."""
    path_obj = Path(path)
    if not path_obj.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        data = _read(path_obj)
    except InvalidArgument as e:
        return False, [str(e)], []
    return validate_document(data)


def save(config: SimConfig, path: str) -> None:
    """
    Write config to file.

    Args:
        config: SimConfig to write
        path: File path to write to (.json or .yaml)
    """
    data = to_dict(config)
    path_obj = Path(path)

    if path_obj.suffix in ('.yaml', '.yml'):
        content = yaml.safe_dump(data, default_flow_style=False, sort_keys=True)
    else:
        content = json.dumps(data, indent=2, sort_keys=True)

    path_obj.write_text(content)
