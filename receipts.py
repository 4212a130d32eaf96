"""
receipts.py - Run Audit Records and Shared Exceptions

Each simulation run leaves a small trail of receipts (sim_run, convergence,
conservation_check). A receipt is a flat dict: the common header fields in
RECEIPT_SCHEMA followed by the event payload. payload_hash is SHA256:BLAKE3
over the canonical JSON of the payload.
"""

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Union

import blake3

__all__ = [
    "RECEIPT_SCHEMA",
    "dual_hash",
    "emit_receipt",
    "append_receipts",
    "StopRule",
    "InvalidArgument",
]

# Header fields every receipt carries, ahead of its payload
RECEIPT_SCHEMA = {
    "receipt_type": "str",
    "ts": "ISO8601",
    "tenant_id": "str",
    "payload_hash": "str (SHA256:BLAKE3)",
}

DEFAULT_TENANT = "rebalance-sim"


def dual_hash(data: Union[bytes, str]) -> str:
    """'<sha256 hex>:<blake3 hex>' of data (str is UTF-8 encoded)."""
    raw = data.encode() if isinstance(data, str) else data
    return ":".join((hashlib.sha256(raw).hexdigest(), blake3.blake3(raw).hexdigest()))


def emit_receipt(receipt_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Stamp a payload with the receipt header.

    payload may carry its own tenant_id; otherwise DEFAULT_TENANT is used.
    """
    canonical = json.dumps(payload, sort_keys=True)
    header = {
        "receipt_type": receipt_type,
        "ts": datetime.now(timezone.utc).isoformat(),
        "tenant_id": payload.get("tenant_id", DEFAULT_TENANT),
        "payload_hash": dual_hash(canonical),
    }
    return {**header, **payload}


def append_receipts(receipts: Iterable[Dict[str, Any]], path: Union[str, Path]) -> int:
    """
    Append receipts to a JSONL file, one compact line each.

    Returns:
        int: Number of receipts written
    """
    lines = [json.dumps(r, separators=(",", ":")) for r in receipts]
    with open(path, "a") as fh:
        fh.writelines(line + "\n" for line in lines)
    return len(lines)


class StopRule(Exception):
    """A run broke an invariant it was asked to enforce (e.g. strict conservation)."""


class InvalidArgument(ValueError):
    """Raised for malformed simulation input, before any cycle runs."""
