"""
tests/test_receipts.py - dual_hash and receipt emission
"""

import json

from receipts import RECEIPT_SCHEMA, dual_hash, emit_receipt, append_receipts
from rebalance import SimConfig, run_simulation, check_conservation


def test_dual_hash_format():
    digest = dual_hash("rebalance")
    sha, b3 = digest.split(":")
    assert len(sha) == 64 and len(b3) == 64, f"Unexpected digest: {digest}"


def test_dual_hash_str_matches_bytes():
    assert dual_hash("abc") == dual_hash(b"abc")
    assert dual_hash("abc") != dual_hash("abd")


def test_emit_receipt_fields():
    receipt = emit_receipt("sim_run", {"node_count": 3})
    assert receipt["receipt_type"] == "sim_run"
    assert receipt["tenant_id"] == "rebalance-sim"
    assert receipt["node_count"] == 3
    assert receipt["payload_hash"] == dual_hash(json.dumps({"node_count": 3}, sort_keys=True))
    assert "ts" in receipt


def test_emit_receipt_tenant_override():
    assert emit_receipt("x", {"tenant_id": "lab"})["tenant_id"] == "lab"


def test_run_receipts_carry_header():
    """Every receipt a run produces starts with the RECEIPT_SCHEMA header fields."""
    result = run_simulation(SimConfig(node_count=2))
    _, conservation = check_conservation(result.initial_loads, result.final_loads)
    for receipt in result.receipts + (conservation,):
        missing = set(RECEIPT_SCHEMA) - set(receipt)
        assert not missing, f"{receipt['receipt_type']} missing {missing}"
        assert list(receipt)[:len(RECEIPT_SCHEMA)] == list(RECEIPT_SCHEMA)


def test_append_receipts(tmp_path):
    path = tmp_path / "receipts.jsonl"
    assert append_receipts([emit_receipt("a", {"x": 1})], path) == 1
    assert append_receipts([emit_receipt("b", {"x": 2})], str(path)) == 1
    lines = path.read_text().splitlines()
    assert [json.loads(line)["receipt_type"] for line in lines] == ["a", "b"]
