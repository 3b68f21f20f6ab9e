"""
receipts.py - Run Receipt Foundation

Canonical emit_receipt() for TRTS runs. Every module that records an event
(run start, run completion, configuration load, search generation) imports
from here. Receipts are plain dicts so they can be written as JSONL or
inspected in tests.

Never single hash. Always dual_hash (SHA256:BLAKE3).
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

import blake3

__all__ = [
    "dual_hash",
    "emit_receipt",
    "write_receipt_jsonl",
    "read_receipt_jsonl",
    "StopRule",
    "RECEIPT_SCHEMA",
    "TENANT_ID",
]

# =============================================================================
# CONSTANTS
# =============================================================================

TENANT_ID = "trts"

RECEIPT_SCHEMA = {
    "receipt_type": "str",
    "ts": "ISO8601",
    "tenant_id": "str",
    "payload_hash": "str (SHA256:BLAKE3)",
}


# =============================================================================
# CORE FUNCTION 1: dual_hash
# =============================================================================

def dual_hash(data: Union[bytes, str]) -> str:
    """
    SHA256:BLAKE3 digest of data.

    Args:
        data: Bytes or string to hash

    Returns:
        str: "sha256_hex:blake3_hex" format
    """
    if isinstance(data, str):
        data = data.encode()
    sha = hashlib.sha256(data).hexdigest()
    b3 = blake3.blake3(data).hexdigest()
    return f"{sha}:{b3}"


# =============================================================================
# CORE FUNCTION 2: emit_receipt
# =============================================================================

def emit_receipt(receipt_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build a receipt for an event.

    Payload values must be JSON serialisable; rationals are passed as their
    "N/D" string form.

    Args:
        receipt_type: Type identifier for this receipt
        data: Receipt payload (tenant_id defaults to 'trts')

    Returns:
        dict: Complete receipt with ts, tenant_id, payload_hash, and data fields
    """
    receipt = {
        "receipt_type": receipt_type,
        "ts": datetime.now(timezone.utc).isoformat(),
        "tenant_id": data.get("tenant_id", TENANT_ID),
        "payload_hash": dual_hash(json.dumps(data, sort_keys=True)),
        **data
    }
    return receipt


# =============================================================================
# CORE FUNCTION 3: write_receipt_jsonl / read_receipt_jsonl
# =============================================================================

def write_receipt_jsonl(receipt: Dict[str, Any], fh) -> None:
    """
    Append receipt as single JSON line to file handle.

    Args:
        receipt: Receipt dict to write
        fh: File handle (must be open for writing)
    """
    line = json.dumps(receipt, separators=(",", ":"))
    fh.write(line + "\n")


def read_receipt_jsonl(fh) -> List[Dict[str, Any]]:
    """Read every receipt from a JSONL file handle, skipping blank lines."""
    return [json.loads(line) for line in fh if line.strip()]


# =============================================================================
# STOPRULE EXCEPTION
# =============================================================================

class StopRule(Exception):
    """Raised when a collaborator contract is broken. Never catch silently."""
    pass
