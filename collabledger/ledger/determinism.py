"""Canonical hashing for persisted ledger snapshots."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from .models import LedgerState


def canonical_json(data: Any) -> str:
    """Deterministic JSON: sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def compute_hash(data: Any) -> str:
    """SHA256 hex digest of the canonical JSON form."""
    return hashlib.sha256(canonical_json(data).encode()).hexdigest()


def compute_state_hash(state: LedgerState) -> str:
    """Content hash of a full snapshot.

    Two states built from the same committed operations hash equal.
    """
    return compute_hash(state.model_dump(mode="json"))


__all__ = ["canonical_json", "compute_hash", "compute_state_hash"]
