"""Argument checks shared by the ledger components."""

from __future__ import annotations

from typing import Any

from .errors import ErrorKind, LedgerError
from .models import UINT_MAX, Identity


def require_identity(identity: Any) -> Identity:
    """Reject identities that cannot serve as a map key."""
    if not isinstance(identity, str) or not identity:
        raise LedgerError(ErrorKind.INVALID_ARGUMENT, "empty_identity")
    return identity


def require_uint(value: Any, name: str) -> int:
    """Accept only integers in [0, UINT_MAX]. bool is rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise LedgerError(ErrorKind.INVALID_ARGUMENT, f"{name}_not_integer")
    if not 0 <= value <= UINT_MAX:
        raise LedgerError(ErrorKind.INVALID_ARGUMENT, f"{name}_out_of_range")
    return value


__all__ = ["require_identity", "require_uint"]
