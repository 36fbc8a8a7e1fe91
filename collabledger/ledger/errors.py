"""Error kinds and operation results for the ledger.

Caller misuse (wrong identity, stale id, double verification) is an expected
outcome: components raise LedgerError, and the service turns it into a failed
OpResult. Host faults (corrupt storage) are separate exceptions and propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ErrorKind(IntEnum):
    """Stable numeric codes for rejected operations."""

    NOT_OWNER = 100
    NOT_FOUND = 101
    ALREADY_VERIFIED = 102
    NOT_AUTHORIZED = 103
    ALREADY_INITIALIZED = 104
    INVALID_ARGUMENT = 105


class LedgerError(Exception):
    """A precondition failed; the whole operation is aborted."""

    def __init__(self, kind: ErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.name}: {detail}" if detail else kind.name)


class StateIntegrityError(Exception):
    """A persisted snapshot failed its content hash or invariant audit."""


@dataclass(frozen=True)
class OpResult:
    """Outcome of an exposed operation."""

    ok: bool
    value: Any = None
    error: ErrorKind | None = None
    detail: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Any = True) -> OpResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str = "") -> OpResult:
        return cls(ok=False, error=error, detail=detail)


__all__ = ["ErrorKind", "LedgerError", "OpResult", "StateIntegrityError"]
