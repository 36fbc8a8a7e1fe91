"""StateStore protocol - pluggable durable storage for the ledger.

Implementations: MemoryStore (tests, embedding), FilesystemStore (gzip JSON
snapshot + manifest), SqlStore (SQLAlchemy).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from collabledger.ledger.models import LedgerState


@runtime_checkable
class StateStore(Protocol):
    """Abstract interface for reading/writing ledger state."""

    def load(self) -> LedgerState | None:
        """Fetch the last committed snapshot, or None if nothing was committed."""
        ...

    def commit(self, state: LedgerState) -> None:
        """Durably replace the stored snapshot. Must be all-or-nothing."""
        ...


__all__ = ["StateStore"]
