"""In-process StateStore. Nothing survives the process."""

from __future__ import annotations

from collabledger.ledger.models import LedgerState


class MemoryStore:
    """Keeps a private deep copy of the last committed snapshot."""

    def __init__(self, initial: LedgerState | None = None):
        self._state = initial.model_copy(deep=True) if initial is not None else None
        self.commits = 0

    def load(self) -> LedgerState | None:
        if self._state is None:
            return None
        return self._state.model_copy(deep=True)

    def commit(self, state: LedgerState) -> None:
        self._state = state.model_copy(deep=True)
        self.commits += 1


__all__ = ["MemoryStore"]
