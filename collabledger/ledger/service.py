"""Exposed operation surface of the proof-of-collaboration ledger.

Every mutating operation runs against a deep copy of the current state.
The copy is committed to the StateStore only if the whole operation
succeeds; any LedgerError discards it, so no operation applies partially.
The caller identity and the host's logical sequence value are passed in
explicitly on each call.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator

import bittensor as bt

from collabledger.auditor.verifier import StateVerifier

from .admin import AdminRegistry
from .contributions import ContributionLedger
from .directory import ContributorDirectory
from .errors import ErrorKind, LedgerError, OpResult, StateIntegrityError
from .models import (
    ContributionRecord,
    ContributorProfile,
    Identity,
    LedgerState,
)
from .store.interface import StateStore
from .store.memory import MemoryStore
from .verification import VerificationEngine


class _Components:
    """Registry, ledger, directory and engine bound to one staged state."""

    def __init__(self, state: LedgerState):
        self.registry = AdminRegistry(state.admin_set)
        self.ledger = ContributionLedger(state)
        self.directory = ContributorDirectory(state.contributors)
        self.engine = VerificationEngine(self.registry, self.ledger, self.directory)


class ProofOfCollaboration:
    """Contribution ledger with admin-gated verification and tiers.

    Each mutating operation stages a deep copy of the whole state, so its
    memory and copy cost grow with the ledger. Reads work on the committed
    state directly.

    Usage:
        poc = ProofOfCollaboration(store=FilesystemStore("data"))
        poc.initialize(deployer)
        cid = poc.submit(alice, "Fixed auth bug", created_at=height).value
        poc.verify(deployer, cid, 50)
        poc.refresh_tier(deployer, alice)
        poc.get_tier(alice).value  # Tier.BRONZE
    """

    def __init__(self, store: StateStore | None = None, verify_on_load: bool = True):
        self.store = store if store is not None else MemoryStore()

        loaded = self.store.load()
        if loaded is not None and verify_on_load:
            result = StateVerifier().verify(loaded)
            if not result:
                bt.logging.error({"ledger": {"event": "state_rejected", "errors": result.errors}})
                raise StateIntegrityError("; ".join(result.errors))

        self._state = loaded if loaded is not None else LedgerState()

    # -- Transaction plumbing --

    @contextmanager
    def _transaction(self) -> Iterator[_Components]:
        staged = self._state.model_copy(deep=True)
        yield _Components(staged)
        self.store.commit(staged)
        self._state = staged

    def _run(self, operation: str, fn: Callable[[_Components], Any]) -> OpResult:
        try:
            with self._transaction() as c:
                value = fn(c)
        except LedgerError as e:
            bt.logging.warning({"ledger": {
                "event": "operation_rejected",
                "operation": operation,
                "error": e.kind.name,
                "detail": e.detail,
            }})
            return OpResult.failure(e.kind, e.detail)
        return OpResult.success(value)

    # -- Mutating operations --

    def initialize(self, caller: Identity) -> OpResult:
        """Set caller as owner and first admin. Repeat calls by the owner succeed."""
        def op(c: _Components) -> bool:
            c.registry.initialize(caller)
            return True

        return self._run("initialize", op)

    def add_admin(self, caller: Identity, identity: Identity) -> OpResult:
        """Owner-only: grant verification rights to identity."""
        def op(c: _Components) -> bool:
            c.registry.add_admin(caller, identity)
            return True

        return self._run("add_admin", op)

    def submit(self, caller: Identity, details: str, created_at: int) -> OpResult:
        """Record a contribution by caller; value is the new id."""
        def op(c: _Components) -> int:
            contribution_id = c.ledger.submit(caller, details, created_at)
            c.directory.upsert_on_submission(caller)
            return contribution_id

        result = self._run("submit", op)
        if result:
            bt.logging.info({"ledger": {"event": "contribution_submitted", "id": result.value, "contributor": caller[:16]}})
        return result

    def verify(self, caller: Identity, contribution_id: int, score: int) -> OpResult:
        """Admin-only, once per contribution: lock in score and credit the contributor."""
        def op(c: _Components) -> bool:
            c.engine.verify(caller, contribution_id, score)
            return True

        return self._run("verify", op)

    def refresh_tier(self, caller: Identity, identity: Identity) -> OpResult:
        """Admin-only: recompute identity's tier from its current total_score."""
        def op(c: _Components) -> bool:
            c.engine.refresh_tier(caller, identity)
            return True

        return self._run("refresh_tier", op)

    # -- Read-only queries --

    def get_contribution(self, contribution_id: int) -> ContributionRecord | None:
        if isinstance(contribution_id, bool):
            return None
        record = self._lookup(self._state.contributions, contribution_id)
        return record.model_copy() if record is not None else None

    def get_profile(self, identity: Identity) -> ContributorProfile | None:
        profile = self._lookup(self._state.contributors, identity)
        return profile.model_copy() if profile is not None else None

    def get_tier(self, identity: Identity) -> OpResult:
        profile = self._lookup(self._state.contributors, identity)
        if profile is None:
            return OpResult.failure(ErrorKind.NOT_FOUND, "profile")
        return OpResult.success(profile.tier)

    def is_admin(self, identity: Identity) -> bool:
        return AdminRegistry(self._state.admin_set).is_admin(identity)

    def get_owner(self) -> Identity | None:
        return self._state.admin_set.owner

    def get_last_contribution_id(self) -> int:
        return self._state.last_contribution_id

    def get_contributions_by(self, identity: Identity) -> list[ContributionRecord]:
        return [r.model_copy() for r in ContributionLedger(self._state).by_contributor(identity)]

    def snapshot(self) -> LedgerState:
        """Deep copy of the committed state."""
        return self._state.model_copy(deep=True)

    @staticmethod
    def _lookup(table: dict, key: Any) -> Any:
        try:
            return table.get(key)
        except TypeError:
            # Unhashable keys cannot be present.
            return None


__all__ = ["ProofOfCollaboration"]
