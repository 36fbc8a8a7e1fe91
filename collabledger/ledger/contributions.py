"""Append-only contribution store keyed by sequential id."""

from __future__ import annotations

import bittensor as bt

from .errors import ErrorKind, LedgerError
from .models import MAX_DETAILS_LENGTH, ContributionRecord, Identity, LedgerState
from .validation import require_identity, require_uint


class ContributionLedger:
    """Record store over a LedgerState.

    Ids start at 1 and follow last_contribution_id with no gaps. Records
    are never removed.
    """

    def __init__(self, state: LedgerState):
        self.state = state

    @property
    def last_id(self) -> int:
        return self.state.last_contribution_id

    def submit(self, contributor: Identity, details: str, created_at: int) -> int:
        """Append a new unverified record and return its id."""
        require_identity(contributor)
        if not isinstance(details, str):
            raise LedgerError(ErrorKind.INVALID_ARGUMENT, "details_not_text")
        if len(details) > MAX_DETAILS_LENGTH:
            raise LedgerError(
                ErrorKind.INVALID_ARGUMENT,
                f"details_too_long:{len(details)}>{MAX_DETAILS_LENGTH}",
            )
        require_uint(created_at, "created_at")

        new_id = self.state.last_contribution_id + 1
        self.state.contributions[new_id] = ContributionRecord(
            id=new_id,
            contributor=contributor,
            created_at=created_at,
            details=details,
        )
        self.state.last_contribution_id = new_id

        bt.logging.debug({"contribution_ledger": {"event": "appended", "id": new_id, "contributor": contributor[:16]}})
        return new_id

    def get(self, contribution_id: int) -> ContributionRecord | None:
        return self.state.contributions.get(contribution_id)

    def require(self, contribution_id: int) -> ContributionRecord:
        record = self.get(contribution_id)
        if record is None:
            raise LedgerError(ErrorKind.NOT_FOUND, f"contribution:{contribution_id}")
        return record

    def mark_verified(self, contribution_id: int, score: int) -> ContributionRecord:
        """Lock a record with its score. Callers check the verified flag first."""
        record = self.require(contribution_id)
        if record.verified:
            raise LedgerError(ErrorKind.ALREADY_VERIFIED, f"contribution:{contribution_id}")

        # Replace rather than mutate so score and flag land in one assignment.
        updated = record.model_copy(update={"score": score, "verified": True})
        self.state.contributions[contribution_id] = updated
        return updated

    def by_contributor(self, contributor: Identity) -> list[ContributionRecord]:
        return [
            r for _, r in sorted(self.state.contributions.items())
            if r.contributor == contributor
        ]


__all__ = ["ContributionLedger"]
