"""Admin-gated verification and tier refresh.

Verification order:
1. Contribution must exist (NOT_FOUND)
2. Caller must be an admin (NOT_AUTHORIZED)
3. Contribution must not be verified yet (ALREADY_VERIFIED)
4. Record gets score + verified flag
5. Contributor's total_score grows by score

Tier is not touched here. refresh_tier() is a separate admin call.
An admin may verify their own contribution.
"""

from __future__ import annotations

import bittensor as bt

from .admin import AdminRegistry
from .contributions import ContributionLedger
from .directory import ContributorDirectory
from .errors import ErrorKind, LedgerError
from .models import ContributionRecord, Identity, Tier
from .validation import require_identity, require_uint


class VerificationEngine:
    """Orchestrates registry, ledger and directory for verification."""

    def __init__(
        self,
        registry: AdminRegistry,
        ledger: ContributionLedger,
        directory: ContributorDirectory,
    ):
        self.registry = registry
        self.ledger = ledger
        self.directory = directory

    def verify(self, caller: Identity, contribution_id: int, score: int) -> ContributionRecord:
        require_uint(contribution_id, "contribution_id")
        require_uint(score, "score")

        record = self.ledger.require(contribution_id)
        self.registry.authorize(caller)
        if record.verified:
            raise LedgerError(ErrorKind.ALREADY_VERIFIED, f"contribution:{contribution_id}")

        updated = self.ledger.mark_verified(contribution_id, score)
        self.directory.add_score(updated.contributor, score)

        bt.logging.info({"verification": {
            "event": "contribution_verified",
            "id": contribution_id,
            "score": score,
            "verifier": caller[:16],
            "self_verified": caller == updated.contributor,
        }})
        return updated

    def refresh_tier(self, caller: Identity, contributor: Identity) -> Tier:
        require_identity(contributor)
        self.directory.require(contributor)
        self.registry.authorize(caller)
        return self.directory.refresh_tier(contributor)


__all__ = ["VerificationEngine"]
