"""Invariant audit for ledger snapshots.

Checks that a LedgerState loaded from storage is internally consistent
before the service trusts it:
- contribution ids are exactly 1..last_contribution_id
- unverified records carry score 0
- each profile's total_score is the sum of its verified scores
- each profile's contribution_count is its number of records
- every record's contributor has a profile
- the owner, once set, is an admin
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

from collabledger.ledger.models import LEDGER_SCHEMA_VERSION, LedgerState


@dataclass
class VerificationResult:
    """Outcome of a state audit."""

    valid: bool
    errors: list[str]

    def __bool__(self) -> bool:
        return self.valid


class StateVerifier:
    """Verifies snapshot integrity before use."""

    def verify(self, state: LedgerState) -> VerificationResult:
        errors: list[str] = []

        if state.schema_version != LEDGER_SCHEMA_VERSION:
            errors.append(
                f"schema_version mismatch: got {state.schema_version}, "
                f"expected {LEDGER_SCHEMA_VERSION}"
            )

        # Id sequence
        expected_ids = set(range(1, state.last_contribution_id + 1))
        actual_ids = set(state.contributions)
        missing = sorted(expected_ids - actual_ids)
        extra = sorted(actual_ids - expected_ids)
        if missing:
            errors.append(f"missing contribution ids: {missing[:10]}")
        if extra:
            errors.append(f"contribution ids beyond counter {state.last_contribution_id}: {extra[:10]}")

        # Per-record checks, accumulating expected aggregates
        totals: dict[str, int] = defaultdict(int)
        counts: dict[str, int] = defaultdict(int)
        for key, record in state.contributions.items():
            if record.id != key:
                errors.append(f"contribution key {key} holds record id {record.id}")
            if not record.verified and record.score != 0:
                errors.append(f"unverified contribution {key} has score {record.score}")
            counts[record.contributor] += 1
            if record.verified:
                totals[record.contributor] += record.score

        for contributor in counts:
            if contributor not in state.contributors:
                errors.append(f"no profile for contributor {contributor[:16]}")

        for identity, profile in state.contributors.items():
            if profile.total_score != totals.get(identity, 0):
                errors.append(
                    f"total_score mismatch for {identity[:16]}: "
                    f"stored {profile.total_score}, expected {totals.get(identity, 0)}"
                )
            if profile.contribution_count != counts.get(identity, 0):
                errors.append(
                    f"contribution_count mismatch for {identity[:16]}: "
                    f"stored {profile.contribution_count}, expected {counts.get(identity, 0)}"
                )

        owner = state.admin_set.owner
        if owner is not None and owner not in state.admin_set.admins:
            errors.append("owner missing from admin set")

        return VerificationResult(valid=len(errors) == 0, errors=errors)


__all__ = ["StateVerifier", "VerificationResult"]
