"""Pydantic models for the proof-of-collaboration ledger.

Three logical tables plus one scalar counter make up the persisted state:
- AdminSet: owner identity and the identities allowed to verify
- contributions: ContributionRecord keyed by sequential id
- contributors: ContributorProfile keyed by identity
- last_contribution_id: the id counter
"""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, Field, field_serializer


# ---------------------------------------------------------------------------
# Schema version - bump on breaking changes to the persisted layout
# ---------------------------------------------------------------------------

LEDGER_SCHEMA_VERSION = 1

# Unsigned 128-bit ceiling carried over from the on-chain representation
UINT_MAX = 2**128 - 1

MAX_DETAILS_LENGTH = 256

# Opaque principal. Only equality and hashing are relied upon.
Identity = str


class Tier(IntEnum):
    """Recognition tiers, ordered."""

    BRONZE = 1
    SILVER = 2
    GOLD = 3
    PLATINUM = 4


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class ContributionRecord(BaseModel):
    """A single submitted contribution.

    score and verified change together, exactly once.
    """

    id: int = Field(ge=1)
    contributor: Identity = Field(min_length=1)
    created_at: int = Field(ge=0, le=UINT_MAX, description="Host logical sequence value")
    details: str = Field(max_length=MAX_DETAILS_LENGTH)
    score: int = Field(default=0, ge=0, le=UINT_MAX)
    verified: bool = False


class ContributorProfile(BaseModel):
    """Aggregated per-identity standing."""

    total_score: int = Field(default=0, ge=0, le=UINT_MAX)
    contribution_count: int = Field(default=0, ge=0)
    tier: Tier = Tier.BRONZE
    is_active: bool = True


class AdminSet(BaseModel):
    """Owner plus verifying admins. The owner is always a member once set."""

    owner: Identity | None = None
    admins: set[Identity] = Field(default_factory=set)

    @field_serializer("admins")
    def _serialize_admins(self, admins: set[Identity]) -> list[Identity]:
        return sorted(admins)


# ---------------------------------------------------------------------------
# Full snapshot
# ---------------------------------------------------------------------------


class LedgerState(BaseModel):
    """Everything a StateStore persists."""

    schema_version: int = LEDGER_SCHEMA_VERSION
    admin_set: AdminSet = Field(default_factory=AdminSet)
    contributions: dict[int, ContributionRecord] = Field(default_factory=dict)
    contributors: dict[Identity, ContributorProfile] = Field(default_factory=dict)
    last_contribution_id: int = Field(default=0, ge=0)


__all__ = [
    "AdminSet",
    "ContributionRecord",
    "ContributorProfile",
    "Identity",
    "LEDGER_SCHEMA_VERSION",
    "LedgerState",
    "MAX_DETAILS_LENGTH",
    "Tier",
    "UINT_MAX",
]
