"""Per-contributor profiles: score, submission count, tier, activity."""

from __future__ import annotations

import bittensor as bt

from .errors import ErrorKind, LedgerError
from .models import UINT_MAX, ContributorProfile, Identity, Tier
from .tiers import classify


class ContributorDirectory:
    """Profile map keyed by identity.

    Tier is only recomputed by refresh_tier(); add_score() leaves it alone
    so it can lag behind total_score until the next refresh.
    """

    def __init__(self, profiles: dict[Identity, ContributorProfile]):
        self.profiles = profiles

    def get(self, contributor: Identity) -> ContributorProfile | None:
        return self.profiles.get(contributor)

    def require(self, contributor: Identity) -> ContributorProfile:
        profile = self.get(contributor)
        if profile is None:
            raise LedgerError(ErrorKind.NOT_FOUND, "profile")
        return profile

    def upsert_on_submission(self, contributor: Identity) -> ContributorProfile:
        profile = self.profiles.get(contributor)
        if profile is None:
            profile = ContributorProfile(
                total_score=0,
                contribution_count=1,
                tier=Tier.BRONZE,
                is_active=True,
            )
            self.profiles[contributor] = profile
            bt.logging.debug({"contributor_directory": {"event": "profile_created", "contributor": contributor[:16]}})
            return profile

        profile.contribution_count += 1
        profile.is_active = True
        return profile

    def add_score(self, contributor: Identity, amount: int) -> ContributorProfile:
        profile = self.require(contributor)
        new_total = profile.total_score + amount
        if new_total > UINT_MAX:
            raise LedgerError(ErrorKind.INVALID_ARGUMENT, "total_score_overflow")
        profile.total_score = new_total
        return profile

    def refresh_tier(self, contributor: Identity) -> Tier:
        profile = self.require(contributor)
        tier = classify(profile.total_score)
        if tier != profile.tier:
            bt.logging.info({"contributor_directory": {
                "event": "tier_changed",
                "contributor": contributor[:16],
                "from": profile.tier.name,
                "to": tier.name,
            }})
        profile.tier = tier
        return tier


__all__ = ["ContributorDirectory"]
