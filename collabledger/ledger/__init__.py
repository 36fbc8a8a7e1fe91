"""Proof-of-collaboration ledger core.

Contributions are submitted by anyone, verified once by an admin with a
score, and aggregated into per-contributor profiles whose tier is derived
from the accumulated score on explicit refresh.
"""

from .errors import ErrorKind, LedgerError, OpResult, StateIntegrityError
from .models import (
    LEDGER_SCHEMA_VERSION,
    MAX_DETAILS_LENGTH,
    UINT_MAX,
    AdminSet,
    ContributionRecord,
    ContributorProfile,
    LedgerState,
    Tier,
)
from .tiers import classify

__all__ = [
    "AdminSet",
    "ContributionRecord",
    "ContributorProfile",
    "ErrorKind",
    "LEDGER_SCHEMA_VERSION",
    "LedgerError",
    "LedgerState",
    "MAX_DETAILS_LENGTH",
    "OpResult",
    "StateIntegrityError",
    "Tier",
    "UINT_MAX",
    "classify",
]
