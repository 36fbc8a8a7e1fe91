"""Owner/admin access control for verification.

The owner is fixed by the first initialize() call and is an admin from
then on. Only the owner can grant admin rights; there is no revocation.
"""

from __future__ import annotations

import bittensor as bt

from .errors import ErrorKind, LedgerError
from .models import AdminSet, Identity
from .validation import require_identity


class AdminRegistry:
    """Authorization view over an AdminSet.

    Usage:
        registry = AdminRegistry(state.admin_set)
        registry.initialize(deployer)
        registry.add_admin(deployer, reviewer)
        registry.is_admin(reviewer)  # True
    """

    def __init__(self, admin_set: AdminSet):
        self.admin_set = admin_set

    @property
    def owner(self) -> Identity | None:
        return self.admin_set.owner

    def initialize(self, caller: Identity) -> None:
        """Record caller as owner and admin.

        Repeat calls by the owner are no-ops; anyone else is rejected.
        """
        require_identity(caller)
        owner = self.admin_set.owner
        if owner is not None:
            if caller != owner:
                raise LedgerError(ErrorKind.ALREADY_INITIALIZED, "owner_already_set")
            self.admin_set.admins.add(owner)
            return

        self.admin_set.owner = caller
        self.admin_set.admins.add(caller)
        bt.logging.info({"admin_registry": {"event": "initialized", "owner": caller[:16]}})

    def add_admin(self, caller: Identity, identity: Identity) -> None:
        require_identity(caller)
        if self.admin_set.owner is None or caller != self.admin_set.owner:
            raise LedgerError(ErrorKind.NOT_OWNER, "caller_not_owner")
        require_identity(identity)

        if identity in self.admin_set.admins:
            return
        self.admin_set.admins.add(identity)
        bt.logging.info({"admin_registry": {"event": "admin_added", "admin": identity[:16]}})

    def is_admin(self, identity: Identity) -> bool:
        # Unhashable or foreign values are simply not admins.
        if not isinstance(identity, str):
            return False
        return identity in self.admin_set.admins

    def authorize(self, caller: Identity) -> None:
        if not self.is_admin(caller):
            raise LedgerError(ErrorKind.NOT_AUTHORIZED, "caller_not_admin")


__all__ = ["AdminRegistry"]
