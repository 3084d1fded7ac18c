"""Role-based access control for registry components.

Each component owns one :class:`AccessControl`. Privileged calls check it
explicitly; there is no ambient trust between components.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from provreg.auth.models import Role
from provreg.errors import Unauthorized
from provreg.events.log import EventLog
from provreg.utils.ids import Address, to_address

logger = logging.getLogger(__name__)


class AccessControl:
    """An access-control list mapping each role to the identities holding it."""

    def __init__(self, emitter: Address, events: Optional[EventLog] = None) -> None:
        self.emitter = emitter
        self.events = events if events is not None else EventLog()
        self._members: dict[Role, set[Address]] = {role: set() for role in Role}
        self._lock = threading.RLock()

    def has_role(self, role: Role, account: Address) -> bool:
        """Check if *account* currently holds *role*."""
        with self._lock:
            return to_address(account) in self._members[Role(role)]

    def require_role(self, role: Role, account: Address) -> None:
        """Raise :class:`Unauthorized` unless *account* holds *role*."""
        if not self.has_role(role, account):
            raise Unauthorized(account=account, role=Role(role).value)

    def members(self, role: Role) -> list[Address]:
        with self._lock:
            return sorted(self._members[Role(role)])

    def grant_role(self, role: Role, account: Address, *, caller: Address) -> bool:
        """Grant *role* to *account*. Requires *caller* to hold ``admin``.

        Returns False (and emits nothing) when the account already had it.
        """
        role = Role(role)
        account = to_address(account)
        with self._lock:
            self.require_role(Role.admin, caller)
            if account in self._members[role]:
                return False
            self.events.emit("RoleGranted", self.emitter, role=role.role_id, account=account, sender=to_address(caller))
            self._members[role].add(account)
            logger.info("granted %s to %s on %s", role.value, account, self.emitter)
        return True

    def revoke_role(self, role: Role, account: Address, *, caller: Address) -> bool:
        """Revoke *role* from *account*. Requires *caller* to hold ``admin``."""
        role = Role(role)
        account = to_address(account)
        with self._lock:
            self.require_role(Role.admin, caller)
            if account not in self._members[role]:
                return False
            self.events.emit("RoleRevoked", self.emitter, role=role.role_id, account=account, sender=to_address(caller))
            self._members[role].discard(account)
            logger.info("revoked %s from %s on %s", role.value, account, self.emitter)
        return True

    def setup_role(self, role: Role, accounts: Iterable[Address]) -> None:
        """Seed *role* without an authorization check.

        Only for construction and for restoring persisted state.
        """
        with self._lock:
            for account in accounts:
                self._members[Role(role)].add(to_address(account))

    def snapshot(self) -> dict[str, list[Address]]:
        with self._lock:
            return {role.value: sorted(members) for role, members in self._members.items()}

    def load_snapshot(self, snapshot: dict[str, list[Address]]) -> None:
        """Replace every role's members with those in *snapshot*."""
        with self._lock:
            self._members = {role: set() for role in Role}
            for role_name, accounts in snapshot.items():
                self.setup_role(Role(role_name), accounts)
