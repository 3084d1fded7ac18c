"""Name registry: address <-> display name, unique case-insensitively.

A name is bound to an address exactly once and never changes afterwards.
Addresses may bind their own name; binding on behalf of another address
requires the authorized-writer role, which the deployer holds and may grant
(for example to the catalog factory).
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from provreg.auth.models import Role
from provreg.auth.permissions import AccessControl
from provreg.errors import (
    AlreadyExists,
    InvalidIdentifier,
    NameAlreadySet,
    NameRequired,
    NameUnavailable,
    RegistryError,
    Unauthorized,
)
from provreg.events.log import EventLog
from provreg.registry.models import NameRecord
from provreg.utils.ids import Address, new_address, to_address
from provreg.utils.text import ZERO_ADDRESS, is_string_empty, is_zero_address, to_lower

logger = logging.getLogger(__name__)


class NameRegistry:
    """Bidirectional, write-once mapping of addresses to display names."""

    def __init__(
        self,
        owner: Address,
        *,
        address: Optional[Address] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self.owner = to_address(owner)
        self.address = to_address(address) if address else new_address()
        self.events = events if events is not None else EventLog()
        self.acl = AccessControl(self.address, self.events)
        self.acl.setup_role(Role.admin, [self.owner])
        self.acl.setup_role(Role.writer, [self.owner])

        self._names: dict[Address, str] = {}
        self._ids: dict[str, Address] = {}  # folded name -> address
        self._order: list[Address] = []
        self._catalogs: dict[Address, Address] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The registry lock, for callers that check and then write in one step."""
        return self._lock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_name_available(self, name: str) -> bool:
        """Report whether no address has bound the case-folded *name*.

        The empty name is never available, since it can never be bound.
        """
        if is_string_empty(name):
            return False
        with self._lock:
            return to_lower(name) not in self._ids

    def get_name(self, address: Address) -> str:
        """Return the display name bound to *address*, or ``""``."""
        with self._lock:
            return self._names.get(to_address(address), "")

    def get_id(self, name: str) -> Address:
        """Return the address that bound *name* (any casing), or the zero address."""
        with self._lock:
            return self._ids.get(to_lower(name or ""), ZERO_ADDRESS)

    def get_catalog_address(self, creator: Address) -> Address:
        with self._lock:
            return self._catalogs.get(to_address(creator), ZERO_ADDRESS)

    def records(self) -> list[NameRecord]:
        """All bindings in the order they were made."""
        with self._lock:
            return [
                NameRecord(
                    address=a,
                    display_name=self._names[a],
                    folded_name=to_lower(self._names[a]),
                    catalog=self._catalogs.get(a, ZERO_ADDRESS),
                )
                for a in self._order
            ]

    def has_role(self, role: Role, account: Address) -> bool:
        return self.acl.has_role(role, account)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def check_can_set_name(self, address: Address, name: str, *, caller: Address) -> Address:
        """Validate a ``set_name`` call without applying it.

        Returns the normalized address. Raises the error ``set_name`` would.
        """
        address = to_address(address)
        caller = to_address(caller)
        if caller != address and not self.acl.has_role(Role.writer, caller):
            raise Unauthorized(account=caller, role=Role.writer.value)
        if is_zero_address(address):
            raise InvalidIdentifier("Cannot bind a name to the zero address")
        if is_string_empty(name):
            raise NameRequired()
        with self._lock:
            if address in self._names:
                raise NameAlreadySet(address=address, name=self._names[address])
            if to_lower(name) in self._ids:
                raise NameUnavailable(name=name)
        return address

    def set_name(self, address: Address, name: str, *, caller: Address) -> NameRecord:
        """Bind *name* to *address*, once. Emits ``NameSet(address, name)``."""
        with self._lock:
            try:
                address = self.check_can_set_name(address, name, caller=caller)
            except RegistryError as e:
                logger.debug("set_name rejected for %s: %s", address, e.code)
                raise

            folded = to_lower(name)
            self.events.emit("NameSet", self.address, address=address, name=name)
            self._names[address] = name
            self._ids[folded] = address
            self._order.append(address)
            logger.info("bound name %r to %s", name, address)
            return NameRecord(address=address, display_name=name, folded_name=folded)

    def set_catalog_address(self, creator: Address, catalog: Address, *, caller: Address) -> None:
        """Publish the catalog provisioned for *creator*. Writer only, write-once."""
        creator = to_address(creator)
        catalog = to_address(catalog)
        with self._lock:
            self.acl.require_role(Role.writer, caller)
            if is_zero_address(catalog):
                raise InvalidIdentifier("Catalog address cannot be zero")
            if creator in self._catalogs:
                raise AlreadyExists("CATALOG ALREADY SET", creator=creator)
            self.events.emit("CatalogAddressSet", self.address, address=creator, catalog=catalog)
            self._catalogs[creator] = catalog

    def grant_role(self, role: Role, account: Address, *, caller: Address) -> bool:
        return self.acl.grant_role(role, account, caller=caller)

    def revoke_role(self, role: Role, account: Address, *, caller: Address) -> bool:
        return self.acl.revoke_role(role, account, caller=caller)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_snapshot(self, records: list[NameRecord]) -> None:
        with self._lock:
            for record in records:
                address = to_address(record.address)
                self._names[address] = record.display_name
                self._ids[to_lower(record.display_name)] = address
                self._order.append(address)
                if not is_zero_address(record.catalog):
                    self._catalogs[address] = to_address(record.catalog)
