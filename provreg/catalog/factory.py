"""Catalog factory: provisions one catalog per creator.

The factory must hold the ``writer`` role on the name registry so it can bind
display names for creators who have never touched the registry themselves.
Provisioning validates everything up front; a creator whose name is taken
ends up with no catalog and no index entry.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from provreg.auth.models import Role
from provreg.auth.permissions import AccessControl
from provreg.catalog.catalog import Catalog
from provreg.catalog.models import Page
from provreg.catalog.pagination import paginate
from provreg.errors import (
    AlreadyProvisioned,
    InvalidIdentifier,
    NameAlreadySet,
    NameRequired,
    NameUnavailable,
    RegistryError,
    Unauthorized,
)
from provreg.events.log import EventLog
from provreg.registry.names import NameRegistry
from provreg.utils.ids import Address, derive_address, new_address, to_address
from provreg.utils.text import ZERO_ADDRESS, is_string_empty, is_zero_address, to_lower

logger = logging.getLogger(__name__)


class CatalogFactory:
    """Creates catalogs and keeps the creator -> catalog index."""

    def __init__(
        self,
        name_registry: NameRegistry,
        *,
        owner: Address,
        address: Optional[Address] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self.name_registry = name_registry
        self.owner = to_address(owner)
        self.address = to_address(address) if address else new_address()
        self.events = events if events is not None else name_registry.events
        self.acl = AccessControl(self.address, self.events)
        self.acl.setup_role(Role.admin, [self.owner])
        self.acl.setup_role(Role.writer, [self.owner])

        self._catalogs: dict[Address, Catalog] = {}
        self._creators: list[Address] = []  # Insertion order
        self._nonce = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def provision(
        self,
        creator: Address,
        display_name: str,
        story: str,
        url_template: str,
        *,
        caller: Address,
    ) -> Address:
        """Provision a catalog for *creator* and return its address.

        *caller* must be the creator or hold ``writer`` on the factory. The
        creator's display name is bound first if it has none; if it already
        has one, *display_name* may be empty or must match it. Emits
        ``CatalogProvisioned(creator, catalog, story, invoker)``.
        """
        creator = to_address(creator)
        caller = to_address(caller)
        # Lock order: factory, then registry
        with self._lock, self.name_registry.lock:
            try:
                self._check_provision(creator, display_name, caller)
            except RegistryError as e:
                logger.debug("provision rejected for %s: %s", creator, e.code)
                raise

            catalog = Catalog(
                creator,
                self.name_registry,
                story,
                url_template,
                invoker=caller,
                display_name=display_name,
                registrar=self.address,
                address=derive_address(self.address, self._nonce + 1),
                events=self.events,
            )
            self.name_registry.set_catalog_address(creator, catalog.address, caller=self.address)
            self.events.emit(
                "CatalogProvisioned",
                self.address,
                creator=creator,
                catalog=catalog.address,
                story=story,
                invoker=caller,
            )

            # Factory index is committed last
            self._nonce += 1
            self._catalogs[creator] = catalog
            self._creators.append(creator)
            logger.info("provisioned catalog %s for %s", catalog.address, creator)
            return catalog.address

    def _check_provision(self, creator: Address, display_name: str, caller: Address) -> None:
        if caller != creator and not self.acl.has_role(Role.writer, caller):
            raise Unauthorized(account=caller, role=Role.writer.value)
        if is_zero_address(creator):
            raise InvalidIdentifier("Cannot provision the zero address")
        if creator in self._catalogs:
            raise AlreadyProvisioned(creator=creator, catalog=self._catalogs[creator].address)
        published = self.name_registry.get_catalog_address(creator)
        if not is_zero_address(published):
            raise AlreadyProvisioned(creator=creator, catalog=published)
        if not self.name_registry.has_role(Role.writer, self.address):
            raise Unauthorized("Factory is not an authorized writer on the name registry", account=self.address)

        bound = self.name_registry.get_name(creator)
        if bound:
            if not is_string_empty(display_name) and to_lower(display_name) != to_lower(bound):
                raise NameAlreadySet(address=creator, name=bound)
        elif is_string_empty(display_name):
            raise NameRequired()
        elif not self.name_registry.is_name_available(display_name):
            raise NameUnavailable(name=display_name)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_catalog(self, creator: Address) -> Optional[Catalog]:
        with self._lock:
            return self._catalogs.get(to_address(creator))

    def get_catalog_address(self, creator: Address) -> Address:
        catalog = self.get_catalog(creator)
        return catalog.address if catalog else ZERO_ADDRESS

    def find_catalog(self, catalog_address: Address) -> Optional[Catalog]:
        """Look a catalog up by its own address."""
        catalog_address = to_address(catalog_address)
        with self._lock:
            for catalog in self._catalogs.values():
                if catalog.address == catalog_address:
                    return catalog
        return None

    @property
    def nonce(self) -> int:
        """Number of catalogs this factory has ever derived an address for."""
        with self._lock:
            return self._nonce

    @property
    def catalog_count(self) -> int:
        with self._lock:
            return len(self._creators)

    def list_catalogs(self, offset: int, page_size: int) -> Page:
        """Page through catalog addresses in provisioning order."""
        with self._lock:
            page = paginate(self._creators, offset, page_size, ZERO_ADDRESS)
            items = tuple(
                self._catalogs[c].address if i < page.count else ZERO_ADDRESS
                for i, c in enumerate(page.items)
            )
            return Page(items=items, count=page.count, total_count=page.total_count)

    def list_creators(self, offset: int, page_size: int) -> Page:
        """Page through provisioned creator addresses in provisioning order."""
        with self._lock:
            return paginate(self._creators, offset, page_size, ZERO_ADDRESS)

    def catalogs(self) -> list[Catalog]:
        with self._lock:
            return [self._catalogs[c] for c in self._creators]

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def has_role(self, role: Role, account: Address) -> bool:
        return self.acl.has_role(role, account)

    def grant_role(self, role: Role, account: Address, *, caller: Address) -> bool:
        return self.acl.grant_role(role, account, caller=caller)

    def revoke_role(self, role: Role, account: Address, *, caller: Address) -> bool:
        return self.acl.revoke_role(role, account, caller=caller)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_snapshot(self, catalogs: list[Catalog], nonce: int) -> None:
        with self._lock:
            for catalog in catalogs:
                self._catalogs[catalog.creator] = catalog
                self._creators.append(catalog.creator)
            self._nonce = nonce
