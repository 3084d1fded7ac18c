"""Tests for catalog provisioning."""

import pytest

from provreg.auth.models import Role
from provreg.catalog.factory import CatalogFactory
from provreg.deployment import bootstrap
from provreg.errors import (
    AlreadyExists,
    AlreadyProvisioned,
    InvalidPageSize,
    NameAlreadySet,
    NameRequired,
    NameUnavailable,
    Unauthorized,
)
from provreg.events.log import EventLog
from provreg.registry.names import NameRegistry
from provreg.utils.text import ZERO_ADDRESS

OWNER = "0x" + "0a" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20


def test_provision_creates_catalog_and_binds_name():
    d = bootstrap(OWNER)
    address = d.factory.provision(ALICE, "Alice", "Her story", "https://a.example/{0}", caller=OWNER)

    catalog = d.factory.get_catalog(ALICE)
    assert catalog is not None
    assert catalog.address == address
    assert catalog.creator == ALICE
    assert catalog.get_creator_metadata().display_name == "Alice"
    assert d.names.get_name(ALICE) == "Alice"
    assert d.names.get_catalog_address(ALICE) == address
    assert d.factory.get_catalog_address(ALICE) == address
    assert d.factory.find_catalog(address) is catalog


def test_provision_event():
    d = bootstrap(OWNER)
    address = d.factory.provision(ALICE, "Alice", "Her story", "", caller=OWNER)

    event = d.events.last("CatalogProvisioned")
    assert event.emitter == d.factory.address
    assert list(event.args) == ["creator", "catalog", "story", "invoker"]
    assert event.values == (ALICE, address, "Her story", OWNER)
    assert d.events.last("CatalogAddressSet").values == (ALICE, address)


def test_creator_may_provision_for_themselves():
    d = bootstrap(OWNER)
    d.factory.provision(ALICE, "Alice", "", "", caller=ALICE)

    catalog = d.factory.get_catalog(ALICE)
    assert catalog.has_role(Role.writer, ALICE)
    assert catalog.has_role(Role.admin, ALICE)


def test_provision_for_another_needs_writer():
    d = bootstrap(OWNER)
    with pytest.raises(Unauthorized):
        d.factory.provision(ALICE, "Alice", "", "", caller=BOB)
    assert d.factory.catalog_count == 0
    assert d.names.get_name(ALICE) == ""


def test_list_catalogs_in_provisioning_order():
    d = bootstrap(OWNER)
    addresses = [
        d.factory.provision(creator, name, "", "", caller=OWNER)
        for creator, name in ((BOB, "Bob"), (ALICE, "Alice"), (CAROL, "Carol"))
    ]

    page = d.factory.list_catalogs(0, 10)
    assert page.count == 3
    assert page.total_count == 3
    assert page.valid == addresses
    assert page.items[3] == ZERO_ADDRESS
    assert d.factory.list_creators(1, 1).valid == [ALICE]
    assert len(set(addresses)) == 3


def test_reprovision_rejected():
    d = bootstrap(OWNER)
    first = d.factory.provision(ALICE, "Alice", "", "", caller=OWNER)

    with pytest.raises(AlreadyProvisioned) as exc:
        d.factory.provision(ALICE, "Alice", "again", "", caller=OWNER)
    assert exc.value.message == "ALREADY PROVISIONED"
    assert d.factory.catalog_count == 1
    assert d.factory.get_catalog_address(ALICE) == first


def test_taken_name_leaves_nothing_behind():
    d = bootstrap(OWNER)
    d.factory.provision(ALICE, "Mike", "", "", caller=OWNER)
    before = len(d.events)

    with pytest.raises(NameUnavailable):
        d.factory.provision(BOB, "MIKE", "", "", caller=OWNER)
    assert d.factory.get_catalog(BOB) is None
    assert d.factory.catalog_count == 1
    assert d.factory.nonce == 1
    assert d.names.get_catalog_address(BOB) == ZERO_ADDRESS
    assert len(d.events) == before


def test_existing_name_is_reused():
    d = bootstrap(OWNER)
    d.names.set_name(ALICE, "Alice", caller=ALICE)

    d.factory.provision(ALICE, "", "", "", caller=OWNER)
    assert d.factory.get_catalog(ALICE).display_name == "Alice"

    d.names.set_name(BOB, "Bob", caller=BOB)
    with pytest.raises(NameAlreadySet):
        d.factory.provision(BOB, "Robert", "", "", caller=OWNER)


def test_missing_name_rejected():
    d = bootstrap(OWNER)
    with pytest.raises(NameRequired):
        d.factory.provision(ALICE, "", "", "", caller=OWNER)


def test_factory_without_registry_grant_is_unauthorized():
    names = NameRegistry(OWNER, events=EventLog())
    factory = CatalogFactory(names, owner=OWNER)

    with pytest.raises(Unauthorized):
        factory.provision(ALICE, "Alice", "", "", caller=OWNER)
    assert factory.catalog_count == 0
    assert names.get_name(ALICE) == ""

    names.grant_role(Role.writer, factory.address, caller=OWNER)
    factory.provision(ALICE, "Alice", "", "", caller=OWNER)
    assert factory.catalog_count == 1


def test_catalog_addresses_are_deterministic():
    d = bootstrap(OWNER)
    a = d.factory.provision(ALICE, "Alice", "", "", caller=OWNER)

    other = CatalogFactory(NameRegistry(OWNER), owner=OWNER, address=d.factory.address)
    other.name_registry.grant_role(Role.writer, other.address, caller=OWNER)
    assert other.provision(ALICE, "Alice", "", "", caller=OWNER) == a


def test_list_catalogs_page_size_over_max():
    d = bootstrap(OWNER)
    with pytest.raises(InvalidPageSize):
        d.factory.list_catalogs(0, 105)


class _EagerRegistry(NameRegistry):
    """Publishes a catalog address as soon as a name is bound."""

    def set_name(self, address, name, *, caller):
        record = super().set_name(address, name, caller=caller)
        self.set_catalog_address(address, "0x" + "dd" * 20, caller=self.owner)
        return record


def test_registry_rejection_leaves_factory_untouched():
    names = _EagerRegistry(OWNER, events=EventLog())
    factory = CatalogFactory(names, owner=OWNER)
    names.grant_role(Role.writer, factory.address, caller=OWNER)

    with pytest.raises(AlreadyExists):
        factory.provision(ALICE, "Alice", "", "", caller=OWNER)
    assert factory.catalog_count == 0
    assert factory.nonce == 0
    assert factory.get_catalog(ALICE) is None
    assert names.events.last("CatalogProvisioned") is None
