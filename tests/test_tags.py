"""Tests for asset tags."""

import pytest

from provreg.catalog.catalog import Catalog
from provreg.errors import AssetNotFound, InvalidIdentifier, TagNotFound
from provreg.events.log import EventLog
from provreg.registry.names import NameRegistry
from provreg.utils.ids import ZERO_BYTES32, to_bytes32

OWNER = "0x" + "0a" * 20
CREATOR = "0x" + "c1" * 20

W, K, E = to_bytes32("WOOD"), to_bytes32("KITCHEN"), to_bytes32("EXPORT")


def _catalog(events=None) -> Catalog:
    names = NameRegistry(OWNER, events=events if events is not None else EventLog())
    catalog = Catalog(CREATOR, names, "", "", invoker=CREATOR, display_name="Tagger")
    catalog.register_asset(1, "TABLES", "table", ["WOOD"], caller=CREATOR)
    return catalog


def test_add_tag_appends():
    events = EventLog()
    catalog = _catalog(events)
    catalog.add_tag_to_asset(1, "KITCHEN", caller=CREATOR)

    assert catalog.get_asset_metadata(1).tags == (W, K)
    assert events.last("AssetTagsAdded").values == (1, [K])


def test_duplicate_tags_allowed():
    catalog = _catalog()
    catalog.add_tag_to_asset(1, "WOOD", caller=CREATOR)
    assert catalog.get_asset_metadata(1).tags == (W, W)


def test_remove_tag_compacts_and_zeroes_last_slot():
    events = EventLog()
    catalog = _catalog(events)
    catalog.add_tag_to_asset(1, "KITCHEN", caller=CREATOR)
    catalog.add_tag_to_asset(1, "EXPORT", caller=CREATOR)

    catalog.remove_tag_from_asset(1, "KITCHEN", caller=CREATOR)
    assert catalog.get_asset_metadata(1).tags == (W, E, ZERO_BYTES32)
    assert events.last("AssetTagRemoved").values == (1, K, CREATOR)


def test_remove_only_first_occurrence():
    catalog = _catalog()
    catalog.add_tag_to_asset(1, "WOOD", caller=CREATOR)
    catalog.remove_tag_from_asset(1, "WOOD", caller=CREATOR)
    assert catalog.get_asset_metadata(1).tags == (W, ZERO_BYTES32)


def test_add_after_remove_appends_past_zero_slot():
    catalog = _catalog()
    catalog.remove_tag_from_asset(1, "WOOD", caller=CREATOR)
    catalog.add_tag_to_asset(1, "EXPORT", caller=CREATOR)
    assert catalog.get_asset_metadata(1).tags == (ZERO_BYTES32, E)


def test_remove_absent_tag_rejected():
    events = EventLog()
    catalog = _catalog(events)
    before = len(events)

    with pytest.raises(TagNotFound):
        catalog.remove_tag_from_asset(1, "KITCHEN", caller=CREATOR)
    assert catalog.get_asset_metadata(1).tags == (W,)
    assert len(events) == before


def test_zero_tag_rejected():
    catalog = _catalog()
    with pytest.raises(InvalidIdentifier):
        catalog.add_tag_to_asset(1, ZERO_BYTES32, caller=CREATOR)
    with pytest.raises(InvalidIdentifier):
        catalog.remove_tag_from_asset(1, ZERO_BYTES32, caller=CREATOR)


def test_tag_operations_need_existing_asset():
    catalog = _catalog()
    with pytest.raises(AssetNotFound):
        catalog.add_tag_to_asset(2, "WOOD", caller=CREATOR)
    with pytest.raises(AssetNotFound):
        catalog.remove_tag_from_asset(2, "WOOD", caller=CREATOR)
