"""Tests for page validation and slicing."""

import pytest

from provreg.catalog.catalog import Catalog
from provreg.catalog.pagination import MAX_PAGE_SIZE, paginate, validate_page
from provreg.errors import InvalidOffset, InvalidPageSize
from provreg.events.log import EventLog
from provreg.registry.names import NameRegistry
from provreg.utils.ids import ZERO_BYTES32

OWNER = "0x" + "0a" * 20
CREATOR = "0x" + "c1" * 20


def _catalog_with_series(n: int) -> Catalog:
    names = NameRegistry(OWNER, events=EventLog())
    catalog = Catalog(CREATOR, names, "", "", invoker=CREATOR, display_name="Lister")
    for i in range(n):
        catalog.create_series(f"S{i}", f"series {i}", caller=CREATOR)
    return catalog


def test_hundred_series_in_pages_of_thirty():
    catalog = _catalog_with_series(100)

    counts = []
    seen = []
    for offset in (0, 30, 60, 90):
        page = catalog.list_series(offset, 30)
        assert page.total_count == 100
        assert len(page.items) == 30
        counts.append(page.count)
        seen.extend(page.valid)

    assert counts == [30, 30, 30, 10]
    assert len(set(seen)) == 100
    assert catalog.list_series(90, 30).items[10] == ZERO_BYTES32


def test_page_size_above_max_rejected_even_when_empty():
    catalog = _catalog_with_series(0)
    with pytest.raises(InvalidPageSize) as exc:
        catalog.list_series(0, MAX_PAGE_SIZE + 5)
    assert exc.value.message == "INVALID PAGESIZE"


def test_page_size_zero_rejected():
    with pytest.raises(InvalidPageSize):
        validate_page(0, 0)


def test_negative_offset_rejected():
    with pytest.raises(InvalidOffset):
        validate_page(-1, 10)


def test_max_page_size_accepted():
    page = paginate(list(range(1, 151)), 0, MAX_PAGE_SIZE, 0)
    assert page.count == MAX_PAGE_SIZE
    assert page.total_count == 150


def test_offset_past_end_is_empty_page():
    page = paginate([1, 2, 3], 3, 10, 0)
    assert page.count == 0
    assert page.total_count == 3
    assert page.items == (0,) * 10

    page = paginate([1, 2, 3], 50, 2, 0)
    assert page.count == 0
    assert page.valid == []


def test_partial_last_page_padded_with_sentinel():
    page = paginate(["a", "b", "c", "d"], 2, 5, "")
    assert page.count == 2
    assert page.items == ("c", "d", "", "", "")
    assert len(page) == 2
