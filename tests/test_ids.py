"""Tests for identifier and text helpers."""

import pytest

from provreg.errors import InvalidIdentifier
from provreg.utils.ids import (
    MAX_ASSET_ID,
    ZERO_BYTES32,
    derive_address,
    new_address,
    parse_bytes32,
    to_address,
    to_asset_id,
    to_bytes32,
)
from provreg.utils.text import ZERO_ADDRESS, is_string_empty, is_zero_address, to_lower


def test_to_lower_is_ascii_only():
    assert to_lower("MiKe") == "mike"
    assert to_lower("ÄBC") == "Äbc"
    assert to_lower("123-_") == "123-_"


def test_empty_and_zero_checks():
    assert is_string_empty("")
    assert is_string_empty(None)
    assert not is_string_empty(" ")
    assert is_zero_address(ZERO_ADDRESS)
    assert is_zero_address("")
    assert not is_zero_address("0x" + "0" * 39 + "1")


def test_to_address_normalizes():
    assert to_address("0x" + "AB" * 20) == "0x" + "ab" * 20
    assert to_address("cd" * 20) == "0x" + "cd" * 20
    for bad in ("0x1234", "0x" + "zz" * 20, 42):
        with pytest.raises(InvalidIdentifier):
            to_address(bad)


def test_new_and_derived_addresses():
    assert new_address() != new_address()
    deployer = "0x" + "11" * 20
    assert derive_address(deployer, 1) == derive_address(deployer, 1)
    assert derive_address(deployer, 1) != derive_address(deployer, 2)
    assert len(derive_address(deployer, 1)) == 42


def test_to_bytes32():
    key = to_bytes32("WINTER")
    assert len(key) == 32
    assert key.startswith(b"WINTER\x00")
    assert parse_bytes32(key) == "WINTER"
    assert to_bytes32("0x" + "ab" * 32) == b"\xab" * 32
    assert to_bytes32(ZERO_BYTES32) == ZERO_BYTES32

    with pytest.raises(InvalidIdentifier):
        to_bytes32("x" * 32)
    with pytest.raises(InvalidIdentifier):
        to_bytes32(b"short")


def test_to_asset_id():
    assert to_asset_id(7) == 7
    assert to_asset_id("0x1f") == 31
    assert to_asset_id("31") == 31
    assert to_asset_id(MAX_ASSET_ID) == MAX_ASSET_ID

    for bad in (-1, MAX_ASSET_ID + 1, "seven", True):
        with pytest.raises(InvalidIdentifier):
            to_asset_id(bad)
