"""Identifier normalization: addresses, fixed-width keys, and asset ids."""

from __future__ import annotations

import hashlib
import re
import secrets
from typing import Union

from provreg.errors import InvalidIdentifier
from provreg.utils.text import ZERO_ADDRESS

Address = str
Bytes32 = bytes

ZERO_BYTES32: Bytes32 = bytes(32)
MAX_ASSET_ID = 2**256 - 1

_HEX_RE = re.compile(r"^(0x)?[0-9a-fA-F]*$")


def to_address(value: str) -> Address:
    """Normalize *value* to a ``0x``-prefixed, lower-case 20-byte hex address."""
    if not isinstance(value, str) or not _HEX_RE.match(value):
        raise InvalidIdentifier(f"Not a hex address: {value!r}")
    digits = value[2:] if value.startswith("0x") else value
    if len(digits) != 40:
        raise InvalidIdentifier(f"Address must be 20 bytes: {value!r}")
    return "0x" + digits.lower()


def new_address() -> Address:
    """Return a random, non-zero address."""
    return "0x" + secrets.token_hex(20)


def derive_address(deployer: Address, nonce: int) -> Address:
    """Derive a deterministic address from a deployer address and a nonce."""
    digest = hashlib.sha256(f"{to_address(deployer)}:{nonce}".encode()).digest()
    return "0x" + digest[-20:].hex()


def to_bytes32(value: Union[str, bytes]) -> Bytes32:
    """Coerce *value* to a 32-byte key.

    ``bytes`` must already be 32 bytes long. A ``0x`` string of 64 hex digits
    is decoded as-is; any other string is UTF-8 encoded and zero-padded on
    the right, and must fit in 31 bytes so the key stays NUL-terminated.
    """
    if isinstance(value, bytes):
        if len(value) != 32:
            raise InvalidIdentifier(f"Expected 32 bytes, got {len(value)}")
        return value
    if value.startswith("0x") and len(value) == 66 and _HEX_RE.match(value):
        return bytes.fromhex(value[2:])
    encoded = value.encode("utf-8")
    if len(encoded) > 31:
        raise InvalidIdentifier(f"String too long for a 32-byte key: {value!r}")
    return encoded.ljust(32, b"\x00")


def parse_bytes32(value: Bytes32) -> str:
    """Decode a key produced by :func:`to_bytes32` back to text."""
    return value.rstrip(b"\x00").decode("utf-8", errors="replace")


def bytes32_hex(value: Bytes32) -> str:
    return "0x" + value.hex()


def to_asset_id(value: Union[int, str]) -> int:
    """Coerce an int, decimal string or ``0x`` hex string to an asset id."""
    if isinstance(value, bool):
        raise InvalidIdentifier(f"Not an asset id: {value!r}")
    if isinstance(value, str):
        try:
            value = int(value, 0)
        except ValueError:
            raise InvalidIdentifier(f"Not an asset id: {value!r}") from None
    if not isinstance(value, int) or value < 0 or value > MAX_ASSET_ID:
        raise InvalidIdentifier(f"Asset id out of range: {value!r}")
    return value


def asset_id_hex(asset_id: int) -> str:
    return hex(asset_id)


__all__ = [
    "Address",
    "Bytes32",
    "MAX_ASSET_ID",
    "ZERO_ADDRESS",
    "ZERO_BYTES32",
    "asset_id_hex",
    "bytes32_hex",
    "derive_address",
    "new_address",
    "parse_bytes32",
    "to_address",
    "to_asset_id",
    "to_bytes32",
]
