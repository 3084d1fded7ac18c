"""String helpers used for display-name handling.

Case folding is ASCII-only so that the folded form of a name is stable and
byte-for-byte reproducible by any consumer of the registry.
"""

from __future__ import annotations

_UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_LOWER = "abcdefghijklmnopqrstuvwxyz"
_FOLD = str.maketrans(_UPPER, _LOWER)

ZERO_ADDRESS = "0x" + "0" * 40


def to_lower(value: str) -> str:
    """Lower-case the ASCII letters of *value*, leaving everything else alone."""
    return value.translate(_FOLD)


def string_length(value: str) -> int:
    return len(value)


def is_string_empty(value: str | None) -> bool:
    return not value


def is_zero_address(address: str | None) -> bool:
    """True for ``None``, the empty string, or an all-zero 20-byte address."""
    if not address:
        return True
    digits = address[2:] if address[:2].lower() == "0x" else address
    return set(digits) <= {"0"}
