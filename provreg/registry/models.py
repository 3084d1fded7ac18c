"""Name registry data models."""

from __future__ import annotations

from dataclasses import dataclass

from provreg.utils.text import ZERO_ADDRESS


@dataclass(frozen=True)
class NameRecord:
    """A write-once binding between an address and its display name."""

    address: str
    display_name: str  # Case preserved for display
    folded_name: str  # Case folded for uniqueness
    catalog: str = ZERO_ADDRESS  # Catalog provisioned for this address, if any
