"""Catalog data models — creator metadata, series, assets, and pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from provreg.utils.ids import ZERO_BYTES32
from provreg.utils.text import ZERO_ADDRESS

T = TypeVar("T")


@dataclass(frozen=True)
class CreatorMetadata:
    """The creator a catalog is bound to."""

    creator: str
    display_name: str  # Snapshot taken from the name registry at construction
    story: str
    asset_count: int


@dataclass
class Series:
    """A named grouping of assets, keyed by a 32-byte id."""

    series_id: bytes
    description: str


@dataclass
class Asset:
    """A registered unit of provenance."""

    asset_id: int
    description: str
    series_id: bytes = ZERO_BYTES32  # Zero means unassigned
    creator: str = ZERO_ADDRESS  # Identity that registered it
    tags: list[bytes] = field(default_factory=list)  # Order preserved, duplicates allowed
    document_hash: bytes = ZERO_BYTES32


@dataclass(frozen=True)
class AssetMetadata:
    """Read view of an asset. All fields are sentinels when the asset is absent."""

    id: int = 0
    tags: tuple[bytes, ...] = ()
    description: str = ""
    creator: str = ZERO_ADDRESS
    series_id: bytes = ZERO_BYTES32
    url: str = ""
    document_hash: bytes = ZERO_BYTES32

    @property
    def exists(self) -> bool:
        return self.id != 0


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of an ordered index.

    ``items`` always has ``page_size`` slots; slots past ``count`` hold the
    zero sentinel of the index, so check ``count`` before reading them.
    """

    items: tuple[Any, ...]
    count: int
    total_count: int

    @property
    def valid(self) -> list[Any]:
        """The populated slots only."""
        return list(self.items[: self.count])

    def __len__(self) -> int:
        return self.count
